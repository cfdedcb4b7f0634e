from __future__ import annotations

import os
import sys
from typing import Final, TextIO

from .outcome import RunSummary, SendOutcome

RESET: Final[str] = "\033[0m"
RED: Final[str] = "\033[31m"
GREEN: Final[str] = "\033[32m"
YELLOW: Final[str] = "\033[33m"
CYAN: Final[str] = "\033[36m"
BOLD: Final[str] = "\033[1m"

BAR_WIDTH: Final[int] = 30
LINE_WIDTH: Final[int] = 80

FAILURE_HINTS: Final[tuple[str, ...]] = (
    "Invalid Twilio credentials",
    "Phone number not properly configured",
    "Network connection issues",
    "Insufficient Twilio balance",
    "Message content restrictions",
)


def colors_enabled(stream: TextIO = sys.stdout, *, disabled: bool = False) -> bool:
    """Colors only go to a TTY, and never when NO_COLOR is set."""
    if disabled or os.getenv("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Formatter:
    """Wraps text in ANSI codes, or passes it through when colors are off."""

    def __init__(self, use_color: bool) -> None:
        self.use_color = use_color

    def paint(self, text: str, *codes: str) -> str:
        if not self.use_color or not codes:
            return text
        return "".join(codes) + text + RESET

    def banner(self) -> str:
        box = (
            "\n"
            "╔════════════════════════════════════════╗\n"
            "║            Bulk SMS Sender             ║\n"
            "╚════════════════════════════════════════╝\n"
        )
        return self.paint(box, CYAN, BOLD)

    def heading(self, title: str) -> str:
        return self.paint(f"\n=== {title} ===", CYAN)

    def ok(self, text: str) -> str:
        return f"{self.paint('✓', GREEN)} {text}"

    def bad(self, text: str) -> str:
        return f"{self.paint('✗', RED)} {text}"

    def progress_bar(self, current: int, total: int) -> str:
        percentage = current / total * 100 if total else 100.0
        filled = BAR_WIDTH * current // total if total else BAR_WIDTH
        bar = self.paint("█" * filled, GREEN) + " " * (BAR_WIDTH - filled)
        return f"[{bar}] {percentage:.1f}%"

    def outcome_line(self, index: int, total: int, outcome: SendOutcome) -> str:
        prefix = f"[{index}/{total}] Sending to {outcome.recipient}... "
        if outcome.ok:
            return prefix + self.paint("✓ SUCCESS", GREEN) + f" (SID: {outcome.sid})"
        return prefix + self.paint("✗ FAILED: ", RED) + outcome.message

    def report(self, summary: RunSummary) -> str:
        lines = [
            self.heading("Final Report"),
            f"Total messages: {self.paint(str(summary.total), YELLOW)}",
            self.paint(f"✓ Successful: {summary.success}", GREEN),
            self.paint(f"✗ Failed: {summary.failure}", RED),
        ]
        if summary.failure:
            lines.append(self.paint("\nPossible reasons for failures:", YELLOW))
            lines.extend(f"- {hint}" for hint in FAILURE_HINTS)
            lines.append(self.paint("Check the Twilio dashboard for detailed message status.", CYAN))
        return "\n".join(lines)


def clear_line() -> str:
    return "\r" + " " * LINE_WIDTH + "\r"

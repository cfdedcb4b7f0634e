from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .errors import NumbersFileError

NON_DIGIT_RE = re.compile(r"[^0-9]")
WHITESPACE_RE = re.compile(r"\s+")

MIN_LENGTH: Final[int] = 10
MAX_LENGTH: Final[int] = 15


def normalize_number(raw: str) -> str:
    """
    Reduce a raw line to ``+`` followed by its digits.

    Every character that is not an ASCII digit is dropped, so spaces,
    dashes, parentheses and an existing ``+`` all disappear. A line with no
    digits at all normalizes to the empty string.
    """
    digits = NON_DIGIT_RE.sub("", raw)
    if not digits:
        return ""
    return "+" + digits


def validate_number(normalized: str) -> bool:
    """
    Check a normalized number.

    Rules, in order:
      - empty is invalid
      - total length (including the ``+``) must be within 10..15
      - a leading ``0`` country code is invalid
    """
    if not normalized:
        return False
    if len(normalized) < MIN_LENGTH or len(normalized) > MAX_LENGTH:
        return False
    if normalized[1] == "0":
        return False
    return True


def check_number(raw: str) -> str | None:
    """Normalize and validate; ``None`` means the line was rejected."""
    normalized = normalize_number(raw)
    if validate_number(normalized):
        return normalized
    return None


def format_number(number: str) -> str:
    """Group a normalized number for display, e.g. ``+55 11 9999 99999``."""
    if len(number) >= 12:
        return f"{number[:3]} {number[3:5]} {number[5:9]} {number[9:]}"
    return number


@dataclass(frozen=True)
class InvalidLine:
    line_number: int
    raw: str


@dataclass
class NumberList:
    valid: list[str] = field(default_factory=list)
    invalid: list[InvalidLine] = field(default_factory=list)


def parse_numbers(lines: Iterable[str]) -> NumberList:
    """
    Split raw lines into accepted numbers and rejected lines.

    All whitespace is removed from a line before it is checked. Blank lines
    are skipped but still count towards line numbers, so rejections point at
    the physical line in the source file.
    """
    result = NumberList()
    for line_number, line in enumerate(lines, start=1):
        compact = WHITESPACE_RE.sub("", line)
        if not compact:
            continue
        number = check_number(compact)
        if number is None:
            result.invalid.append(InvalidLine(line_number=line_number, raw=compact))
        else:
            result.valid.append(number)
    return result


def load_numbers(path: Path) -> NumberList:
    try:
        # Undecodable bytes become U+FFFD, which normalization drops like any non-digit.
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError as e:
        raise NumbersFileError(
            f"{path} not found! Create it with one phone number per line "
            "(format: [country_code][number], e.g. 5511999999999)"
        ) from e
    return parse_numbers(text.splitlines())

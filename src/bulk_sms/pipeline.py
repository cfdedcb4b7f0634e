from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Final

from .config import TwilioConfig
from .errors import EmptyRecipientListError
from .outcome import RunSummary, SendOutcome
from .twilio_client import Sender

logger = logging.getLogger(__name__)

SEND_DELAY_SECONDS: Final[float] = 1.1
MAX_MESSAGE_CHARS: Final[int] = 1600

AttemptCallback = Callable[[int, int, str], None]
OutcomeCallback = Callable[[int, int, SendOutcome], None]


@dataclass
class RunResult:
    outcomes: list[SendOutcome] = field(default_factory=list)
    summary: RunSummary = field(default_factory=RunSummary)


def send_all(
    config: TwilioConfig,
    sender: Sender,
    recipients: Sequence[str],
    body: str,
    *,
    delay: float = SEND_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: AttemptCallback | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> RunResult:
    """
    Send ``body`` to every recipient, strictly one after another.

    - every recipient is attempted exactly once, in the given order
    - a failed send is recorded and the run carries on, there are no retries
    - after every attempt (including the last) we pause for ``delay`` seconds

    ``on_attempt(index, total, recipient)`` fires just before a send and
    ``on_outcome(index, total, outcome)`` right after it (1-based index), so
    callers can render progress.
    """
    if not recipients:
        raise EmptyRecipientListError("No valid phone numbers to send to")

    total = len(recipients)
    logger.info("sending to %d recipient(s) from %s", total, config.phone_number)

    outcomes: list[SendOutcome] = []
    for index, recipient in enumerate(recipients, start=1):
        if on_attempt is not None:
            on_attempt(index, total, recipient)
        try:
            outcome = sender.send(config.phone_number, recipient, body)
        except Exception as e:
            # Senders report failures as outcomes; anything raised is a bug
            # in the sender, which still must not stop the run.
            logger.exception("unexpected error sending to %s", recipient)
            outcome = SendOutcome.failure(recipient, f"Unexpected error: {e}")

        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(index, total, outcome)

        sleep(delay)

    summary = RunSummary.from_outcomes(outcomes)
    logger.info(
        "run finished: %d sent, %d failed, %d total",
        summary.success,
        summary.failure,
        summary.total,
    )
    return RunResult(outcomes=outcomes, summary=summary)

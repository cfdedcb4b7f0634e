from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class SendOutcome:
    recipient: str
    status: OutcomeStatus
    message: str
    sid: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def success(cls, recipient: str, sid: str) -> SendOutcome:
        return cls(
            recipient=recipient,
            status=OutcomeStatus.SUCCESS,
            message="Message sent successfully",
            sid=sid,
        )

    @classmethod
    def failure(cls, recipient: str, message: str) -> SendOutcome:
        return cls(recipient=recipient, status=OutcomeStatus.FAILURE, message=message)


@dataclass(frozen=True)
class RunSummary:
    total: int = 0
    success: int = 0
    failure: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[SendOutcome]) -> RunSummary:
        total = success = 0
        for outcome in outcomes:
            total += 1
            if outcome.ok:
                success += 1
        return cls(total=total, success=success, failure=total - success)

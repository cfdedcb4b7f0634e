from __future__ import annotations

from enum import Enum


class BulkSmsError(Exception):
    """Base class for fatal errors that stop a run before any SMS is sent."""


class ConfigErrorKind(str, Enum):
    MISSING_FILE = "missing_file"
    INVALID = "invalid"


class ConfigError(BulkSmsError):
    def __init__(
        self,
        message: str,
        *,
        kind: ConfigErrorKind,
        missing: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.missing = missing


class NumbersFileError(BulkSmsError):
    pass


class EmptyRecipientListError(BulkSmsError):
    pass

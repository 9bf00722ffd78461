"""Error taxonomy for the decoding core.

Every decode error carries the column (or field path) it happened in and the
raw value that failed, so callers can diagnose a bad row without re-running
the decode. Transport and cancellation errors are never wrapped here.
"""

from __future__ import annotations

from typing import Any


class DecodeError(ValueError):
    """Base class for all decode failures."""

    def __init__(self, message: str, *, column: str | None = None, value: Any = None) -> None:
        self.column = column
        self.value = value
        self.reason = message
        if column is not None:
            message = f"{column}: {message}"
        super().__init__(message)


class MalformedField(DecodeError):
    """A scalar column value could not be parsed (wrong JSON kind or bad text)."""


class InvalidEncoding(DecodeError):
    """A hash or address has an invalid prefix, length or checksum."""


class BinaryDecodeError(DecodeError):
    """A binary contract-data payload is corrupt or truncated."""


class ValueProjectionError(DecodeError):
    """A primitive tree does not match its resolved type (strict mode only)."""


class NotFound(LookupError):
    """A contract schema or entity does not exist on the explorer."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"not found: {what}")

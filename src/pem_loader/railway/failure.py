"""
Failure description — structured error information for the failure track.

Every fatal condition of a PEM load is reported as one of a small set of
ErrorCode members, wrapped in an immutable FailureDescription that may also
carry the exception that triggered it.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Error codes for the failure track.

    All of them are fatal to a single load invocation; none is retried.
    """

    SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
    """The input file cannot be opened or read."""

    MALFORMED_ENVELOPE = "MALFORMED_ENVELOPE"
    """End of input inside a body, or an invalid marker sequence."""

    DECODE_FAILURE = "DECODE_FAILURE"
    """A body line is not valid base64 or decodes to more than the line bound."""

    ALLOCATION_FAILURE = "ALLOCATION_FAILURE"
    """A buffer or the collection could not grow."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Invalid settings or command-line arguments."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor: error code, message, optional exception, timestamp.

    >>> desc = FailureDescription(ErrorCode.DECODE_FAILURE, "bad base64")
    >>> desc.code
    <ErrorCode.DECODE_FAILURE: 'DECODE_FAILURE'>
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

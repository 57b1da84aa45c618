"""Error conventions for workspace sync and budget checks.

Parsing never raises: missing documents and malformed items degrade to
fewer records. The exceptions here cover the cases that do reach the
caller: a store that failed to read or write, a payload that cannot be
pushed, and a workspace file that exists but cannot be read.

Usage:
    from src.errors import StoreError, ErrorCode

    raise StoreError("upsert rejected", table="tasks", code=ErrorCode.STORE_WRITE_FAILED)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error classification.

    - INPUT: A workspace document or payload is unusable
    - STORE: The external store failed
    """

    INPUT = "input"
    STORE = "store"


class ErrorCode(str, Enum):
    """Specific error codes for programmatic handling."""

    # Input errors
    WORKSPACE_UNREADABLE = "workspace_unreadable"
    INVALID_PAYLOAD = "invalid_payload"

    # Store errors
    STORE_READ_FAILED = "store_read_failed"
    STORE_WRITE_FAILED = "store_write_failed"
    STORE_TIMEOUT = "store_timeout"


@dataclass
class ErrorResponse:
    """Serializable error summary for one failed sync step."""

    error: str = ""
    code: str = ""
    category: str = ""
    retriable: bool = False
    step: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for serialization."""
        result: dict[str, object] = {
            "error": self.error,
            "code": self.code,
            "category": self.category,
            "retriable": self.retriable,
        }
        if self.step:
            result["step"] = self.step
        return result


class MissionControlError(Exception):
    """Base class for all errors raised by this package."""

    category: ErrorCategory = ErrorCategory.INPUT
    code: ErrorCode = ErrorCode.INVALID_PAYLOAD
    retriable: bool = False

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_response(self, step: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error=self.message,
            code=self.code.value,
            category=self.category.value,
            retriable=self.retriable,
            step=step,
        )


class WorkspaceReadError(MissionControlError):
    """A workspace document exists but could not be read."""

    category = ErrorCategory.INPUT
    code = ErrorCode.WORKSPACE_UNREADABLE

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path


class SyncPayloadError(MissionControlError):
    """A sync payload is missing required collections."""

    category = ErrorCategory.INPUT
    code = ErrorCode.INVALID_PAYLOAD


class StoreError(MissionControlError):
    """The external store rejected or failed a read or write."""

    category = ErrorCategory.STORE
    code = ErrorCode.STORE_WRITE_FAILED
    retriable = True

    def __init__(
        self,
        message: str,
        table: str | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.table = table


__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ErrorResponse",
    "MissionControlError",
    "WorkspaceReadError",
    "SyncPayloadError",
    "StoreError",
]

"""Error taxonomy shared by the case store, the review service and its callers.

Callers decide how to react from ``kind`` / ``retryable``; message text is for
humans only.
"""
from enum import Enum


class ErrorKind(str, Enum):
    UNAVAILABLE = "UNAVAILABLE"
    TRANSIENT = "TRANSIENT"
    INVALID_REQUEST = "INVALID_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


class CaseServiceError(Exception):
    """Base class for every failure surfaced by the review backend."""

    kind: ErrorKind = ErrorKind.TRANSIENT
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnavailableError(CaseServiceError):
    """Raised when the caller asserted offline mode."""

    kind = ErrorKind.UNAVAILABLE
    status_code = 503


class TransientError(CaseServiceError):
    """Raised for injected server failures; safe to retry."""

    kind = ErrorKind.TRANSIENT
    status_code = 500
    retryable = True


class InvalidRequestError(CaseServiceError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class ForbiddenError(CaseServiceError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403


class CaseNotFoundError(CaseServiceError):
    """Raised when a case_id is not found."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, case_id: str) -> None:
        super().__init__(f"Case not found: {case_id}")
        self.case_id = case_id


class FieldNotFoundError(CaseServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, case_id: str, field_id: str) -> None:
        super().__init__(f"Field {field_id} not found in case {case_id}")
        self.case_id = case_id
        self.field_id = field_id


class ConflictError(CaseServiceError):
    """Raised when an edit's old_value no longer matches the stored value."""

    kind = ErrorKind.CONFLICT
    status_code = 409

    def __init__(self, case_id: str, field_id: str, expected: str, current: str) -> None:
        super().__init__(
            f"Field {field_id} in case {case_id} changed: expected {expected!r}, found {current!r}"
        )
        self.case_id = case_id
        self.field_id = field_id
        self.expected = expected
        self.current = current

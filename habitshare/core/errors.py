"""Error taxonomy and classification for the recurrence, adherence and sharing core."""

from enum import Enum

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of problems surfaced to callers."""

    MALFORMED_RULE = "malformed_rule"
    INVALID_RECORD = "invalid_record"
    UNRESOLVED_SHARE = "unresolved_share"
    LOW_CONFIDENCE_SHARE = "low_confidence_share"
    STORE_UNAVAILABLE = "store_unavailable"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_MALFORMED_RULE = "ERR_MALFORMED_RULE"
    ERR_INVALID_RECORD = "ERR_INVALID_RECORD"
    ERR_UNRESOLVED_SHARE = "ERR_UNRESOLVED_SHARE"
    ERR_LOW_CONFIDENCE_SHARE = "ERR_LOW_CONFIDENCE_SHARE"
    ERR_STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    category: ErrorCategory
    message: str
    suggestion: str
    severity: ErrorSeverity


class RecordParseError(ValueError):
    """A stored record could not be turned into a domain object."""

    def __init__(self, collection: str, record_id: str | None, reason: str) -> None:
        self.collection = collection
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Invalid record {record_id or '<no id>'} in {collection}: {reason}")


class RecordStoreError(RuntimeError):
    """The record store failed to answer a query."""


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while building a view

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, RecordParseError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_RECORD,
            category=ErrorCategory.INVALID_RECORD,
            message=f"A saved {exception.collection} entry could not be read.",
            suggestion="The entry was skipped. Editing and saving it again usually repairs it.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, RecordStoreError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE_UNAVAILABLE,
            category=ErrorCategory.STORE_UNAVAILABLE,
            message="Your data could not be loaded.",
            suggestion="Check your connection and pull to refresh.",
            severity=ErrorSeverity.HIGH,
        )

    error_str = str(exception).lower()

    if "repeat" in error_str or "recurrence" in error_str or "frequency" in error_str:
        return ErrorResponse(
            code=ErrorCode.ERR_MALFORMED_RULE,
            category=ErrorCategory.MALFORMED_RULE,
            message="Invalid repeat settings.",
            suggestion="Use a frequency of at least 1 and pick at least one weekday for weekly repeats.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, (ConnectionError, TimeoutError)):
        return ErrorResponse(
            code=ErrorCode.ERR_STORE_UNAVAILABLE,
            category=ErrorCategory.STORE_UNAVAILABLE,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        category=ErrorCategory.UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )

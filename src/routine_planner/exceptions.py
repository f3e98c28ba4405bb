"""
Custom exceptions for the routine planner.

Errors fall into four families:
- ValidationError: bad input or a malformed oracle payload. Recoverable,
  nothing was mutated.
- TransientIOError: a persistence or oracle call failed. Oracle calls are
  retried with bounded backoff; persistence writes are surfaced as-is.
- InvariantViolationError: a session lifecycle rule was broken by the caller.
- RecordNotFoundError: an edit addressed an unknown history record.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Schedule errors
    SCHEDULE_VALIDATION_ERROR = "SCHEDULE_VALIDATION_ERROR"

    # Session lifecycle errors
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    SESSION_ALREADY_ACTIVE = "SESSION_ALREADY_ACTIVE"
    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    SESSION_BUSY = "SESSION_BUSY"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Routine generation errors
    ROUTINE_VALIDATION_ERROR = "ROUTINE_VALIDATION_ERROR"
    INVALID_STORED_DOCUMENT = "INVALID_STORED_DOCUMENT"

    # LLM errors
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    LLM_RATE_LIMITED = "LLM_RATE_LIMITED"
    LLM_RESPONSE_INVALID = "LLM_RESPONSE_INVALID"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_API_ERROR = "LLM_API_ERROR"

    # Persistence errors
    TRANSIENT_IO_ERROR = "TRANSIENT_IO_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class RoutinePlannerError(Exception):
    """
    Base exception for all routine planner errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for the UI layer."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors
# ============================================================================

class ValidationError(RoutinePlannerError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(message=message, code=code, details=error_details)


class ScheduleValidationError(ValidationError):
    """Raised when a schedule edit addresses a bad weekday, index or time."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            field=field,
            details=details,
            code=ErrorCode.SCHEDULE_VALIDATION_ERROR,
        )


class RoutineValidationError(ValidationError):
    """Raised when the oracle returns an empty or malformed routine."""

    def __init__(
        self,
        message: str = "The generated routine contained no usable exercises",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            details=details,
            code=ErrorCode.ROUTINE_VALIDATION_ERROR,
        )


class LLMResponseInvalidError(ValidationError):
    """Raised when the LLM response cannot be parsed."""

    def __init__(
        self,
        message: str = "Invalid response from AI service",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            details=details,
            code=ErrorCode.LLM_RESPONSE_INVALID,
        )


class StoredDocumentError(ValidationError):
    """Raised when a stored document cannot be read into its model."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if path:
            error_details["path"] = path
        super().__init__(
            message=message,
            details=error_details,
            code=ErrorCode.INVALID_STORED_DOCUMENT,
        )


# ============================================================================
# Transient I/O Errors
# ============================================================================

class TransientIOError(RoutinePlannerError):
    """Raised when a persistence or oracle call fails in a retryable way."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TRANSIENT_IO_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class PersistenceError(TransientIOError):
    """Raised when the document store rejects a read or write."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if path:
            error_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCode.PERSISTENCE_ERROR,
            details=error_details,
        )


class LLMServiceUnavailableError(TransientIOError):
    """Raised when the LLM service is unavailable."""

    def __init__(
        self,
        message: str = "AI service is temporarily unavailable",
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.LLM_SERVICE_UNAVAILABLE,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class LLMRateLimitError(LLMServiceUnavailableError):
    """Raised when the LLM rate limit is exceeded."""

    def __init__(
        self,
        message: str = "AI service rate limit exceeded",
        retry_after: Optional[float] = None,
    ) -> None:
        details = {"retry_after": retry_after} if retry_after else None
        super().__init__(
            message=message,
            details=details,
            code=ErrorCode.LLM_RATE_LIMITED,
        )
        self.retry_after = retry_after


class LLMTimeoutError(LLMServiceUnavailableError):
    """Raised when an LLM request times out."""

    def __init__(
        self,
        message: str = "AI service request timed out",
        timeout_seconds: Optional[float] = None,
    ) -> None:
        details = {"timeout_seconds": timeout_seconds} if timeout_seconds else None
        super().__init__(
            message=message,
            details=details,
            code=ErrorCode.LLM_TIMEOUT,
        )


class LLMError(RoutinePlannerError):
    """Raised for non-retryable LLM API failures."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, code=ErrorCode.LLM_API_ERROR, details=details)


# ============================================================================
# Session Lifecycle Errors
# ============================================================================

class InvariantViolationError(RoutinePlannerError):
    """Raised when a caller breaks a session lifecycle rule."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INVARIANT_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class SessionAlreadyActiveError(InvariantViolationError):
    """
    Raised when starting a session while another one is in progress.

    The existing session is canonical and is attached so the caller can
    route the user back to it.
    """

    def __init__(self, active_session: Any) -> None:
        super().__init__(
            message="A workout session is already in progress",
            code=ErrorCode.SESSION_ALREADY_ACTIVE,
            details={"session_type": getattr(active_session, "type", None)},
        )
        self.active_session = active_session


class NoActiveSessionError(InvariantViolationError):
    """Raised when an operation needs an active session and there is none."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            message=f"Cannot {operation}: no workout session is in progress",
            code=ErrorCode.NO_ACTIVE_SESSION,
            details={"operation": operation},
        )


class SessionBusyError(InvariantViolationError):
    """Raised when a lifecycle operation is issued while another is outstanding."""

    def __init__(self, operation: str, pending: str) -> None:
        super().__init__(
            message=f"Cannot {operation} while '{pending}' is still in progress",
            code=ErrorCode.SESSION_BUSY,
            details={"operation": operation, "pending": pending},
        )


# ============================================================================
# Not Found Errors
# ============================================================================

class RecordNotFoundError(RoutinePlannerError):
    """Raised when a completed workout record does not exist."""

    def __init__(self, record_id: str) -> None:
        super().__init__(
            message=f"Workout record '{record_id}' not found",
            code=ErrorCode.RECORD_NOT_FOUND,
            details={"record_id": record_id},
        )

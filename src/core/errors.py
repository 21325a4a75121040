"""Error taxonomy for the sharing subsystem and its HTTP-facing classification."""

from enum import Enum

from pydantic import BaseModel

from src.core.config import constants


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Lookup errors
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_RECIPIENT_NOT_FOUND = "ERR_RECIPIENT_NOT_FOUND"

    # Authorization errors
    ERR_FORBIDDEN = "ERR_FORBIDDEN"

    # Validation errors
    ERR_SELF_SHARE_FORBIDDEN = "ERR_SELF_SHARE_FORBIDDEN"
    ERR_DUPLICATE_ACTIVE_SHARE = "ERR_DUPLICATE_ACTIVE_SHARE"
    ERR_INVALID_SCOPE = "ERR_INVALID_SCOPE"
    ERR_INVALID_PATCH = "ERR_INVALID_PATCH"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


class SharingError(Exception):
    """Base class for expected, non-retryable failures of sharing operations."""

    code: str = ErrorCode.ERR_UNKNOWN
    status_code: int = constants.HTTP_BAD_REQUEST
    suggestion: str = "Check the request and try again."
    severity: ErrorSeverity = ErrorSeverity.LOW

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SharingError):
    """The target does not exist, or the caller has no relationship to it at all.

    Both cases deliberately produce the same error so callers cannot probe for
    other users' shares or tasks.
    """

    code = ErrorCode.ERR_NOT_FOUND
    status_code = constants.HTTP_NOT_FOUND
    suggestion = "Refresh your shares and try again."

    def __init__(self, message: str = "Share not found or access denied") -> None:
        super().__init__(message)


class ForbiddenError(SharingError):
    """A relationship exists but does not grant the requested permission."""

    code = ErrorCode.ERR_FORBIDDEN
    status_code = constants.HTTP_FORBIDDEN
    suggestion = "Ask the schedule owner for a higher permission level."
    severity = ErrorSeverity.MEDIUM


class RecipientNotFoundError(SharingError):
    code = ErrorCode.ERR_RECIPIENT_NOT_FOUND
    status_code = constants.HTTP_NOT_FOUND
    suggestion = "Enter a valid username or email address."

    def __init__(self, message: str = "User not found. Please enter a valid username or email.") -> None:
        super().__init__(message)


class SelfShareForbiddenError(SharingError):
    code = ErrorCode.ERR_SELF_SHARE_FORBIDDEN
    suggestion = "Choose another person to share your schedule with."

    def __init__(self, message: str = "You cannot share your schedule with yourself.") -> None:
        super().__init__(message)


class DuplicateActiveShareError(SharingError):
    code = ErrorCode.ERR_DUPLICATE_ACTIVE_SHARE
    status_code = constants.HTTP_CONFLICT
    suggestion = "Update or remove the existing share first."

    def __init__(self, message: str = "You already have an active share with this user.") -> None:
        super().__init__(message)


class InvalidScopeError(SharingError):
    code = ErrorCode.ERR_INVALID_SCOPE
    suggestion = "Select at least one task, or share your full schedule."


class InvalidPatchError(SharingError):
    code = ErrorCode.ERR_INVALID_PATCH
    suggestion = "Only title, category, priority, timer, scheduled date, notes and video link can be changed."


def to_error_response(exception: Exception) -> tuple[int, ErrorResponse]:
    """Classify an error and return the HTTP status with a structured response.

    Sharing errors keep their own code and message. Anything else is reported as
    a generic internal error so storage details never reach the caller.

    Args:
        exception: The exception raised while serving a request

    Returns:
        Tuple of (http_status_code, ErrorResponse)
    """
    if isinstance(exception, SharingError):
        return exception.status_code, ErrorResponse(
            code=exception.code,
            message=exception.message,
            suggestion=exception.suggestion,
            severity=exception.severity,
        )

    return constants.HTTP_SERVER_ERROR, ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.HIGH,
    )

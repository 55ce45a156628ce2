"""
Custom exceptions for Parse Server operations.

Provides structured error handling with retryable flags and the Parse
error code from the response body.
"""

# Parse error codes used by the client
OBJECT_NOT_FOUND = 101
INVALID_SESSION_TOKEN = 209
USERNAME_TAKEN = 202
EMAIL_TAKEN = 203
DUPLICATE_VALUE = 137
INCORRECT_TYPE = 111
VALIDATION_ERROR = 142
REQUEST_LIMIT_EXCEEDED = 155
OPERATION_FORBIDDEN = 119


class ParseError(Exception):
    """Base exception for Parse Server operations."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: int | None = None,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.original_error = original_error


class ParseAuthError(ParseError):
    """
    Session or permission failure.

    Causes:
    - Invalid or expired session token (code 209)
    - Operation forbidden for this user (code 119, HTTP 403)
    - Wrong application id / REST key (HTTP 401)
    """

    retryable = False


class ParseNotFoundError(ParseError):
    """
    Object not found (code 101).

    Parse also answers 101 when the ACL hides the object from the caller,
    and for a failed login.
    """

    retryable = False


class ParseDuplicateError(ParseError):
    """Unique value already taken (username, email, duplicate value)."""

    retryable = False


class ParseValidationError(ParseError):
    """Invalid object data (wrong field type, failed validation)."""

    retryable = False


class ParseRateLimitError(ParseError):
    """Request limit exceeded (code 155 or HTTP 429)."""

    retryable = True


class ParseServerError(ParseError):
    """Server-side failure (HTTP 5xx)."""

    retryable = True


class ParseConnectionError(ParseError):
    """Transport failure before a response was received."""

    retryable = True


def error_for_response(status_code: int, body: dict) -> ParseError:
    """
    Build the exception matching a Parse error response.

    Args:
        status_code: HTTP status
        body: Decoded JSON body ({"code": ..., "error": ...}) or {}

    Returns:
        The most specific ParseError subclass
    """
    code = body.get("code")
    message = body.get("error") or f"Parse Server returned HTTP {status_code}"

    if code == OBJECT_NOT_FOUND:
        cls = ParseNotFoundError
    elif code in (INVALID_SESSION_TOKEN, OPERATION_FORBIDDEN) or status_code in (401, 403):
        cls = ParseAuthError
    elif code in (USERNAME_TAKEN, EMAIL_TAKEN, DUPLICATE_VALUE):
        cls = ParseDuplicateError
    elif code in (INCORRECT_TYPE, VALIDATION_ERROR):
        cls = ParseValidationError
    elif code == REQUEST_LIMIT_EXCEEDED or status_code == 429:
        cls = ParseRateLimitError
    elif status_code >= 500:
        cls = ParseServerError
    else:
        cls = ParseError

    return cls(message, code=code, status_code=status_code)

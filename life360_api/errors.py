"""
Life360 API SDK Error Classes

Every error raised by the SDK is a Life360Error carrying the HTTP status,
status text and, when the service answered, the response body.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx


# Statuses the request executor may retry instead of failing the call
RETRIABLE_STATUS_CODES = (403, 404, 406)


class Life360Error(Exception):
    """Base error class for the Life360 API SDK."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 0,
        status_text: str = "",
        body: Any = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "status_text": self.status_text,
            "body": self.body,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


class NetworkError(Life360Error):
    """Transport fault without an HTTP response (connection issues, timeouts)."""

    def __init__(self, message: str, body: Any = None):
        super().__init__("NETWORK_ERROR", message, 0, "", body)


class ApiError(Life360Error):
    """The service answered a request with an error status."""

    def __init__(
        self,
        status_code: int,
        status_text: str = "",
        body: Any = None,
        message: Optional[str] = None,
        code: str = "API_ERROR",
    ):
        super().__init__(
            code,
            message or f"HTTP {status_code} {status_text}".strip(),
            status_code,
            status_text,
            body,
        )

    @property
    def retryable(self) -> bool:
        return self.status_code in RETRIABLE_STATUS_CODES


class RetriableApiError(ApiError):
    """403, 404 or 406: the executor may try the request again."""


class FatalApiError(ApiError):
    """Any other error status. Never retried."""


class AuthenticationError(Life360Error):
    """Login exchange failed (bad credentials, network failure, no token)."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        status_text: str = "",
        body: Any = None,
        code: str = "AUTHENTICATION_FAILED",
    ):
        super().__init__(code, message, status_code, status_text, body)


class NotLoggedInError(Life360Error):
    """A request was built without an authenticated session."""

    def __init__(self, message: str = "Not logged in. Please log in to Life360 first."):
        super().__init__("NOT_LOGGED_IN", message, 0, "Not logged in")


class ConfigurationError(Life360Error):
    """Configuration error."""

    def __init__(self, message: str, body: Any = None):
        super().__init__("CONFIGURATION_ERROR", message, 0, "", body)


class ResponseParseError(Life360Error):
    """A response body did not match the expected schema."""

    def __init__(self, message: str, body: Any = None):
        super().__init__("RESPONSE_PARSE_ERROR", message, 0, "", body)


def response_body(response: httpx.Response) -> Any:
    """Best-effort decode of a response body: JSON when possible, else text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def api_error_from_response(
    response: httpx.Response, message: Optional[str] = None
) -> ApiError:
    """Create the matching ApiError subclass for an error response."""
    error_class = (
        RetriableApiError
        if response.status_code in RETRIABLE_STATUS_CODES
        else FatalApiError
    )
    return error_class(
        response.status_code,
        response.reason_phrase,
        response_body(response),
        message,
    )


def missing_field_error(field: Optional[str], body: Any = None) -> RetriableApiError:
    """406 raised locally when a 2xx body lacks the expected field."""
    if field:
        message = f"Suspicious API response: {field!r} is missing."
    else:
        message = "Suspicious API response: body is empty."
    return RetriableApiError(406, "Not Acceptable", body, message, "MISSING_FIELD")


def is_life360_error(error: Any) -> bool:
    """Check if error is a Life360Error."""
    return isinstance(error, Life360Error)


def is_retryable_error(error: Any) -> bool:
    """Check if the executor may retry after this error."""
    if isinstance(error, ApiError):
        return error.retryable
    return False

"""
Life360 API Python SDK

A Python client for the private Life360 REST API with sync and async
clients, automatic reconnect and bounded request retries.
"""

from .client import (
    Life360Client,
    Life360AsyncClient,
    create_life360_client,
    create_async_life360_client,
    create_device_id,
)
from .types import (
    Life360Config,
    RetryOptions,
    LoginCredentials,
    Session,
    User,
    UserSettings,
    MapSettings,
    AlertsSettings,
    Communication,
    Circle,
    CircleFeatures,
    Member,
    MemberFeatures,
    MemberIssues,
    Location,
    Place,
    LocationRequest,
    MemberPreferences,
)
from .errors import (
    Life360Error,
    NetworkError,
    ApiError,
    RetriableApiError,
    FatalApiError,
    AuthenticationError,
    NotLoggedInError,
    ConfigurationError,
    ResponseParseError,
    is_life360_error,
    is_retryable_error,
)
from .request import RequestBuilder, RequestDescriptor
from .session import SessionState, SessionCookie

__version__ = "0.1.0"
__all__ = [
    # Clients
    "Life360Client",
    "Life360AsyncClient",
    "create_life360_client",
    "create_async_life360_client",
    "create_device_id",
    # Types
    "Life360Config",
    "RetryOptions",
    "LoginCredentials",
    "Session",
    "User",
    "UserSettings",
    "MapSettings",
    "AlertsSettings",
    "Communication",
    "Circle",
    "CircleFeatures",
    "Member",
    "MemberFeatures",
    "MemberIssues",
    "Location",
    "Place",
    "LocationRequest",
    "MemberPreferences",
    # Errors
    "Life360Error",
    "NetworkError",
    "ApiError",
    "RetriableApiError",
    "FatalApiError",
    "AuthenticationError",
    "NotLoggedInError",
    "ConfigurationError",
    "ResponseParseError",
    "is_life360_error",
    "is_retryable_error",
    # Requests and session
    "RequestBuilder",
    "RequestDescriptor",
    "SessionState",
    "SessionCookie",
]

"""
Life360 API SDK Client

Synchronous and asynchronous clients for the Life360 private REST API.
Both run every authenticated call through the same reconnect/retry policy:

- not logged in and auto-reconnect on: log in before the attempt
- 403: drop the session (auto-reconnect) or stop retrying
- 404, 406: try again after ``retry_delay``
- anything else: fail at once
"""

import asyncio
import logging
import secrets
import threading
import time
from typing import Any, Dict, List, Literal, Optional, Tuple, Type, TypeVar

import httpx

from .types import (
    Life360Config,
    LoginCredentials,
    RetryOptions,
    Session,
    Circle,
    Member,
    Location,
    Place,
    LocationRequest,
    MemberPreferences,
    parse_circles,
    parse_members,
    parse_locations,
    parse_places,
)
from .errors import (
    Life360Error,
    NetworkError,
    AuthenticationError,
    ConfigurationError,
    ResponseParseError,
    RetriableApiError,
    api_error_from_response,
    missing_field_error,
    response_body,
)
from .request import RequestBuilder, RequestDescriptor
from .session import SessionState, parse_set_cookie_headers


logger = logging.getLogger("life360_api")

ClientT = TypeVar("ClientT", bound="_Life360ClientBase")
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

LOGIN_ENDPOINT = "/v3/oauth2/token.json"
CIRCLES_ENDPOINT = "/v3/circles"


def create_device_id() -> str:
    """Create a random Life360 device ID (16 hex characters)."""
    return secrets.token_hex(8)


class _Life360ClientBase:
    """State, request building and response handling shared by both clients."""

    def __init__(self, config: Life360Config) -> None:
        self._validate_config(config)

        self._credentials = LoginCredentials(
            password=config.password or "",
            username=config.username or "",
            phone_number=config.phone_number or "",
            country_code=config.country_code,
        )
        self._base_url = config.base_url.rstrip("/")
        self._device_id = config.device_id or create_device_id()
        self._user_agent = f"{config.user_agent}/{config.client_version}/{self._device_id}"
        self._client_secret = config.client_secret
        self._timeout = config.timeout
        self._auto_reconnect = config.auto_reconnect
        self._retry_delay = config.retry_delay
        self._max_attempts = config.max_attempts
        self._debug = config.debug
        self._custom_headers = config.headers or {}
        self._on_login_change = config.on_login_change

        # State
        self._state = SessionState()
        if config.access_token:
            self._state.set_session(config.access_token, config.token_type)
        self._session: Optional[Session] = None
        self._last_error: Optional[Life360Error] = None
        self._last_response: Optional[httpx.Response] = None

        self._builder = RequestBuilder(
            self._state,
            self._base_url,
            self._device_id,
            self._user_agent,
            self._custom_headers,
        )

    def _validate_config(self, config: Life360Config) -> None:
        """Validate configuration."""
        credentials = LoginCredentials(
            password=config.password or "",
            username=config.username or "",
            phone_number=config.phone_number or "",
            country_code=config.country_code,
        )
        if not credentials.is_complete() and not config.access_token:
            raise ConfigurationError(
                "You must provide username and password, or country_code, "
                "phone_number and password, or an access_token"
            )
        if config.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if config.retry_delay < 0:
            raise ConfigurationError("retry_delay must not be negative")

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[Life360] {message}", *args)

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def from_username(
        cls: Type[ClientT], username: str, password: str, **options: Any
    ) -> ClientT:
        """Create a client that logs in with e-mail and password."""
        return cls(Life360Config(username=username, password=password, **options))

    @classmethod
    def from_phone_number(
        cls: Type[ClientT],
        country_code: int,
        phone_number: str,
        password: str,
        **options: Any,
    ) -> ClientT:
        """Create a client that logs in with a phone number and password."""
        return cls(Life360Config(
            country_code=country_code,
            phone_number=phone_number,
            password=password,
            **options,
        ))

    @classmethod
    def from_auth_token(
        cls: Type[ClientT],
        access_token: str,
        token_type: str = "Bearer",
        **options: Any,
    ) -> ClientT:
        """
        Create a client from an existing access token.

        Without credentials the client cannot log in again, so a revoked
        token surfaces as an AuthenticationError on the next reconnect.
        """
        return cls(Life360Config(
            access_token=access_token, token_type=token_type, **options
        ))

    @classmethod
    def from_session(cls: Type[ClientT], session: Session, **options: Any) -> ClientT:
        """Create a client sharing the token of another client's session."""
        return cls.from_auth_token(session.access_token, session.token_type, **options)

    # =========================================================================
    # State Methods
    # =========================================================================

    def is_logged_in(self) -> bool:
        """Check if the client holds an access token."""
        return self._state.is_authenticated

    def logout(self) -> None:
        """Forget the session. No network call; calling it twice is harmless."""
        self._log("Logout")
        self._clear_session()
        self._notify_login_change()

    def get_session(self) -> Optional[Session]:
        """The session returned by the last successful login."""
        return self._session

    def get_device_id(self) -> str:
        return self._device_id

    def get_last_error(self) -> Optional[Life360Error]:
        """The most recent error raised by a request, if any."""
        return self._last_error

    def get_last_response(self) -> Optional[httpx.Response]:
        """The most recent HTTP response received."""
        return self._last_response

    def build_request(
        self,
        path: str,
        method: HttpMethod = "GET",
        body: Optional[Dict[str, Any]] = None,
    ) -> RequestDescriptor:
        """Build an authenticated request for ``path`` without sending it."""
        return self._builder.build(path, method, body)

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _clear_session(self) -> None:
        self._state.clear()
        self._session = None

    def _notify_login_change(self) -> None:
        if self._on_login_change is not None:
            self._on_login_change(self.is_logged_in())

    def _fail(self, error: Life360Error) -> Life360Error:
        self._last_error = error
        return error

    def _build(
        self, path: str, method: HttpMethod, body: Optional[Dict[str, Any]]
    ) -> RequestDescriptor:
        try:
            return self._builder.build(path, method, body)
        except Life360Error as e:
            raise self._fail(e)

    def _resolve_options(self, options: Optional[RetryOptions]) -> Tuple[int, float, bool]:
        options = options or RetryOptions()
        max_attempts = (
            self._max_attempts if options.max_attempts is None else options.max_attempts
        )
        retry_delay = (
            self._retry_delay if options.retry_delay is None else options.retry_delay
        )
        auto_reconnect = (
            self._auto_reconnect
            if options.auto_reconnect is None
            else options.auto_reconnect
        )
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        return max_attempts, retry_delay, auto_reconnect

    def _login_request(self) -> RequestDescriptor:
        """Token exchange request for the configured credentials."""
        if not self._credentials.is_complete():
            raise self._fail(AuthenticationError(
                "No login credentials configured", code="MISSING_CREDENTIALS"
            ))
        if not self._client_secret:
            raise self._fail(ConfigurationError("client_secret is required to log in"))

        return RequestDescriptor(
            method="POST",
            url=f"{self._base_url}{LOGIN_ENDPOINT}",
            headers={
                "Authorization": f"Basic {self._client_secret}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-Device-ID": self._device_id,
                "User-Agent": self._user_agent,
            },
            body=self._credentials.to_dict(),
        )

    def _login_network_error(self, error: NetworkError) -> AuthenticationError:
        return AuthenticationError(
            f"Login request failed: {error.message}", code="NETWORK_ERROR"
        )

    def _complete_login(self, response: httpx.Response) -> Session:
        """Turn the token exchange response into the new session."""
        self._last_response = response

        if not response.is_success:
            raise self._fail(AuthenticationError(
                f"Login failed: HTTP {response.status_code} {response.reason_phrase}",
                response.status_code,
                response.reason_phrase,
                response_body(response),
            ))

        data = response_body(response)
        if not isinstance(data, dict) or not data.get("access_token"):
            raise self._fail(AuthenticationError(
                "Failed to get access token",
                response.status_code,
                response.reason_phrase,
                data,
                code="MISSING_ACCESS_TOKEN",
            ))

        try:
            session = Session.from_dict(data)
        except ResponseParseError as e:
            raise self._fail(AuthenticationError(
                f"Invalid login response: {e.message}",
                response.status_code,
                response.reason_phrase,
                data,
                code="INVALID_SESSION",
            ))

        cookies = parse_set_cookie_headers(response.headers.get_list("set-cookie"))
        self._state.set_session(session.access_token, session.token_type, cookies)
        self._session = session
        self._notify_login_change()

        self._log("Login successful")
        return session

    def _handle_response(
        self, response: httpx.Response, required_field: Optional[str] = None
    ) -> Dict[str, Any]:
        """Return the JSON body of a successful response, else raise."""
        self._last_response = response

        if not response.is_success:
            raise self._fail(api_error_from_response(response))

        data = response_body(response)
        if not isinstance(data, dict) or not data:
            raise self._fail(missing_field_error(None, data))
        if required_field and data.get(required_field) is None:
            raise self._fail(missing_field_error(required_field, data))
        return data

    def _circle_path(self, circle_id: str, *parts: str) -> str:
        if not circle_id:
            raise ConfigurationError("circle_id is required")
        return "/".join((CIRCLES_ENDPOINT, circle_id) + parts)

    def _circles_from(self, data: Dict[str, Any]) -> List[Circle]:
        circles = parse_circles(data["circles"])
        if not circles:
            logger.warning("No circles in your Life360.")
        return circles


class Life360Client(_Life360ClientBase):
    """
    Life360 API Client - Synchronous SDK entry point.

    Logs in with the configured credentials on demand and retries
    requests according to the reconnect/retry policy.
    """

    def __init__(self, config: Life360Config) -> None:
        """Initialize the Life360 client."""
        super().__init__(config)

        self._login_lock = threading.Lock()

        # HTTP client
        self._http_client = httpx.Client(timeout=self._timeout)

        self._log(f"Life360Client initialized (device_id={self._device_id})")

    def _clear_session(self) -> None:
        super()._clear_session()
        # SessionState is the only cookie store
        self._http_client.cookies.clear()

    # =========================================================================
    # Authentication Methods
    # =========================================================================

    def login(self) -> Session:
        """
        Log in with the configured credentials.

        The previous session is dropped first and stays cleared if the
        login fails.

        Returns:
            The new Session

        Raises:
            AuthenticationError: If the token exchange fails
            ConfigurationError: If no client secret is configured
        """
        self._clear_session()
        request = self._login_request()
        self._log(f"Login attempt for: {self._credentials.username or self._credentials.phone_number}")

        try:
            response = self._send(request)
        except NetworkError as e:
            raise self._fail(self._login_network_error(e)) from e

        return self._complete_login(response)

    # =========================================================================
    # Request Executor
    # =========================================================================

    def execute_authenticated_request(
        self,
        path: str,
        method: HttpMethod = "GET",
        body: Optional[Dict[str, Any]] = None,
        required_field: Optional[str] = None,
        options: Optional[RetryOptions] = None,
    ) -> Dict[str, Any]:
        """
        Run one logical API call with reconnect and bounded retries.

        Args:
            path: Endpoint path below the base URL
            method: HTTP method
            body: Optional JSON body
            required_field: Top-level field the response must contain;
                a missing field counts as a 406 and is retried
            options: Per-call overrides of the retry settings

        Returns:
            The decoded JSON body of the first successful attempt

        Raises:
            AuthenticationError: If a reconnect fails
            NotLoggedInError: If not logged in and auto-reconnect is off
            RetriableApiError: If every attempt failed with 403/404/406
            FatalApiError: On any other error status
            NetworkError: On transport faults
        """
        max_attempts, retry_delay, auto_reconnect = self._resolve_options(options)
        last_error: Optional[RetriableApiError] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                time.sleep(retry_delay)
            self._ensure_logged_in(auto_reconnect)

            request = self._build(path, method, body)
            self._log(f"API request #{attempt}: {method} {path}")
            try:
                return self._handle_response(self._send(request), required_field)
            except RetriableApiError as error:
                last_error = error
                if error.status_code == 403:
                    if not auto_reconnect:
                        break
                    self._log("Access denied, dropping session")
                    self.logout()

        logger.warning(
            "Life360 request %s %s failed after %d attempt(s)", method, path, attempt
        )
        raise last_error or NetworkError("Request failed after retries")

    def _ensure_logged_in(self, auto_reconnect: bool) -> None:
        if self.is_logged_in() or not auto_reconnect:
            return
        with self._login_lock:
            if not self.is_logged_in():
                self._log("Reconnecting ...")
                self.login()

    def _send(self, request: RequestDescriptor) -> httpx.Response:
        """Execute a single HTTP request."""
        try:
            return self._http_client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                json=request.body,
            )
        except httpx.TimeoutException as e:
            raise self._fail(NetworkError("Request timeout", {"timeout": self._timeout})) from e
        except httpx.RequestError as e:
            raise self._fail(NetworkError(str(e))) from e

    # =========================================================================
    # Circle Methods
    # =========================================================================

    def get_circles(self) -> List[Circle]:
        """Get the logged-in user's circles."""
        data = self.execute_authenticated_request(
            CIRCLES_ENDPOINT, required_field="circles"
        )
        return self._circles_from(data)

    def get_circle(self, circle_id: str) -> Circle:
        """Get a circle, including its members."""
        data = self.execute_authenticated_request(
            self._circle_path(circle_id), required_field="id"
        )
        return Circle.from_dict(data)

    def get_circle_members(self, circle_id: str) -> List[Member]:
        data = self.execute_authenticated_request(
            self._circle_path(circle_id, "members"), required_field="members"
        )
        return parse_members(data["members"])

    def get_circle_members_location(self, circle_id: str) -> List[Location]:
        """Get the location history entries of a circle's members."""
        data = self.execute_authenticated_request(
            self._circle_path(circle_id, "members", "history"),
            required_field="locations",
        )
        return parse_locations(data["locations"])

    def get_circle_places(self, circle_id: str) -> List[Place]:
        data = self.execute_authenticated_request(
            self._circle_path(circle_id, "places"), required_field="places"
        )
        return parse_places(data["places"])

    def get_circle_members_preferences(self, circle_id: str) -> MemberPreferences:
        data = self.execute_authenticated_request(
            self._circle_path(circle_id, "members", "preferences")
        )
        return MemberPreferences.from_dict(data)

    def request_user_location_update(self, circle_id: str, user_id: str) -> LocationRequest:
        """Ask a member's device to report a fresh location."""
        if not user_id:
            raise ConfigurationError("user_id is required")
        data = self.execute_authenticated_request(
            self._circle_path(circle_id, "members", user_id, "request"),
            method="POST",
            body={"type": "location"},
            required_field="requestId",
        )
        return LocationRequest.from_dict(data)

    def close(self) -> None:
        """Close the HTTP client."""
        self._http_client.close()

    def __enter__(self) -> "Life360Client":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# Async Client
# =============================================================================

class Life360AsyncClient(_Life360ClientBase):
    """
    Life360 API Async Client - Asynchronous SDK entry point.

    Same policy as Life360Client; the delay between attempts and the
    network I/O are the only suspension points.
    """

    def __init__(self, config: Life360Config) -> None:
        """Initialize the async Life360 client."""
        super().__init__(config)

        self._login_lock = asyncio.Lock()

        # HTTP client (created lazily)
        self._http_client: Optional[httpx.AsyncClient] = None

        self._log(f"Life360AsyncClient initialized (device_id={self._device_id})")

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    def _clear_session(self) -> None:
        super()._clear_session()
        if self._http_client is not None:
            self._http_client.cookies.clear()

    # =========================================================================
    # Authentication Methods
    # =========================================================================

    async def login(self) -> Session:
        """Log in with the configured credentials."""
        self._clear_session()
        request = self._login_request()
        self._log(f"Login attempt for: {self._credentials.username or self._credentials.phone_number}")

        try:
            response = await self._send(request)
        except NetworkError as e:
            raise self._fail(self._login_network_error(e)) from e

        return self._complete_login(response)

    # =========================================================================
    # Request Executor
    # =========================================================================

    async def execute_authenticated_request(
        self,
        path: str,
        method: HttpMethod = "GET",
        body: Optional[Dict[str, Any]] = None,
        required_field: Optional[str] = None,
        options: Optional[RetryOptions] = None,
    ) -> Dict[str, Any]:
        """Run one logical API call with reconnect and bounded retries."""
        max_attempts, retry_delay, auto_reconnect = self._resolve_options(options)
        last_error: Optional[RetriableApiError] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                await asyncio.sleep(retry_delay)
            await self._ensure_logged_in(auto_reconnect)

            request = self._build(path, method, body)
            self._log(f"API request #{attempt}: {method} {path}")
            try:
                return self._handle_response(await self._send(request), required_field)
            except RetriableApiError as error:
                last_error = error
                if error.status_code == 403:
                    if not auto_reconnect:
                        break
                    self._log("Access denied, dropping session")
                    self.logout()

        logger.warning(
            "Life360 request %s %s failed after %d attempt(s)", method, path, attempt
        )
        raise last_error or NetworkError("Request failed after retries")

    async def _ensure_logged_in(self, auto_reconnect: bool) -> None:
        if self.is_logged_in() or not auto_reconnect:
            return
        async with self._login_lock:
            if not self.is_logged_in():
                self._log("Reconnecting ...")
                await self.login()

    async def _send(self, request: RequestDescriptor) -> httpx.Response:
        """Execute a single HTTP request."""
        try:
            client = self._get_client()
            return await client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                json=request.body,
            )
        except httpx.TimeoutException as e:
            raise self._fail(NetworkError("Request timeout", {"timeout": self._timeout})) from e
        except httpx.RequestError as e:
            raise self._fail(NetworkError(str(e))) from e

    # =========================================================================
    # Circle Methods
    # =========================================================================

    async def get_circles(self) -> List[Circle]:
        """Get the logged-in user's circles."""
        data = await self.execute_authenticated_request(
            CIRCLES_ENDPOINT, required_field="circles"
        )
        return self._circles_from(data)

    async def get_circle(self, circle_id: str) -> Circle:
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id), required_field="id"
        )
        return Circle.from_dict(data)

    async def get_circle_members(self, circle_id: str) -> List[Member]:
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id, "members"), required_field="members"
        )
        return parse_members(data["members"])

    async def get_circle_members_location(self, circle_id: str) -> List[Location]:
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id, "members", "history"),
            required_field="locations",
        )
        return parse_locations(data["locations"])

    async def get_circle_places(self, circle_id: str) -> List[Place]:
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id, "places"), required_field="places"
        )
        return parse_places(data["places"])

    async def get_circle_members_preferences(self, circle_id: str) -> MemberPreferences:
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id, "members", "preferences")
        )
        return MemberPreferences.from_dict(data)

    async def request_user_location_update(
        self, circle_id: str, user_id: str
    ) -> LocationRequest:
        """Ask a member's device to report a fresh location."""
        if not user_id:
            raise ConfigurationError("user_id is required")
        data = await self.execute_authenticated_request(
            self._circle_path(circle_id, "members", user_id, "request"),
            method="POST",
            body={"type": "location"},
            required_field="requestId",
        )
        return LocationRequest.from_dict(data)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "Life360AsyncClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_life360_client(config: Life360Config) -> Life360Client:
    """Create a new synchronous Life360 client."""
    return Life360Client(config)


def create_async_life360_client(config: Life360Config) -> Life360AsyncClient:
    """Create a new asynchronous Life360 client."""
    return Life360AsyncClient(config)

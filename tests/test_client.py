"""
Tests for Life360 API Python SDK Client

Tests both sync and async clients with mocked HTTP responses.
"""

import json
import logging
import pytest
from typing import Any, Dict, List
from unittest.mock import MagicMock

import httpx
import respx

from life360_api import (
    Life360Client,
    Life360AsyncClient,
    Life360Config,
    RetryOptions,
    Session,
    Circle,
    Member,
    Place,
    create_life360_client,
    create_device_id,
)
from life360_api.errors import (
    Life360Error,
    AuthenticationError,
    ConfigurationError,
    FatalApiError,
    NetworkError,
    NotLoggedInError,
    RetriableApiError,
)


BASE_URL = "https://www.life360.com"
LOGIN_URL = f"{BASE_URL}/v3/oauth2/token.json"
CIRCLES_URL = f"{BASE_URL}/v3/circles"


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def valid_config() -> Life360Config:
    """Valid configuration for testing."""
    return Life360Config(
        username="test@example.com",
        password="password123",
        client_secret="dGVzdC1jbGllbnQtc2VjcmV0",
        device_id="0123456789abcdef",
        retry_delay=0,
        debug=True,
    )


@pytest.fixture
def mock_login_response() -> Dict[str, Any]:
    """Mock token exchange response from the API."""
    return {
        "access_token": "access_token_123",
        "token_type": "Bearer",
        "onboarding": 0,
        "user": {
            "id": "user_123",
            "firstName": "Test",
            "lastName": "User",
            "loginEmail": "test@example.com",
            "loginPhone": "+15555550100",
            "locale": "en_US",
            "language": "en",
            "created": "2016-03-21 19:42:41",
            "settings": {
                "map": {"police": "1", "fire": "0", "crimeDuration": "a"},
                "alerts": {"crime": "1", "sound": "0"},
                "unitOfMeasure": "i",
                "timeZone": "America/Los_Angeles",
            },
            "communications": [
                {"channel": "Email", "value": "test@example.com", "type": None},
            ],
        },
        "cobranding": [],
        "promotions": [],
        "state": None,
    }


@pytest.fixture
def mock_circle() -> Dict[str, Any]:
    """Mock circle as returned by the API."""
    return {
        "id": "circle_1",
        "name": "Family",
        "color": "f05a5e",
        "type": "basic",
        "createdAt": "1458589361",
        "memberCount": "2",
        "unreadMessages": "0",
        "unreadNotifications": "3",
        "features": {"premium": "0", "priceMonth": "4.99", "priceYear": "49.99"},
        "members": [
            {
                "id": "member_1",
                "firstName": "Ada",
                "lastName": "Lovelace",
                "isAdmin": "1",
                "createdAt": "1458589361",
                "features": {"shareLocation": "1", "disconnected": "0"},
                "issues": {"disconnected": "0", "troubleshooting": "0"},
                "location": {
                    "latitude": "37.7749",
                    "longitude": "-122.4194",
                    "accuracy": "10",
                    "timestamp": "1650000000",
                    "battery": "87",
                    "charge": "1",
                    "wifiState": "0",
                    "isDriving": "0",
                    "shortAddress": "Market St",
                },
                "communications": [],
            },
        ],
    }


@pytest.fixture
def sync_client(valid_config: Life360Config) -> Life360Client:
    """Create sync client for testing."""
    return Life360Client(valid_config)


@pytest.fixture
def async_client(valid_config: Life360Config) -> Life360AsyncClient:
    """Create async client for testing."""
    return Life360AsyncClient(valid_config)


# =============================================================================
# Configuration Tests
# =============================================================================

class TestConfiguration:
    """Tests for SDK configuration."""

    def test_username_credentials(self):
        """Username and password are enough to build a client."""
        client = Life360Client(Life360Config(username="a@b.c", password="pw"))
        assert not client.is_logged_in()

    def test_phone_credentials(self):
        """Country code, phone number and password are enough to build a client."""
        client = Life360Client(Life360Config(
            country_code=49, phone_number="15112345678", password="pw",
        ))
        assert not client.is_logged_in()

    def test_missing_credentials(self):
        """Too few credentials raise a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Life360Client(Life360Config(username="a@b.c"))
        assert "username and password" in str(exc_info.value)

    def test_phone_without_password(self):
        with pytest.raises(ConfigurationError):
            Life360Client(Life360Config(country_code=1, phone_number="5555550100"))

    def test_access_token_without_credentials(self):
        """A pre-seeded token makes credentials optional."""
        client = Life360Client(Life360Config(access_token="token"))
        assert client.is_logged_in()

    def test_invalid_max_attempts(self):
        with pytest.raises(ConfigurationError):
            Life360Client(Life360Config(username="a", password="b", max_attempts=0))

    def test_defaults(self):
        """Test default configuration values."""
        config = Life360Config(username="a", password="b")
        assert config.base_url == "https://www.life360.com"
        assert config.auto_reconnect is True
        assert config.max_attempts == 3
        assert config.retry_delay == 1.0
        assert config.country_code == 1

    def test_generated_device_id(self):
        """Without a device ID the client generates a stable random one."""
        client = Life360Client(Life360Config(username="a", password="b"))
        device_id = client.get_device_id()
        assert len(device_id) == 16
        int(device_id, 16)
        assert client.get_device_id() == device_id

    def test_create_device_id_is_random(self):
        assert create_device_id() != create_device_id()

    def test_from_env(self):
        """Configuration from LIFE360_* environment variables."""
        config = Life360Config.from_env({
            "LIFE360_USERNAME": "env@example.com",
            "LIFE360_PASSWORD": "secret",
            "LIFE360_COUNTRYCODE": "+49",
            "LIFE360_DEVICEID": "feedfacecafebeef",
            "LIFE360_CLIENTVERSION": "23.1.0",
            "LIFE360_CLIENT_SECRET": "c2VjcmV0",
        }, retry_delay=0)

        assert config.username == "env@example.com"
        assert config.country_code == 49
        assert config.device_id == "feedfacecafebeef"
        assert config.client_version == "23.1.0"
        assert config.client_secret == "c2VjcmV0"
        assert config.user_agent == "SafetyMapKoko"
        assert config.retry_delay == 0

    def test_from_env_empty(self):
        config = Life360Config.from_env({})
        assert config.username is None
        assert config.phone_number is None


# =============================================================================
# Factory Tests
# =============================================================================

class TestFactories:
    """Tests for the client factory methods."""

    def test_from_username(self):
        client = Life360Client.from_username("a@b.c", "pw", client_secret="s")
        assert isinstance(client, Life360Client)
        assert not client.is_logged_in()

    def test_from_phone_number(self):
        client = Life360AsyncClient.from_phone_number(1, "5555550100", "pw")
        assert isinstance(client, Life360AsyncClient)

    def test_from_auth_token(self):
        client = Life360Client.from_auth_token("token_abc", "Bearer")
        assert client.is_logged_in()
        request = client.build_request("/v3/circles")
        assert request.headers["Authorization"] == "Bearer token_abc"

    def test_from_session(self):
        session = Session(access_token="token_xyz", token_type="Bearer")
        client = Life360Client.from_session(session, device_id="abcdefabcdefabcd")
        assert client.build_request("/v3/circles").headers["Authorization"] == "Bearer token_xyz"
        assert client.get_device_id() == "abcdefabcdefabcd"

    def test_create_life360_client(self, valid_config: Life360Config):
        assert isinstance(create_life360_client(valid_config), Life360Client)


# =============================================================================
# Sync Client Tests
# =============================================================================

class TestSyncClient:
    """Tests for synchronous client."""

    @respx.mock
    def test_login_success(self, sync_client: Life360Client, mock_login_response: Dict):
        """Test successful login."""
        route = respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )

        session = sync_client.login()

        assert session.access_token == "access_token_123"
        assert session.user is not None
        assert session.user.login_email == "test@example.com"
        assert sync_client.is_logged_in()
        assert sync_client.get_session() is session

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Basic dGVzdC1jbGllbnQtc2VjcmV0"
        assert request.headers["X-Device-ID"] == "0123456789abcdef"
        assert request.headers["User-Agent"] == "SafetyMapKoko/22.6.0.532/0123456789abcdef"
        assert json.loads(request.content) == {
            "grant_type": "password",
            "username": "test@example.com",
            "password": "password123",
            "countryCode": 1,
            "phone": "",
        }

    @respx.mock
    def test_login_captures_cookies(self, sync_client: Life360Client, mock_login_response: Dict):
        """Session cookies from the login are forwarded on later requests."""
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(
            200,
            json=mock_login_response,
            headers=[
                ("set-cookie", "SESSION=abc123; Expires=Wed, 21 Oct 2026 07:28:00 GMT; Path=/"),
                ("set-cookie", "lb=node7; Path=/v3"),
            ],
        ))

        sync_client.login()
        request = sync_client.build_request("/v3/circles")

        assert request.headers["Cookie"] == "SESSION=abc123;lb=node7"
        assert request.headers["Authorization"] == "Bearer access_token_123"

    @respx.mock
    def test_login_invalid_credentials(self, sync_client: Life360Client):
        """Test login with invalid credentials."""
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(400, json={"errorMessage": "Invalid credentials"})
        )

        with pytest.raises(AuthenticationError) as exc_info:
            sync_client.login()

        assert exc_info.value.status_code == 400
        assert exc_info.value.status_text == "Bad Request"
        assert exc_info.value.body == {"errorMessage": "Invalid credentials"}
        assert not sync_client.is_logged_in()
        assert sync_client.get_last_error() is exc_info.value

    @respx.mock
    def test_login_missing_access_token(self, sync_client: Life360Client):
        """A 2xx without access_token is a failed login."""
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json={"token_type": "Bearer"})
        )

        with pytest.raises(AuthenticationError) as exc_info:
            sync_client.login()

        assert exc_info.value.code == "MISSING_ACCESS_TOKEN"
        assert not sync_client.is_logged_in()

    @respx.mock
    def test_login_network_error(self, sync_client: Life360Client):
        respx.post(LOGIN_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(AuthenticationError) as exc_info:
            sync_client.login()

        assert exc_info.value.code == "NETWORK_ERROR"
        assert isinstance(exc_info.value.__cause__, NetworkError)

    @respx.mock
    def test_failed_login_clears_previous_session(
        self, sync_client: Life360Client, mock_login_response: Dict
    ):
        respx.post(LOGIN_URL).mock(side_effect=[
            httpx.Response(200, json=mock_login_response),
            httpx.Response(401),
        ])

        sync_client.login()
        assert sync_client.is_logged_in()

        with pytest.raises(AuthenticationError):
            sync_client.login()
        assert not sync_client.is_logged_in()
        assert sync_client.get_session() is None

    def test_login_without_client_secret(self):
        client = Life360Client(Life360Config(username="a", password="b"))
        with pytest.raises(ConfigurationError):
            client.login()

    def test_login_without_credentials(self):
        client = Life360Client.from_auth_token("token", client_secret="s")
        with pytest.raises(AuthenticationError) as exc_info:
            client.login()
        assert exc_info.value.code == "MISSING_CREDENTIALS"
        assert not client.is_logged_in()

    @respx.mock
    def test_logout(self, sync_client: Life360Client, mock_login_response: Dict):
        """Logout clears the session without a network call."""
        login_route = respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )

        sync_client.login()
        assert sync_client.is_logged_in()

        sync_client.logout()
        assert not sync_client.is_logged_in()
        assert sync_client.get_session() is None

        sync_client.logout()
        assert not sync_client.is_logged_in()
        assert login_route.call_count == 1

    @respx.mock
    def test_logout_drops_session_cookies(
        self, sync_client: Life360Client, mock_login_response: Dict
    ):
        """Cookies of a dropped session are not sent with the next login."""
        login_route = respx.post(LOGIN_URL).mock(return_value=httpx.Response(
            200, json=mock_login_response, headers=[("set-cookie", "sid=OLD; Path=/")]
        ))

        sync_client.login()
        sync_client.logout()
        sync_client.login()

        assert "cookie" not in login_route.calls.last.request.headers

    @respx.mock
    def test_login_change_callback(self, valid_config: Life360Config, mock_login_response: Dict):
        """The login state listener sees every login and logout."""
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        listener = MagicMock()
        valid_config.on_login_change = listener
        client = Life360Client(valid_config)

        client.login()
        client.logout()

        assert [c.args for c in listener.call_args_list] == [(True,), (False,)]

    def test_build_request_requires_login(self, sync_client: Life360Client):
        with pytest.raises(NotLoggedInError):
            sync_client.build_request("/v3/circles")

    @respx.mock
    def test_get_circles_logs_in_first(
        self, sync_client: Life360Client, mock_login_response: Dict, mock_circle: Dict
    ):
        """The first call logs in automatically."""
        login_route = respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        circles_route = respx.get(CIRCLES_URL).mock(
            return_value=httpx.Response(200, json={"circles": [mock_circle]})
        )

        circles = sync_client.get_circles()

        assert login_route.call_count == 1
        assert circles_route.call_count == 1
        assert len(circles) == 1
        assert isinstance(circles[0], Circle)
        assert circles[0].name == "Family"
        assert circles[0].member_count == 2
        assert circles[0].members[0].location is not None
        assert circles[0].members[0].location.battery == 87
        assert circles_route.calls.last.request.headers["Authorization"] == "Bearer access_token_123"

    @respx.mock
    def test_get_circles_empty(self, sync_client: Life360Client, mock_login_response: Dict, caplog):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(CIRCLES_URL).mock(return_value=httpx.Response(200, json={"circles": []}))

        with caplog.at_level(logging.WARNING, logger="life360_api"):
            assert sync_client.get_circles() == []
        assert "No circles" in caplog.text

    @respx.mock
    def test_get_circle(self, sync_client: Life360Client, mock_login_response: Dict, mock_circle: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(f"{CIRCLES_URL}/circle_1").mock(
            return_value=httpx.Response(200, json=mock_circle)
        )

        circle = sync_client.get_circle("circle_1")

        assert circle.id == "circle_1"
        assert circle.features.price_month == 4.99
        assert circle.members[0].is_admin is True

    @respx.mock
    def test_get_circle_members(self, sync_client: Life360Client, mock_login_response: Dict, mock_circle: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(f"{CIRCLES_URL}/circle_1/members").mock(
            return_value=httpx.Response(200, json={"members": mock_circle["members"]})
        )

        members = sync_client.get_circle_members("circle_1")

        assert len(members) == 1
        assert isinstance(members[0], Member)
        assert members[0].full_name == "Ada Lovelace"
        assert members[0].features.share_location is True

    @respx.mock
    def test_get_circle_members_location(self, sync_client: Life360Client, mock_login_response: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(f"{CIRCLES_URL}/circle_1/members/history").mock(
            return_value=httpx.Response(200, json={"locations": [
                {"latitude": "52.52", "longitude": "13.405", "userId": "member_1", "inTransit": "1"},
            ]})
        )

        locations = sync_client.get_circle_members_location("circle_1")

        assert locations[0].latitude == 52.52
        assert locations[0].user_id == "member_1"
        assert locations[0].in_transit is True

    @respx.mock
    def test_get_circle_places(self, sync_client: Life360Client, mock_login_response: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(f"{CIRCLES_URL}/circle_1/places").mock(
            return_value=httpx.Response(200, json={"places": [
                {"id": "place_1", "name": "Home", "latitude": "1.5", "longitude": "2.5", "radius": "150"},
            ]})
        )

        places = sync_client.get_circle_places("circle_1")

        assert isinstance(places[0], Place)
        assert places[0].radius == 150.0

    @respx.mock
    def test_get_circle_members_preferences(self, sync_client: Life360Client, mock_login_response: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(f"{CIRCLES_URL}/circle_1/members/preferences").mock(
            return_value=httpx.Response(200, json={
                "email": "1", "sms": "0", "push": "1", "shareLocation": "1",
            })
        )

        preferences = sync_client.get_circle_members_preferences("circle_1")

        assert preferences.email is True
        assert preferences.sms is False
        assert preferences.share_location is True

    @respx.mock
    def test_request_user_location_update(self, sync_client: Life360Client, mock_login_response: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        route = respx.post(f"{CIRCLES_URL}/circle_1/members/member_1/request").mock(
            return_value=httpx.Response(200, json={"requestId": "req_1", "isPollable": "1"})
        )

        result = sync_client.request_user_location_update("circle_1", "member_1")

        assert result.request_id == "req_1"
        assert result.is_pollable is True
        assert json.loads(route.calls.last.request.content) == {"type": "location"}

    def test_empty_circle_id(self, sync_client: Life360Client):
        with pytest.raises(ConfigurationError):
            sync_client.get_circle("")

    @respx.mock
    def test_last_response(self, mock_login_response: Dict):
        client = Life360Client.from_auth_token("token", retry_delay=0)
        respx.get(CIRCLES_URL).mock(return_value=httpx.Response(200, json={"circles": []}))

        client.get_circles()

        assert client.get_last_response() is not None
        assert client.get_last_response().status_code == 200

    @respx.mock
    def test_context_manager(self, valid_config: Life360Config, mock_login_response: Dict):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )

        with Life360Client(valid_config) as client:
            assert client.login().access_token == "access_token_123"


# =============================================================================
# Async Client Tests
# =============================================================================

class TestAsyncClient:
    """Tests for asynchronous client."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_login_success(self, async_client: Life360AsyncClient, mock_login_response: Dict):
        """Test successful async login."""
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )

        session = await async_client.login()

        assert session.access_token == "access_token_123"
        assert async_client.is_logged_in()

        await async_client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_login_failure(self, async_client: Life360AsyncClient):
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(403))

        with pytest.raises(AuthenticationError) as exc_info:
            await async_client.login()

        assert exc_info.value.status_code == 403
        assert not async_client.is_logged_in()

        await async_client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_logout_drops_session_cookies(
        self, async_client: Life360AsyncClient, mock_login_response: Dict
    ):
        login_route = respx.post(LOGIN_URL).mock(return_value=httpx.Response(
            200, json=mock_login_response, headers=[("set-cookie", "sid=OLD; Path=/")]
        ))

        await async_client.login()
        async_client.logout()
        await async_client.login()

        assert "cookie" not in login_route.calls.last.request.headers

        await async_client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_get_circles(
        self, async_client: Life360AsyncClient, mock_login_response: Dict, mock_circle: Dict
    ):
        login_route = respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.get(CIRCLES_URL).mock(
            return_value=httpx.Response(200, json={"circles": [mock_circle]})
        )

        circles = await async_client.get_circles()

        assert login_route.call_count == 1
        assert circles[0].id == "circle_1"

        await async_client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_user_location_update(
        self, async_client: Life360AsyncClient, mock_login_response: Dict
    ):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )
        respx.post(f"{CIRCLES_URL}/c1/members/m1/request").mock(
            return_value=httpx.Response(200, json={"requestId": "req_9", "isPollable": "0"})
        )

        result = await async_client.request_user_location_update("c1", "m1")

        assert result.request_id == "req_9"
        assert result.is_pollable is False

        await async_client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_context_manager(self, valid_config: Life360Config, mock_login_response: Dict):
        """Test async context manager."""
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, json=mock_login_response)
        )

        async with Life360AsyncClient(valid_config) as client:
            session = await client.login()
            assert session.user is not None


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Tests for error handling."""

    def test_life360_error_to_dict(self):
        """Test error serialization."""
        error = Life360Error(
            code="TEST_ERROR",
            message="Test error message",
            status_code=404,
            status_text="Not Found",
            body={"errorMessage": "nope"},
        )

        error_dict = error.to_dict()

        assert error_dict["code"] == "TEST_ERROR"
        assert error_dict["message"] == "Test error message"
        assert error_dict["status_code"] == 404
        assert error_dict["status_text"] == "Not Found"
        assert error_dict["body"] == {"errorMessage": "nope"}

    def test_retriable_error(self):
        error = RetriableApiError(404, "Not Found")
        assert error.retryable
        assert error.message == "HTTP 404 Not Found"

    def test_fatal_error(self):
        error = FatalApiError(500, "Internal Server Error")
        assert not error.retryable
        assert isinstance(error, Life360Error)

    def test_not_logged_in_error(self):
        error = NotLoggedInError()
        assert error.code == "NOT_LOGGED_IN"
        assert error.status_code == 0

"""
Life360 API SDK Request Builder

Turns an endpoint path into a fully formed, authenticated request.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import ConfigurationError, NotLoggedInError
from .session import SessionState


@dataclass(frozen=True)
class RequestDescriptor:
    """One HTTP request, built fresh for every attempt."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


class RequestBuilder:
    """Builds authenticated requests from the current session state."""

    def __init__(
        self,
        state: SessionState,
        base_url: str,
        device_id: str,
        user_agent: str,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._state = state
        self._base_url = base_url.rstrip("/")
        self._device_id = device_id
        self._user_agent = user_agent
        self._extra_headers = dict(extra_headers or {})

    def build(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
    ) -> RequestDescriptor:
        """
        Build a request for ``path``.

        Raises:
            ConfigurationError: If ``path`` is empty
            NotLoggedInError: If the session holds no access token
        """
        if not path:
            raise ConfigurationError("endpoint path is missing or empty")
        if not self._state.is_authenticated:
            raise NotLoggedInError()

        headers: Dict[str, str] = {
            "Accept": "application/json",
            **self._extra_headers,
            "Authorization": self._state.authorization(),
            "X-Device-ID": self._device_id,
            "User-Agent": self._user_agent,
        }
        cookie_header = self._state.cookie_header
        if cookie_header:
            headers["Cookie"] = cookie_header
        if body is not None:
            headers["Content-Type"] = "application/json"

        return RequestDescriptor(
            method=method.upper(),
            url=f"{self._base_url}{path}",
            headers=headers,
            body=body,
        )

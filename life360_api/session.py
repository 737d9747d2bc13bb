"""
Life360 API SDK Session State

Holds the bearer token and the session cookies captured at login.
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class SessionCookie:
    """A cookie from a login response, forwarded verbatim afterwards."""

    cookie: str
    expires_at: Optional[datetime] = None
    path: Optional[str] = None


def _parse_expires(value: str) -> Optional[datetime]:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def parse_set_cookie_headers(headers: Iterable[str]) -> List[SessionCookie]:
    """Parse raw ``set-cookie`` header values into session cookies."""
    cookies: List[SessionCookie] = []
    for header in headers:
        parts = [part.strip() for part in header.split(";")]
        if not parts or not parts[0]:
            continue

        expires_at: Optional[datetime] = None
        path: Optional[str] = None
        for attribute in parts[1:]:
            name, _, value = attribute.partition("=")
            name = name.strip().lower()
            if name == "expires":
                expires_at = _parse_expires(value.strip())
            elif name == "path":
                path = value.strip()

        cookies.append(SessionCookie(parts[0], expires_at, path))
    return cookies


class SessionState:
    """
    Authenticated context of one client: token, token type and cookies.

    ``is_authenticated`` is true iff the access token is non-empty.
    Written only by login, logout and the executor's 403 handling.
    """

    def __init__(
        self,
        access_token: str = "",
        token_type: str = "",
        cookies: Optional[List[SessionCookie]] = None,
    ) -> None:
        self._access_token = access_token
        self._token_type = token_type
        self._cookies: List[SessionCookie] = list(cookies or [])
        self._lock = threading.Lock()

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    @property
    def token_type(self) -> str:
        with self._lock:
            return self._token_type

    @property
    def cookies(self) -> List[SessionCookie]:
        with self._lock:
            return list(self._cookies)

    @property
    def cookie_header(self) -> str:
        """All cookie pairs joined into a single ``Cookie`` header value."""
        with self._lock:
            return ";".join(c.cookie for c in self._cookies)

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return bool(self._access_token)

    def authorization(self) -> str:
        """Value of the ``Authorization`` header for the current token."""
        with self._lock:
            return f"{self._token_type} {self._access_token}".strip()

    def set_session(
        self,
        access_token: str,
        token_type: str,
        cookies: Optional[List[SessionCookie]] = None,
    ) -> None:
        """Replace the whole session. No partial merge."""
        with self._lock:
            self._access_token = access_token
            self._token_type = token_type
            self._cookies = list(cookies or [])

    def clear(self) -> None:
        """Forget token and cookies. Idempotent."""
        with self._lock:
            self._access_token = ""
            self._token_type = ""
            self._cookies = []

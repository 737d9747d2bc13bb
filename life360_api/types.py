"""
Life360 API SDK Type Definitions

Configuration, credentials and the typed response models. The service
encodes most flags as "0"/"1" strings and most numbers as strings; every
``from_dict`` converts those explicitly and raises ResponseParseError on
values it cannot convert.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from .errors import ResponseParseError


DEFAULT_BASE_URL = "https://www.life360.com"
# Must track the current mobile app release
DEFAULT_CLIENT_VERSION = "22.6.0.532"
DEFAULT_USER_AGENT = "SafetyMapKoko"

T = TypeVar("T")


# =============================================================================
# Conversion helpers
# =============================================================================

def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes")


def _to_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise ResponseParseError(f"Field {name!r} is not an integer: {value!r}")


def _to_float(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        raise ResponseParseError(f"Field {name!r} is not a number: {value!r}")


def _to_datetime(value: Any, name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value)
        except (OverflowError, OSError, ValueError):
            raise ResponseParseError(f"Field {name!r} is not a timestamp: {value!r}")
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ResponseParseError(f"Field {name!r} is not a date: {value!r}")


def _optional_bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    return False if value is None else _to_bool(value)


def _mapping(data: Any, model: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ResponseParseError(f"{model} must be an object", data)
    return data


def _require(data: Any, key: str, model: str) -> Any:
    data = _mapping(data, model)
    if data.get(key) in (None, ""):
        raise ResponseParseError(f"{model} is missing required field {key!r}", data)
    return data[key]


def _parse_list(model: Type[T], data: Any, name: str) -> List[T]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ResponseParseError(f"{name} must be a list", data)
    return [model.from_dict(item) for item in data]  # type: ignore[attr-defined]


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class RetryOptions:
    """Per-call overrides for the request executor. None uses the client config."""

    max_attempts: Optional[int] = None
    retry_delay: Optional[float] = None
    auto_reconnect: Optional[bool] = None


@dataclass
class Life360Config:
    """SDK configuration. Every recognized option is listed here."""

    # E-mail address for login
    username: Optional[str] = None
    password: Optional[str] = None
    # Phone number without country code, for phone login
    phone_number: Optional[str] = None
    country_code: int = 1
    # Stable device identifier (default: random per client)
    device_id: Optional[str] = None
    client_version: str = DEFAULT_CLIENT_VERSION
    user_agent: str = DEFAULT_USER_AGENT
    base_url: str = DEFAULT_BASE_URL
    # Basic-auth secret of the mobile app, required for login
    client_secret: Optional[str] = None
    # Request timeout in seconds (default: 30)
    timeout: float = 30.0
    # Log in again automatically when the session is missing or revoked
    auto_reconnect: bool = True
    # Delay between attempts in seconds (default: 1.0)
    retry_delay: float = 1.0
    # Attempts per logical call (default: 3)
    max_attempts: int = 3
    # Pre-seeded session, e.g. taken from another client
    access_token: Optional[str] = None
    token_type: str = "Bearer"
    # Enable debug logging (default: False)
    debug: bool = False
    # Custom headers to include in requests
    headers: Optional[Dict[str, str]] = None
    # Called with the new login state after login and logout
    on_login_change: Optional[Callable[[bool], None]] = None

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "Life360Config":
        """Build a configuration from LIFE360_* environment variables."""
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            "username": env.get("LIFE360_USERNAME") or None,
            "password": env.get("LIFE360_PASSWORD") or None,
            "phone_number": env.get("LIFE360_PHONENUMBER") or None,
            "device_id": env.get("LIFE360_DEVICEID") or None,
            "client_secret": env.get("LIFE360_CLIENT_SECRET") or None,
        }
        if env.get("LIFE360_COUNTRYCODE"):
            values["country_code"] = int(env["LIFE360_COUNTRYCODE"].lstrip("+"))
        if env.get("LIFE360_CLIENTVERSION"):
            values["client_version"] = env["LIFE360_CLIENTVERSION"]
        if env.get("LIFE360_USERAGENT"):
            values["user_agent"] = env["LIFE360_USERAGENT"]
        if env.get("LIFE360_BASE_URL"):
            values["base_url"] = env["LIFE360_BASE_URL"]
        values.update(overrides)
        return cls(**values)


@dataclass
class LoginCredentials:
    """Username/password or country code/phone/password credentials."""

    password: str
    username: str = ""
    phone_number: str = ""
    country_code: int = 1

    def is_complete(self) -> bool:
        if not self.password:
            return False
        return bool(self.username) or bool(self.country_code and self.phone_number)

    def to_dict(self) -> Dict[str, Any]:
        """Body of the token exchange request."""
        return {
            "grant_type": "password",
            "username": self.username,
            "password": self.password,
            "countryCode": self.country_code,
            "phone": self.phone_number,
        }


# =============================================================================
# Account
# =============================================================================

@dataclass
class Communication:
    """A contact channel (e-mail, phone) of a user or member."""

    channel: str
    value: str
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Communication":
        return cls(
            channel=_require(data, "channel", "Communication"),
            value=data.get("value", ""),
            type=data.get("type"),
        )


@dataclass
class MapSettings:
    police: bool = False
    fire: bool = False
    hospital: bool = False
    sex_offenders: bool = False
    crime: bool = False
    crime_duration: str = ""
    family: bool = False
    advisor: bool = False
    place_radius: bool = False
    member_radius: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MapSettings":
        data = _mapping(data, "MapSettings")
        return cls(
            police=_optional_bool(data, "police"),
            fire=_optional_bool(data, "fire"),
            hospital=_optional_bool(data, "hospital"),
            sex_offenders=_optional_bool(data, "sexOffenders"),
            crime=_optional_bool(data, "crime"),
            crime_duration=str(data.get("crimeDuration", "")),
            family=_optional_bool(data, "family"),
            advisor=_optional_bool(data, "advisor"),
            place_radius=_optional_bool(data, "placeRadius"),
            member_radius=_optional_bool(data, "memberRadius"),
        )


@dataclass
class AlertsSettings:
    crime: bool = False
    sound: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertsSettings":
        data = _mapping(data, "AlertsSettings")
        return cls(
            crime=_optional_bool(data, "crime"),
            sound=_optional_bool(data, "sound"),
        )


@dataclass
class UserSettings:
    """Account-wide user settings."""

    map: MapSettings = field(default_factory=MapSettings)
    alerts: AlertsSettings = field(default_factory=AlertsSettings)
    locale: str = ""
    unit_of_measure: str = ""
    date_format: str = ""
    time_zone: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSettings":
        data = _mapping(data, "UserSettings")
        return cls(
            map=MapSettings.from_dict(data.get("map") or {}),
            alerts=AlertsSettings.from_dict(data.get("alerts") or {}),
            locale=data.get("locale", ""),
            unit_of_measure=data.get("unitOfMeasure", ""),
            date_format=data.get("dateFormat", ""),
            time_zone=data.get("timeZone", ""),
        )


@dataclass
class User:
    """The logged-in account."""

    id: str
    first_name: str = ""
    last_name: str = ""
    login_email: str = ""
    login_phone: str = ""
    avatar: Optional[str] = None
    locale: str = ""
    language: str = ""
    created: Optional[datetime] = None
    settings: Optional[UserSettings] = None
    communications: List[Communication] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        settings_data = data.get("settings") if isinstance(data, Mapping) else None
        return cls(
            id=_require(data, "id", "User"),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            login_email=data.get("loginEmail", ""),
            login_phone=data.get("loginPhone", ""),
            avatar=data.get("avatar"),
            locale=data.get("locale", ""),
            language=data.get("language", ""),
            created=_to_datetime(data.get("created"), "created"),
            settings=UserSettings.from_dict(settings_data) if settings_data else None,
            communications=_parse_list(
                Communication, data.get("communications"), "communications"
            ),
        )


@dataclass
class Session:
    """Result of a successful login."""

    access_token: str
    token_type: str = "Bearer"
    onboarding: bool = False
    user: Optional[User] = None
    cobranding: List[Any] = field(default_factory=list)
    promotions: List[Any] = field(default_factory=list)
    state: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        user_data = data.get("user") if isinstance(data, Mapping) else None
        return cls(
            access_token=_require(data, "access_token", "Session"),
            token_type=data.get("token_type") or "Bearer",
            onboarding=_optional_bool(data, "onboarding"),
            user=User.from_dict(user_data) if user_data else None,
            cobranding=data.get("cobranding") or [],
            promotions=data.get("promotions") or [],
            state=data.get("state"),
        )


# =============================================================================
# Circles, members, locations, places
# =============================================================================

@dataclass
class Location:
    """A member's location fix."""

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[int] = None
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None
    since: Optional[int] = None
    timestamp: Optional[int] = None
    name: Optional[str] = None
    place_type: Optional[str] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    short_address: str = ""
    in_transit: bool = False
    trip_id: Optional[str] = None
    battery: Optional[int] = None
    charge: bool = False
    wifi_state: bool = False
    speed: Optional[float] = None
    is_driving: bool = False
    user_activity: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        data = _mapping(data, "Location")
        return cls(
            latitude=_to_float(data.get("latitude"), "latitude"),
            longitude=_to_float(data.get("longitude"), "longitude"),
            accuracy=_to_int(data.get("accuracy"), "accuracy"),
            start_timestamp=_to_int(data.get("startTimestamp"), "startTimestamp"),
            end_timestamp=_to_int(data.get("endTimestamp"), "endTimestamp"),
            since=_to_int(data.get("since"), "since"),
            timestamp=_to_int(data.get("timestamp"), "timestamp"),
            name=data.get("name"),
            place_type=data.get("placeType"),
            source=data.get("source"),
            source_id=data.get("sourceId"),
            address1=data.get("address1"),
            address2=data.get("address2"),
            short_address=data.get("shortAddress") or "",
            in_transit=_optional_bool(data, "inTransit"),
            trip_id=data.get("tripId"),
            battery=_to_int(data.get("battery"), "battery"),
            charge=_optional_bool(data, "charge"),
            wifi_state=_optional_bool(data, "wifiState"),
            speed=_to_float(data.get("speed"), "speed"),
            is_driving=_optional_bool(data, "isDriving"),
            user_activity=data.get("userActivity"),
            user_id=data.get("userId"),
        )


@dataclass
class MemberFeatures:
    device: bool = False
    smartphone: bool = False
    non_smartphone_locating: bool = False
    geofencing: bool = False
    share_location: bool = False
    share_off_timestamp: Optional[int] = None
    disconnected: bool = False
    pending_invite: bool = False
    map_display: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberFeatures":
        data = _mapping(data, "MemberFeatures")
        return cls(
            device=_optional_bool(data, "device"),
            smartphone=_optional_bool(data, "smartphone"),
            non_smartphone_locating=_optional_bool(data, "nonSmartphoneLocating"),
            geofencing=_optional_bool(data, "geofencing"),
            share_location=_optional_bool(data, "shareLocation"),
            share_off_timestamp=_to_int(
                data.get("shareOffTimestamp"), "shareOffTimestamp"
            ),
            disconnected=_optional_bool(data, "disconnected"),
            pending_invite=_optional_bool(data, "pendingInvite"),
            map_display=_optional_bool(data, "mapDisplay"),
        )


@dataclass
class MemberIssues:
    disconnected: bool = False
    type: Optional[str] = None
    status: Optional[str] = None
    title: Optional[str] = None
    dialog: Optional[str] = None
    action: Optional[str] = None
    troubleshooting: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberIssues":
        data = _mapping(data, "MemberIssues")
        return cls(
            disconnected=_optional_bool(data, "disconnected"),
            type=data.get("type"),
            status=data.get("status"),
            title=data.get("title"),
            dialog=data.get("dialog"),
            action=data.get("action"),
            troubleshooting=_optional_bool(data, "troubleshooting"),
        )


@dataclass
class Member:
    """A member of a circle."""

    id: str
    first_name: str = ""
    last_name: str = ""
    is_admin: bool = False
    avatar: Optional[str] = None
    login_email: str = ""
    login_phone: str = ""
    created_at: Optional[int] = None
    features: MemberFeatures = field(default_factory=MemberFeatures)
    issues: MemberIssues = field(default_factory=MemberIssues)
    location: Optional[Location] = None
    communications: List[Communication] = field(default_factory=list)
    medical: Any = None
    relation: Any = None
    activity: Any = None
    pin_number: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Member":
        member_id = _require(data, "id", "Member")
        location_data = data.get("location")
        return cls(
            id=member_id,
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            is_admin=_optional_bool(data, "isAdmin"),
            avatar=data.get("avatar"),
            login_email=data.get("loginEmail", ""),
            login_phone=data.get("loginPhone", ""),
            created_at=_to_int(data.get("createdAt"), "createdAt"),
            features=MemberFeatures.from_dict(data.get("features") or {}),
            issues=MemberIssues.from_dict(data.get("issues") or {}),
            location=Location.from_dict(location_data) if location_data else None,
            communications=_parse_list(
                Communication, data.get("communications"), "communications"
            ),
            medical=data.get("medical"),
            relation=data.get("relation"),
            activity=data.get("activity"),
            pin_number=data.get("pinNumber"),
        )


@dataclass
class CircleFeatures:
    owner_id: Optional[str] = None
    sku_id: Optional[str] = None
    premium: bool = False
    location_updates_left: Optional[int] = None
    price_month: Optional[float] = None
    price_year: Optional[float] = None
    sku_tier: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CircleFeatures":
        data = _mapping(data, "CircleFeatures")
        return cls(
            owner_id=data.get("ownerId"),
            sku_id=data.get("skuId"),
            premium=_optional_bool(data, "premium"),
            location_updates_left=_to_int(
                data.get("locationUpdatesLeft"), "locationUpdatesLeft"
            ),
            price_month=_to_float(data.get("priceMonth"), "priceMonth"),
            price_year=_to_float(data.get("priceYear"), "priceYear"),
            sku_tier=data.get("skuTier"),
        )


@dataclass
class Circle:
    """A circle (group of members sharing locations)."""

    id: str
    name: str = ""
    color: str = ""
    type: str = ""
    created_at: Optional[int] = None
    member_count: Optional[int] = None
    unread_messages: Optional[int] = None
    unread_notifications: Optional[int] = None
    features: CircleFeatures = field(default_factory=CircleFeatures)
    members: List[Member] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Circle":
        circle_id = _require(data, "id", "Circle")
        return cls(
            id=circle_id,
            name=data.get("name", ""),
            color=data.get("color", ""),
            type=data.get("type", ""),
            created_at=_to_int(data.get("createdAt"), "createdAt"),
            member_count=_to_int(data.get("memberCount"), "memberCount"),
            unread_messages=_to_int(data.get("unreadMessages"), "unreadMessages"),
            unread_notifications=_to_int(
                data.get("unreadNotifications"), "unreadNotifications"
            ),
            features=CircleFeatures.from_dict(data.get("features") or {}),
            members=_parse_list(Member, data.get("members"), "members"),
        )


@dataclass
class Place:
    """A named place (geofence) of a circle."""

    id: str
    owner_id: str = ""
    circle_id: str = ""
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: Optional[float] = None
    type: Optional[str] = None
    type_label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        place_id = _require(data, "id", "Place")
        return cls(
            id=place_id,
            owner_id=data.get("ownerId", ""),
            circle_id=data.get("circleId", ""),
            name=data.get("name", ""),
            latitude=_to_float(data.get("latitude"), "latitude"),
            longitude=_to_float(data.get("longitude"), "longitude"),
            radius=_to_float(data.get("radius"), "radius"),
            type=data.get("type"),
            type_label=data.get("typeLabel"),
        )


@dataclass
class LocationRequest:
    """Answer to a location update request."""

    request_id: str
    is_pollable: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationRequest":
        return cls(
            request_id=_require(data, "requestId", "LocationRequest"),
            is_pollable=_optional_bool(data, "isPollable"),
        )


@dataclass
class MemberPreferences:
    """The logged-in user's notification preferences for a circle."""

    email: bool = False
    sms: bool = False
    push: bool = False
    share_location: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberPreferences":
        data = _mapping(data, "MemberPreferences")
        return cls(
            email=_optional_bool(data, "email"),
            sms=_optional_bool(data, "sms"),
            push=_optional_bool(data, "push"),
            share_location=_optional_bool(data, "shareLocation"),
        )


def parse_circles(data: Any) -> List[Circle]:
    return _parse_list(Circle, data, "circles")


def parse_members(data: Any) -> List[Member]:
    return _parse_list(Member, data, "members")


def parse_locations(data: Any) -> List[Location]:
    return _parse_list(Location, data, "locations")


def parse_places(data: Any) -> List[Place]:
    return _parse_list(Place, data, "places")

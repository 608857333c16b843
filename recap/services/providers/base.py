"""Provider identifiers, the client capability interface and shared HTTP handling."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

import requests

from recap.models.domain import ActivityRecord, AthleteProfile, Credentials, DateWindow, RateLimitInfo
from recap.services.errors import (
    AuthExpired,
    InsufficientScope,
    NetworkError,
    ProviderError,
    ProviderTimeout,
    RateLimited,
    UnexpectedError,
)


logger = logging.getLogger(__name__)


class ProviderType(str, Enum):
    """Supported activity data providers; the value doubles as the cookie value."""

    STRAVA = "strava"
    INTERVALS_ICU = "intervalsicu"
    MOCK = "mock"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def cookie_value(self) -> str:
        return self.value


_DISPLAY_NAMES = {
    ProviderType.STRAVA: "Strava",
    ProviderType.INTERVALS_ICU: "intervals.icu",
    ProviderType.MOCK: "Mock",
}

PROVIDER_ALIASES: dict[str, ProviderType] = {
    "strava": ProviderType.STRAVA,
    "intervalsicu": ProviderType.INTERVALS_ICU,
    "intervals": ProviderType.INTERVALS_ICU,
    "intervals.icu": ProviderType.INTERVALS_ICU,
    "intervals-icu": ProviderType.INTERVALS_ICU,
    "intervals_icu": ProviderType.INTERVALS_ICU,
    "mock": ProviderType.MOCK,
}


def parse_provider_type(
    value: str | ProviderType | None,
    default: ProviderType = ProviderType.STRAVA,
) -> ProviderType:
    """Parse a provider identifier case-insensitively; unknown values fall back to ``default``."""

    if isinstance(value, ProviderType):
        return value
    if value is None or not str(value).strip():
        return default
    return PROVIDER_ALIASES.get(str(value).strip().lower(), default)


@runtime_checkable
class ProviderClient(Protocol):
    """Capability bundle every provider exposes.

    Routers and services call these methods without knowing which provider
    answers or how it paginates.
    """

    @property
    def provider_type(self) -> ProviderType:
        ...

    def fetch_activities(self, credentials: Credentials, window: DateWindow) -> list[ActivityRecord]:
        """Fetch every activity in ``window`` or raise a ``ProviderFailure``."""
        ...

    def generate_auth_url(self, state: str) -> str:
        ...

    def revoke_access(self, access_token: str) -> bool:
        ...

    def fetch_profile(self, credentials: Credentials) -> AthleteProfile | None:
        """Return the athlete profile, or ``None`` when it cannot be fetched."""
        ...


RateLimitParser = Callable[[requests.Response], "RateLimitInfo | None"]


def classify_response(
    response: requests.Response,
    provider_name: str,
    page: int,
    rate_limit_parser: RateLimitParser | None = None,
) -> None:
    """Raise the matching failure for a non-2xx response before the body is read."""

    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 401:
        logger.warning("%s returned 401 Unauthorized - token invalid or expired", provider_name)
        raise AuthExpired(status_code=status)

    if status == 403:
        logger.warning("%s returned 403 Forbidden - missing required scopes", provider_name)
        raise InsufficientScope(status_code=status)

    if status == 429:
        rate_limit = rate_limit_parser(response) if rate_limit_parser else None
        logger.warning("%s rate limit hit (429) on page %d", provider_name, page)
        raise RateLimited(status_code=status, rate_limit=rate_limit)

    logger.error(
        "%s API returned error on page %d: %s %s",
        provider_name,
        page,
        status,
        getattr(response, "reason", ""),
    )
    raise ProviderError(f"{provider_name} API error: {status}", status_code=status)


def request_json(
    session: requests.Session,
    url: str,
    *,
    access_token: str,
    params: dict[str, Any] | None,
    timeout: float,
    provider_name: str,
    page: int = 1,
    rate_limit_parser: RateLimitParser | None = None,
) -> Any:
    """Perform one authenticated GET and return the decoded JSON body."""

    try:
        response = session.get(
            url,
            params=params,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )
    # ConnectTimeout is both a Timeout and a ConnectionError; Timeout wins.
    except (requests.Timeout, TimeoutError) as err:
        logger.error("%s request timed out on page %d", provider_name, page)
        raise ProviderTimeout() from err
    except requests.RequestException as err:
        logger.error("HTTP error talking to %s on page %d: %s", provider_name, page, err)
        raise NetworkError(f"Network error communicating with {provider_name}") from err

    classify_response(response, provider_name, page, rate_limit_parser)

    try:
        return response.json()
    except ValueError as err:
        logger.error("%s returned a malformed body on page %d", provider_name, page)
        raise UnexpectedError(f"Malformed response from {provider_name}") from err


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""

    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0.0, float(value))


def as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return max(0, int(value))


def as_optional_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)

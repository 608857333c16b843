"""Immutable domain objects passed between providers, aggregator and API."""
from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlencode


@dataclass(frozen=True)
class ActivityRecord:
    """One workout as reported by a provider, normalised to metric units."""

    id: int
    name: str
    type: str
    start_time_utc: datetime
    distance_meters: float = 0.0
    moving_time_seconds: int = 0
    elevation_gain_meters: float = 0.0
    average_heartrate: float | None = None
    max_heartrate: float | None = None

    @property
    def day_key(self) -> str:
        """UTC calendar date as ``YYYY-MM-DD``."""
        return self.start_time_utc.date().isoformat()


@dataclass(frozen=True)
class DateWindow:
    """Inclusive UTC range a recap covers."""

    start_utc: datetime
    end_utc: datetime

    def __post_init__(self) -> None:
        if self.start_utc > self.end_utc:
            raise ValueError(
                f"DateWindow start {self.start_utc.isoformat()} is after end {self.end_utc.isoformat()}"
            )

    def contains(self, moment: datetime) -> bool:
        return self.start_utc <= moment <= self.end_utc


@dataclass(frozen=True)
class Credentials:
    """Bearer token handed over by the OAuth layer."""

    access_token: str | None
    expires_at: int | None = None

    def is_valid(self, now: float | None = None) -> bool:
        """Token present and either without expiry or expiring in the future."""
        if not self.access_token or not self.access_token.strip():
            return False
        if self.expires_at is None:
            return True
        current = time.time() if now is None else now
        return self.expires_at > current


@dataclass(frozen=True)
class RateLimitInfo:
    """Provider rate-limit counters as reported on a 429 response."""

    limit: str | None = None
    usage: str | None = None
    read_limit: str | None = None
    read_usage: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "limit": self.limit,
            "usage": self.usage,
            "readLimit": self.read_limit,
            "readUsage": self.read_usage,
        }


@dataclass(frozen=True)
class AthleteProfile:
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class RecapQuery:
    """Raw date-window inputs exactly as the caller supplied them."""

    type: str = "rolling"
    days: str | int | None = None
    unit: str | None = None
    offset: str | int | None = None
    activity_type: str | None = None
    activity_group: str | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {"type": self.type}
        if self.type == "rolling":
            if self.days is not None:
                params["days"] = str(self.days)
        else:
            params["unit"] = self.unit or "month"
            if self.offset is not None:
                params["offset"] = str(self.offset)
        if self.activity_type:
            params["activityType"] = self.activity_type
        if self.activity_group:
            params["activityGroup"] = self.activity_group
        return params

    def to_query_string(self) -> str:
        """Exact query string used as the recap cache fingerprint."""
        return urlencode(self.to_params())

"""Pydantic models describing API payloads."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recap.models.domain import ActivityRecord, AthleteProfile

EffortMetric = Literal["distance", "time", "none"]


def isoformat_utc(moment: datetime) -> str:
    """ISO-8601 with a ``Z`` suffix."""

    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base schema serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActivitySummary(CamelModel):
    """One activity as exposed by highlight slots."""

    id: int
    name: str
    type: str
    start_date_utc: str
    distance_m: float = Field(ge=0)
    moving_time_sec: int = Field(ge=0)
    elevation_m: float = Field(ge=0)
    average_heartrate: float | None = None
    max_heartrate: float | None = None

    @classmethod
    def from_record(cls, record: ActivityRecord) -> "ActivitySummary":
        return cls(
            id=record.id,
            name=record.name,
            type=record.type,
            start_date_utc=isoformat_utc(record.start_time_utc),
            distance_m=record.distance_meters,
            moving_time_sec=record.moving_time_seconds,
            elevation_m=record.elevation_gain_meters,
            average_heartrate=record.average_heartrate,
            max_heartrate=record.max_heartrate,
        )


class ActivityTotal(CamelModel):
    activities: int = Field(ge=0)
    distance_m: float = Field(ge=0)
    moving_time_sec: int = Field(ge=0)
    elevation_m: float = Field(ge=0)


class ActivityBreakdown(CamelModel):
    """Totals for one exact activity type."""

    type: str
    activities: int = Field(ge=0)
    distance_m: float = Field(ge=0)
    moving_time_sec: int = Field(ge=0)
    elevation_m: float = Field(ge=0)


class RecapActivityDay(CamelModel):
    """Heatmap entry for one UTC calendar date."""

    date: str
    activities: int = Field(ge=0)
    distance_m: float = Field(ge=0)
    moving_time_sec: int = Field(ge=0)
    effort_score: int = Field(ge=0, le=100)
    effort_metric: EffortMetric = "none"
    effort_value: float = Field(default=0.0, ge=0)
    effort_type: str | None = None
    types: list[str] = []


class RecapDaySummary(CamelModel):
    date: str
    activities: int
    distance_m: float
    moving_time_sec: int
    elevation_m: float


class RecapWeekSummary(CamelModel):
    start_date: str
    end_date: str
    activities: int
    distance_m: float
    moving_time_sec: int
    elevation_m: float


class RecapTimeOfDay(CamelModel):
    persona: str
    bucket: str
    activities: int
    total_activities: int
    percent: int = Field(ge=0, le=100)


class RecapHighlights(CamelModel):
    """Named highlight slots; a slot stays ``None`` when nothing qualifies."""

    longest_activity: ActivitySummary | None = None
    farthest_activity: ActivitySummary | None = None
    biggest_climb_activity: ActivitySummary | None = None
    fastest_pace_activity: ActivitySummary | None = None
    best_5k_activity: ActivitySummary | None = Field(default=None, alias="best5kActivity")
    best_10k_activity: ActivitySummary | None = Field(default=None, alias="best10kActivity")
    most_active_day: RecapDaySummary | None = None
    longest_weekly_distance: RecapWeekSummary | None = None
    time_of_day_persona: RecapTimeOfDay | None = None
    highest_avg_heartrate_activity: ActivitySummary | None = None
    highest_max_heartrate_activity: ActivitySummary | None = None


class RecapRange(CamelModel):
    start_utc: str
    end_utc: str


class RecapResult(CamelModel):
    """Aggregated recap for one window, before the response envelope."""

    provider: str
    range: RecapRange
    total: ActivityTotal
    available_activity_types: list[str] = []
    breakdown: list[ActivityBreakdown] = []
    active_days: list[str] = []
    activity_days: list[RecapActivityDay] = []
    highlights: RecapHighlights = Field(default_factory=RecapHighlights)


class RecapResponse(RecapResult):
    """Successful ``GET /api/recap`` payload."""

    connected: Literal[True] = True


class AthleteProfileSchema(CamelModel):
    first_name: str
    last_name: str
    full_name: str

    @classmethod
    def from_profile(cls, profile: AthleteProfile) -> "AthleteProfileSchema":
        return cls(
            first_name=profile.first_name,
            last_name=profile.last_name,
            full_name=profile.full_name,
        )


class ProfileResponse(CamelModel):
    """``GET /api/me`` payload."""

    connected: bool
    provider: str | None = None
    profile: AthleteProfileSchema | None = None

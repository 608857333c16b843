"""Offline provider producing deterministic activities for local development."""
from __future__ import annotations

import logging
import random
from datetime import datetime, time, timedelta, timezone
from typing import NamedTuple

from recap.models.domain import ActivityRecord, AthleteProfile, Credentials, DateWindow
from recap.services.providers.base import ProviderType


logger = logging.getLogger(__name__)


class _Template(NamedTuple):
    name: str
    type: str
    distance_km: float
    moving_minutes: int
    elevation_m: float
    avg_hr: float | None = None
    max_hr: float | None = None
    weight: int = 1


RUN_VARIATIONS = (
    _Template("Morning Run", "Run", 8.5, 48, 85),
    _Template("Easy Run", "Run", 6.2, 36, 45),
    _Template("Tempo Run", "Run", 10.2, 55, 120),
    _Template("Recovery Jog", "Run", 5.0, 32, 30),
    _Template("Long Run", "Run", 16.8, 98, 180),
    _Template("Interval Session", "Run", 7.5, 42, 60),
    _Template("Hill Workout", "Run", 9.0, 52, 210),
)

EXTRA_ACTIVITIES = (
    _Template("Evening Walk", "Walk", 4.1, 50, 40, None, None, 25),
    _Template("Mountain Hike", "Hike", 12.5, 180, 820, 132, 158, 10),
    _Template("Pool Laps", "Swim", 1.8, 45, 0, 124, 141, 15),
    _Template("Trail Session", "TrailRun", 15.3, 95, 480, 152, 178, 12),
    _Template("Strength Circuit", "WeightTraining", 0.0, 50, 0, 118, 135, 20),
    _Template("Vinyasa Flow", "Yoga", 0.0, 40, 0, 102, 118, 15),
    _Template("Lunch Ride", "Ride", 24.6, 70, 210, 136, 165, 18),
    _Template("Row Intervals", "Rowing", 5.0, 30, 0, 142, 168, 10),
    _Template("Gravel Grind", "GravelRide", 46.0, 130, 540, 138, 171, 8),
    _Template("Long Trail Day", "TrailRun", 28.4, 220, 1320, 146, 172, 5),
    _Template("Stair Climber", "Elliptical", 0.0, 35, 0, 120, 140, 12),
    _Template("Open Water", "Swim", 2.4, 52, 0, 125, 146, 8),
    _Template("Sunset Hike", "Hike", 9.8, 140, 650, 128, 154, 10),
    _Template("Indoor Ride", "VirtualRide", 30.0, 75, 320, 139, 168, 15),
)

EXTRA_ACTIVITY_CHANCE = 40


def _seed_for(day: datetime) -> int:
    return day.year * 10000 + day.month * 100 + day.day


def _record(
    activity_id: int,
    template: _Template,
    start: datetime,
    rng: random.Random,
    avg_hr: float | None,
    max_hr: float | None,
) -> ActivityRecord:
    return ActivityRecord(
        id=activity_id,
        name=template.name,
        type=template.type,
        start_time_utc=start,
        distance_meters=round(template.distance_km * 1000 * (0.9 + rng.random() * 0.2), 1),
        moving_time_seconds=int(template.moving_minutes * 60 * (0.95 + rng.random() * 0.1)),
        elevation_gain_meters=round(template.elevation_m * (0.8 + rng.random() * 0.4), 1),
        average_heartrate=avg_hr,
        max_heartrate=max_hr,
    )


def build_mock_activities(window: DateWindow) -> list[ActivityRecord]:
    """Same window in, same activities out; newest first like the real APIs."""

    current = datetime.combine(window.start_utc.date(), time.min, tzinfo=timezone.utc)
    last_day = window.end_utc.date()
    rng = random.Random(_seed_for(current))
    total_weight = sum(template.weight for template in EXTRA_ACTIVITIES)

    activities: list[ActivityRecord] = []
    activity_id = 10_000
    while current.date() <= last_day:
        run = rng.choice(RUN_VARIATIONS)
        start = current + timedelta(hours=6 + rng.randrange(4))
        activities.append(
            _record(activity_id, run, start, rng, 145 + rng.randrange(15), 168 + rng.randrange(12))
        )
        activity_id += 1

        if rng.randrange(100) < EXTRA_ACTIVITY_CHANCE:
            pick = rng.randrange(total_weight)
            cumulative = 0
            for template in EXTRA_ACTIVITIES:
                cumulative += template.weight
                if pick < cumulative:
                    start = current + timedelta(hours=14 + rng.randrange(6))
                    activities.append(
                        _record(activity_id, template, start, rng, template.avg_hr, template.max_hr)
                    )
                    activity_id += 1
                    break

        current += timedelta(days=1)

    activities.sort(key=lambda record: record.start_time_utc, reverse=True)
    return activities


class MockProviderClient:
    """Stands in for Strava when ``use_mock_provider`` is enabled."""

    def __init__(self, redirect_uri: str = "") -> None:
        self._redirect_uri = redirect_uri

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.MOCK

    def fetch_activities(self, credentials: Credentials, window: DateWindow) -> list[ActivityRecord]:
        activities = build_mock_activities(window)
        logger.info("Generated %d mock activities", len(activities))
        return activities

    def generate_auth_url(self, state: str) -> str:
        return self._redirect_uri or "/"

    def revoke_access(self, access_token: str) -> bool:
        return True

    def fetch_profile(self, credentials: Credentials) -> AthleteProfile | None:
        return AthleteProfile("Mock", "Athlete")

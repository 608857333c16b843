"""Pure aggregation of an activity list into a recap."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from statistics import median
from typing import Callable, Iterable, Sequence

from recap.models.domain import ActivityRecord, DateWindow
from recap.models.schemas import (
    ActivityBreakdown,
    ActivitySummary,
    ActivityTotal,
    RecapActivityDay,
    RecapDaySummary,
    RecapHighlights,
    RecapRange,
    RecapResult,
    RecapTimeOfDay,
    RecapWeekSummary,
    isoformat_utc,
)
from recap.services.activity_groups import DEFAULT_ACTIVITY_GROUPS, ActivityGroups


logger = logging.getLogger(__name__)

BEST_EFFORT_TOLERANCE = 0.05
FIVE_K_METERS = 5000.0
TEN_K_METERS = 10000.0
TYPICAL_EFFORT_SCORE = 50
MAX_EFFORT_SCORE = 100
WEEK_DAYS = 7


@dataclass(frozen=True)
class PersonaBucket:
    bucket: str
    persona: str
    hours: frozenset[int]


PERSONA_BUCKETS: tuple[PersonaBucket, ...] = (
    PersonaBucket("early-morning", "Early Bird", frozenset(range(5, 9))),
    PersonaBucket("morning", "Morning Mover", frozenset(range(9, 12))),
    PersonaBucket("afternoon", "Afternoon Achiever", frozenset(range(12, 17))),
    PersonaBucket("evening", "Evening Energizer", frozenset(range(17, 21))),
    PersonaBucket("night", "Night Owl", frozenset((21, 22, 23, 0, 1, 2, 3, 4))),
)


def persona_bucket_for(hour: int) -> PersonaBucket:
    for bucket in PERSONA_BUCKETS:
        if hour in bucket.hours:
            return bucket
    raise ValueError(f"Hour out of range: {hour}")


def compute_total(activities: Sequence[ActivityRecord]) -> ActivityTotal:
    return ActivityTotal(
        activities=len(activities),
        distance_m=sum(record.distance_meters for record in activities),
        moving_time_sec=sum(record.moving_time_seconds for record in activities),
        elevation_m=sum(record.elevation_gain_meters for record in activities),
    )


def compute_breakdown(
    activities: Sequence[ActivityRecord],
    available_types: Sequence[str] | None = None,
) -> list[ActivityBreakdown]:
    """Per-type totals in first-seen order, or in ``available_types`` order when given.

    Types missing from ``available_types`` are appended in first-seen order so
    the per-type counts always add up to the total.
    """

    grouped: dict[str, list[ActivityRecord]] = {}
    for record in activities:
        grouped.setdefault(record.type, []).append(record)

    order = list(grouped)
    if available_types:
        preferred = [item for item in dict.fromkeys(available_types) if item in grouped]
        order = preferred + [item for item in order if item not in preferred]

    breakdown = []
    for activity_type in order:
        total = compute_total(grouped[activity_type])
        breakdown.append(ActivityBreakdown(type=activity_type, **total.model_dump()))
    return breakdown


def available_activity_types(activities: Iterable[ActivityRecord]) -> list[str]:
    """Distinct, non-blank activity types in first-seen order."""

    return [item for item in dict.fromkeys(record.type.strip() for record in activities) if item]


def compute_active_days(activities: Iterable[ActivityRecord]) -> list[str]:
    return sorted({record.day_key for record in activities})


def _typical(values: Iterable[float]) -> float:
    positive = [value for value in values if value > 0]
    return float(median(positive)) if positive else 0.0


def _dominant_type(records: Sequence[ActivityRecord], metric: Callable[[ActivityRecord], float]) -> str | None:
    contributions: dict[str, float] = {}
    for record in records:
        contributions[record.type] = contributions.get(record.type, 0.0) + metric(record)
    if not contributions:
        return None
    return max(contributions, key=lambda activity_type: contributions[activity_type])


def _distance(record: ActivityRecord) -> float:
    return record.distance_meters


def _moving_time(record: ActivityRecord) -> float:
    return float(record.moving_time_seconds)


def compute_activity_days(activities: Sequence[ActivityRecord]) -> list[RecapActivityDay]:
    """Heatmap entries, one per active day in ascending order.

    Each day's effort compares its distance and time against the median
    single-activity distance and time of the whole list. The larger ratio
    wins (ties go to distance) and scores ``round(50 * ratio)`` clamped to
    1..100, so a day matching one typical activity scores 50.
    """

    typical_distance = _typical(record.distance_meters for record in activities)
    typical_time = _typical(record.moving_time_seconds for record in activities)

    by_day: dict[str, list[ActivityRecord]] = {}
    for record in sorted(activities, key=lambda item: item.start_time_utc):
        by_day.setdefault(record.day_key, []).append(record)

    days = []
    for day_key in sorted(by_day):
        records = by_day[day_key]
        distance = sum(record.distance_meters for record in records)
        moving_time = sum(record.moving_time_seconds for record in records)

        distance_ratio = distance / typical_distance if typical_distance > 0 else 0.0
        time_ratio = moving_time / typical_time if typical_time > 0 else 0.0

        if distance_ratio <= 0 and time_ratio <= 0:
            metric, score, value, effort_type = "none", 0, 0.0, None
        elif distance_ratio >= time_ratio:
            metric, value = "distance", distance
            score = _effort_score(distance_ratio)
            effort_type = _dominant_type(records, _distance)
        else:
            metric, value = "time", float(moving_time)
            score = _effort_score(time_ratio)
            effort_type = _dominant_type(records, _moving_time)

        days.append(
            RecapActivityDay(
                date=day_key,
                activities=len(records),
                distance_m=distance,
                moving_time_sec=moving_time,
                effort_score=score,
                effort_metric=metric,
                effort_value=value,
                effort_type=effort_type,
                types=list(dict.fromkeys(record.type for record in records)),
            )
        )
    return days


def _effort_score(ratio: float) -> int:
    return max(1, min(MAX_EFFORT_SCORE, int(round(TYPICAL_EFFORT_SCORE * ratio))))


def _summary(record: ActivityRecord | None) -> ActivitySummary | None:
    return ActivitySummary.from_record(record) if record is not None else None


def _max_by(records: Sequence[ActivityRecord], key: Callable[[ActivityRecord], float]) -> ActivityRecord | None:
    # ``records`` is chronological, so max/min keep the earliest on ties.
    return max(records, key=key) if records else None


def _min_by(records: Sequence[ActivityRecord], key: Callable[[ActivityRecord], float]) -> ActivityRecord | None:
    return min(records, key=key) if records else None


def _best_effort(records: Sequence[ActivityRecord], target_meters: float) -> ActivityRecord | None:
    low = target_meters * (1 - BEST_EFFORT_TOLERANCE)
    high = target_meters * (1 + BEST_EFFORT_TOLERANCE)
    eligible = [
        record
        for record in records
        if low <= record.distance_meters <= high and record.moving_time_seconds > 0
    ]
    return _min_by(eligible, _moving_time)


def _most_active_day(days: Sequence[RecapActivityDay], elevation_by_day: dict[str, float]) -> RecapDaySummary | None:
    if not days:
        return None
    best = max(days, key=lambda day: day.activities)
    return RecapDaySummary(
        date=best.date,
        activities=best.activities,
        distance_m=best.distance_m,
        moving_time_sec=best.moving_time_sec,
        elevation_m=elevation_by_day.get(best.date, 0.0),
    )


def _longest_week(days: Sequence[RecapActivityDay], elevation_by_day: dict[str, float]) -> RecapWeekSummary | None:
    """Trailing seven-day window ``[D-6, D]`` with the largest distance."""

    best: RecapWeekSummary | None = None
    for day in days:
        end = date.fromisoformat(day.date)
        start = end - timedelta(days=WEEK_DAYS - 1)
        start_key, end_key = start.isoformat(), end.isoformat()
        in_week = [item for item in days if start_key <= item.date <= end_key]
        distance = sum(item.distance_m for item in in_week)
        if distance <= 0 or (best is not None and distance <= best.distance_m):
            continue
        best = RecapWeekSummary(
            start_date=start_key,
            end_date=end_key,
            activities=sum(item.activities for item in in_week),
            distance_m=distance,
            moving_time_sec=sum(item.moving_time_sec for item in in_week),
            elevation_m=sum(elevation_by_day.get(item.date, 0.0) for item in in_week),
        )
    return best


def _time_of_day_persona(records: Sequence[ActivityRecord]) -> RecapTimeOfDay | None:
    if not records:
        return None
    counts = Counter(persona_bucket_for(record.start_time_utc.hour) for record in records)
    # Counter keeps first-seen order, which is chronological here.
    winner, count = max(counts.items(), key=lambda item: item[1])
    return RecapTimeOfDay(
        persona=winner.persona,
        bucket=winner.bucket,
        activities=count,
        total_activities=len(records),
        percent=int(round(100 * count / len(records))),
    )


def compute_highlights(
    activities: Sequence[ActivityRecord],
    activity_days: Sequence[RecapActivityDay] | None = None,
    best_effort_groups: Iterable[str] | None = None,
    groups: ActivityGroups | None = None,
) -> RecapHighlights:
    groups = groups or DEFAULT_ACTIVITY_GROUPS
    records = sorted(activities, key=lambda record: record.start_time_utc)
    days = list(activity_days) if activity_days is not None else compute_activity_days(records)

    elevation_by_day: dict[str, float] = {}
    for record in records:
        elevation_by_day[record.day_key] = elevation_by_day.get(record.day_key, 0.0) + record.elevation_gain_meters

    best_effort_pool: Sequence[ActivityRecord] = records
    if best_effort_groups is not None:
        wanted = {group.lower() for group in best_effort_groups}
        best_effort_pool = [record for record in records if groups.group_for(record.type).lower() in wanted]

    paced = [
        record
        for record in records
        if record.distance_meters > 0 and record.moving_time_seconds > 0 and not groups.is_time_only(record.type)
    ]
    with_avg_hr = [record for record in records if record.average_heartrate is not None]
    with_max_hr = [record for record in records if record.max_heartrate is not None]

    return RecapHighlights(
        longest_activity=_summary(_max_by([r for r in records if r.moving_time_seconds > 0], _moving_time)),
        farthest_activity=_summary(_max_by([r for r in records if r.distance_meters > 0], _distance)),
        biggest_climb_activity=_summary(
            _max_by([r for r in records if r.elevation_gain_meters > 0], lambda r: r.elevation_gain_meters)
        ),
        fastest_pace_activity=_summary(_min_by(paced, lambda r: r.moving_time_seconds / r.distance_meters)),
        best_5k_activity=_summary(_best_effort(best_effort_pool, FIVE_K_METERS)),
        best_10k_activity=_summary(_best_effort(best_effort_pool, TEN_K_METERS)),
        most_active_day=_most_active_day(days, elevation_by_day),
        longest_weekly_distance=_longest_week(days, elevation_by_day),
        time_of_day_persona=_time_of_day_persona(records),
        highest_avg_heartrate_activity=_summary(_max_by(with_avg_hr, lambda r: r.average_heartrate or 0.0)),
        highest_max_heartrate_activity=_summary(_max_by(with_max_hr, lambda r: r.max_heartrate or 0.0)),
    )


def aggregate(
    activities: Sequence[ActivityRecord],
    window: DateWindow,
    provider: str = "strava",
    available_types: Sequence[str] | None = None,
    best_effort_groups: Iterable[str] | None = None,
    groups: ActivityGroups | None = None,
) -> RecapResult:
    """Build the full recap for ``activities``.

    The caller is responsible for restricting ``activities`` to ``window``;
    ``available_types`` lets it report types seen before any type filter.
    """

    activity_days = compute_activity_days(activities)
    breakdown = compute_breakdown(activities, available_types)
    types = (
        [item for item in dict.fromkeys(t.strip() for t in available_types) if item]
        if available_types is not None
        else [item.type for item in breakdown if item.type.strip()]
    )

    result = RecapResult(
        provider=provider,
        range=RecapRange(start_utc=isoformat_utc(window.start_utc), end_utc=isoformat_utc(window.end_utc)),
        total=compute_total(activities),
        available_activity_types=types,
        breakdown=breakdown,
        active_days=compute_active_days(activities),
        activity_days=activity_days,
        highlights=compute_highlights(activities, activity_days, best_effort_groups, groups),
    )
    logger.debug(
        "Aggregated %d activities into %d breakdown entries over %d active days",
        result.total.activities,
        len(result.breakdown),
        len(result.active_days),
    )
    return result

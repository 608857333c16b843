"""Tests for recap aggregation, effort scoring and highlights."""
from datetime import datetime, timezone

import pytest

from recap.models.domain import DateWindow
from recap.services.activity_groups import DEFAULT_ACTIVITY_GROUPS, ActivityGroups
from recap.services.recap_aggregator import (
    aggregate,
    compute_activity_days,
    compute_breakdown,
    compute_highlights,
    persona_bucket_for,
)

WINDOW = DateWindow(
    datetime(2024, 6, 1, tzinfo=timezone.utc),
    datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc),
)


def test_three_activities_on_two_days(make_activity):
    activities = [
        make_activity("2024-06-10T07:00:00", "Run", 5000, 1500),
        make_activity("2024-06-10T18:00:00", "Ride", 20000, 3600),
        make_activity("2024-06-12T07:00:00", "Run", 8000, 2400),
    ]

    result = aggregate(activities, WINDOW)

    assert result.total.activities == 3
    assert result.active_days == ["2024-06-10", "2024-06-12"]
    assert sum(item.activities for item in result.breakdown) == 3
    assert result.provider == "strava"
    assert result.range.start_utc == "2024-06-01T00:00:00Z"


def test_breakdown_sums_match_totals(make_activity):
    activities = [
        make_activity("2024-06-02T07:00:00", "Run", 5000.5, 1500, 10),
        make_activity("2024-06-03T07:00:00", "Swim", 1500, 2000),
        make_activity("2024-06-04T07:00:00", "Run", 10000.25, 3100, 40),
        make_activity("2024-06-04T19:00:00", "Yoga", 0, 1800),
    ]

    result = aggregate(activities, WINDOW)

    assert sum(item.activities for item in result.breakdown) == result.total.activities
    assert sum(item.distance_m for item in result.breakdown) == pytest.approx(result.total.distance_m)
    assert sum(item.moving_time_sec for item in result.breakdown) == result.total.moving_time_sec


def test_breakdown_is_case_preserving_and_first_seen(make_activity):
    activities = [
        make_activity("2024-06-05T07:00:00", "Ride"),
        make_activity("2024-06-02T07:00:00", "Run"),
        make_activity("2024-06-03T07:00:00", "run"),
        make_activity("2024-06-04T07:00:00", "Ride"),
    ]

    breakdown = compute_breakdown(activities)

    assert [(item.type, item.activities) for item in breakdown] == [("Ride", 2), ("Run", 1), ("run", 1)]


def test_breakdown_follows_available_types_order(make_activity):
    activities = [
        make_activity("2024-06-02T07:00:00", "Ride"),
        make_activity("2024-06-03T07:00:00", "Run"),
        make_activity("2024-06-04T07:00:00", "Hike"),
    ]

    breakdown = compute_breakdown(activities, ["Run", "Swim", "Ride"])

    assert [item.type for item in breakdown] == ["Run", "Ride", "Hike"]


def test_active_days_are_distinct_utc_dates(make_activity):
    activities = [
        make_activity("2024-06-03T23:30:00"),
        make_activity("2024-06-03T00:10:00"),
        make_activity("2024-06-01T12:00:00"),
    ]

    result = aggregate(activities, WINDOW)

    assert result.active_days == ["2024-06-01", "2024-06-03"]
    assert [day.date for day in result.activity_days] == result.active_days


def test_effort_score_is_relative_to_typical_activity(make_activity):
    activities = [
        make_activity("2024-06-01T07:00:00", "Run", 5000, 1500),
        make_activity("2024-06-02T07:00:00", "Run", 5000, 1500),
        make_activity("2024-06-03T07:00:00", "Run", 5000, 1500),
        make_activity("2024-06-03T18:00:00", "Ride", 15000, 1500),
        make_activity("2024-06-04T07:00:00", "Yoga", 0, 3000),
    ]

    days = {day.date: day for day in compute_activity_days(activities)}

    assert days["2024-06-01"].effort_score == 50
    assert days["2024-06-01"].effort_metric == "distance"
    assert days["2024-06-01"].effort_value == 5000
    assert days["2024-06-03"].effort_score == 100
    assert days["2024-06-03"].effort_type == "Ride"
    assert days["2024-06-03"].types == ["Run", "Ride"]
    assert days["2024-06-04"].effort_metric == "time"
    assert days["2024-06-04"].effort_score == 100
    assert days["2024-06-04"].effort_value == 3000


def test_day_without_signal_scores_zero(make_activity):
    activities = [make_activity("2024-06-01T07:00:00", "Workout", 0, 0)]

    (day,) = compute_activity_days(activities)

    assert day.effort_metric == "none"
    assert day.effort_score == 0
    assert day.effort_value == 0
    assert day.effort_type is None
    assert day.activities == 1


def test_effort_score_is_bounded(make_activity):
    activities = [make_activity(f"2024-06-{d:02d}T07:00:00", "Run", 1000 * d, 300 * d) for d in range(1, 29)]
    activities.append(make_activity("2024-06-29T07:00:00", "Run", 1, 1))

    for day in compute_activity_days(activities):
        assert isinstance(day.effort_score, int)
        assert 1 <= day.effort_score <= 100
        assert day.effort_metric in {"distance", "time"}


def test_activity_highlights_pick_extremes_with_earliest_tie(make_activity):
    first = make_activity("2024-06-01T07:00:00", "Run", 10000, 3000, 100, avg_hr=150, max_hr=180)
    tie = make_activity("2024-06-02T07:00:00", "Run", 10000, 2900, 50, avg_hr=150, max_hr=175)
    climb = make_activity("2024-06-03T07:00:00", "Hike", 8000, 7200, 900, avg_hr=120)
    lift = make_activity("2024-06-04T07:00:00", "WeightTraining", 0, 3600)

    highlights = compute_highlights([tie, climb, first, lift])

    assert highlights.longest_activity.id == climb.id
    assert highlights.farthest_activity.id == first.id
    assert highlights.biggest_climb_activity.id == climb.id
    assert highlights.fastest_pace_activity.id == tie.id
    assert highlights.highest_avg_heartrate_activity.id == first.id
    assert highlights.highest_max_heartrate_activity.id == first.id


def test_best_efforts_use_five_percent_band(make_activity):
    slow_5k = make_activity("2024-06-01T07:00:00", "Run", 5000, 1800)
    fast_5k = make_activity("2024-06-02T07:00:00", "Run", 5240, 1500)
    too_long = make_activity("2024-06-03T07:00:00", "Run", 5300, 1200)
    ten_k = make_activity("2024-06-04T07:00:00", "Run", 9600, 3000)

    highlights = compute_highlights([slow_5k, fast_5k, too_long, ten_k])

    assert highlights.best_5k_activity.id == fast_5k.id
    assert highlights.best_10k_activity.id == ten_k.id


def test_best_efforts_can_be_restricted_to_groups(make_activity):
    ride = make_activity("2024-06-01T07:00:00", "Ride", 5000, 600)
    run = make_activity("2024-06-02T07:00:00", "Run", 5000, 1500)

    highlights = compute_highlights([ride, run], best_effort_groups=["running"])

    assert highlights.best_5k_activity.id == run.id


def test_day_and_week_highlights(make_activity):
    activities = [
        make_activity("2024-06-01T07:00:00", "Run", 5000, 1500, 10),
        make_activity("2024-06-01T18:00:00", "Walk", 2000, 1200, 5),
        make_activity("2024-06-05T07:00:00", "Run", 10000, 3000, 20),
        make_activity("2024-06-20T07:00:00", "Ride", 12000, 2400, 30),
        make_activity("2024-06-20T12:00:00", "Walk", 1000, 600),
    ]

    highlights = compute_highlights(activities)

    assert highlights.most_active_day.date == "2024-06-01"
    assert highlights.most_active_day.activities == 2
    assert highlights.most_active_day.elevation_m == 15
    week = highlights.longest_weekly_distance
    assert (week.start_date, week.end_date) == ("2024-05-30", "2024-06-05")
    assert week.distance_m == 17000
    assert week.activities == 3
    assert week.elevation_m == 35


def test_time_of_day_persona(make_activity):
    activities = [
        make_activity("2024-06-01T06:00:00"),
        make_activity("2024-06-02T18:00:00"),
        make_activity("2024-06-03T07:30:00"),
        make_activity("2024-06-04T22:00:00"),
    ]

    persona = compute_highlights(activities).time_of_day_persona

    assert persona.bucket == "early-morning"
    assert persona.persona == "Early Bird"
    assert persona.activities == 2
    assert persona.total_activities == 4
    assert persona.percent == 50


@pytest.mark.parametrize(
    "hour, bucket",
    [(5, "early-morning"), (8, "early-morning"), (9, "morning"), (12, "afternoon"), (17, "evening"), (21, "night"), (4, "night")],
)
def test_persona_buckets(hour, bucket):
    assert persona_bucket_for(hour).bucket == bucket


def test_empty_list_yields_empty_recap():
    result = aggregate([], WINDOW)

    assert result.total.activities == 0
    assert result.breakdown == []
    assert result.active_days == []
    assert result.activity_days == []
    assert result.highlights.longest_activity is None
    assert result.highlights.time_of_day_persona is None
    assert result.highlights.longest_weekly_distance is None


def test_injected_groups_control_fastest_pace(make_activity):
    groups = ActivityGroups(type_groups={"Run": "running", "Row": "gym"}, time_only_groups=frozenset({"gym"}))
    row = make_activity("2024-06-01T07:00:00", "Row", 2000, 300)
    run = make_activity("2024-06-02T07:00:00", "Run", 5000, 1500)

    highlights = compute_highlights([row, run], groups=groups)

    assert highlights.fastest_pace_activity.id == run.id


def test_unmapped_distance_types_compete_for_fastest_pace(make_activity):
    rowing = make_activity("2024-06-01T07:00:00", "Rowing", 5000, 1200)
    kayak = make_activity("2024-06-02T07:00:00", "Kayaking", 4000, 1500)

    highlights = compute_highlights([rowing, kayak])

    assert highlights.fastest_pace_activity.id == rowing.id


def test_mapped_time_only_types_are_excluded_from_fastest_pace(make_activity):
    workout = make_activity("2024-06-01T07:00:00", "Workout", 3000, 300)
    hiit = make_activity("2024-06-02T07:00:00", "HighIntensityIntervalTraining", 2000, 200)
    run = make_activity("2024-06-03T07:00:00", "Run", 5000, 1500)

    highlights = compute_highlights([workout, hiit, run])

    assert highlights.fastest_pace_activity.id == run.id


def test_time_only_applies_to_mapped_types_only():
    assert DEFAULT_ACTIVITY_GROUPS.is_time_only("Yoga")
    assert DEFAULT_ACTIVITY_GROUPS.is_time_only("Workout")
    assert not DEFAULT_ACTIVITY_GROUPS.is_time_only("Rowing")
    assert DEFAULT_ACTIVITY_GROUPS.group_for("Rowing") == "workout"

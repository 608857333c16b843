"""Repair cached recap payloads into the current response shape.

Every function here accepts whatever JSON was stored, including payloads
written before a field existed, and never raises. Normalising an already
normalised payload returns an equal payload.
"""
from __future__ import annotations

import math
from typing import Any

EFFORT_METRICS = ("distance", "time")


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _non_negative(value: Any) -> float:
    number = _number(value)
    return max(0, number) if number is not None else 0


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _distinct_texts(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple)):
        return []
    seen: dict[str, None] = {}
    for value in values:
        text = _text(value)
        if text:
            seen.setdefault(text, None)
    return list(seen)


def normalize_breakdown(items: Any) -> list[dict[str, Any]]:
    """Fill in the per-type ``activities`` count missing from older payloads."""

    if not isinstance(items, list):
        return []
    breakdown = []
    for item in items:
        if not isinstance(item, dict):
            continue
        activities = _number(item.get("activities"))
        breakdown.append(
            {
                "type": _text(item.get("type")) or "Other",
                "activities": activities if activities is not None else 0,
                "distanceM": _non_negative(item.get("distanceM")),
                "movingTimeSec": _non_negative(item.get("movingTimeSec")),
                "elevationM": _non_negative(item.get("elevationM")),
            }
        )
    return breakdown


def normalize_available_activity_types(
    items: Any,
    fallback_breakdown: list[dict[str, Any]],
) -> list[str]:
    """Trimmed, de-duplicated, order-preserving type list.

    Falls back to the breakdown types when the payload predates the field.
    """

    source = items if isinstance(items, list) else [item.get("type") for item in fallback_breakdown]
    return _distinct_texts(source)


def _placeholder_day(day: str) -> dict[str, Any]:
    return {
        "date": day,
        "activities": 1,
        "distanceM": 0,
        "movingTimeSec": 0,
        "effortScore": 0,
        "effortMetric": "none",
        "effortValue": 0,
        "effortType": None,
        "types": [],
    }


def _normalize_day(item: Any) -> dict[str, Any] | None:
    if not isinstance(item, dict):
        return None
    day = _text(item.get("date"))
    if not day:
        return None

    score = _number(item.get("effortScore"))
    metric = item.get("effortMetric")
    value = _non_negative(item.get("effortValue"))
    effort_type = item.get("effortType")

    # A "none" metric always scores 0; a measured day always scores at least 1.
    if metric in EFFORT_METRICS and value > 0:
        effort_score = max(1, min(100, int(round(score)))) if score is not None else 1
        effort_type = effort_type.strip() if isinstance(effort_type, str) and effort_type.strip() else None
    else:
        metric, effort_score, value, effort_type = "none", 0, 0, None

    return {
        "date": day,
        "activities": _non_negative(item.get("activities")),
        "distanceM": _non_negative(item.get("distanceM")),
        "movingTimeSec": _non_negative(item.get("movingTimeSec")),
        "effortScore": effort_score,
        "effortMetric": metric,
        "effortValue": value,
        "effortType": effort_type,
        "types": _distinct_texts(item.get("types")),
    }


def normalize_activity_days(items: Any, fallback_active_days: Any) -> list[dict[str, Any]]:
    """Per-day heatmap entries sorted by date.

    Without stored per-day detail, each legacy active day becomes a
    placeholder entry so the heatmap still shows which days were active.
    """

    days = [day for day in map(_normalize_day, items) if day is not None] if isinstance(items, list) else []
    if not days:
        return [_placeholder_day(day) for day in sorted(_distinct_texts(fallback_active_days))]
    return sorted(days, key=lambda day: day["date"])


def normalize_total(item: Any, fallback_breakdown: list[dict[str, Any]]) -> dict[str, Any]:
    """Totals with non-negative sums, summed from the breakdown when missing."""

    if not isinstance(item, dict):
        return {
            key: sum(entry[key] for entry in fallback_breakdown)
            for key in ("activities", "distanceM", "movingTimeSec", "elevationM")
        }
    return {
        "activities": _non_negative(item.get("activities")),
        "distanceM": _non_negative(item.get("distanceM")),
        "movingTimeSec": _non_negative(item.get("movingTimeSec")),
        "elevationM": _non_negative(item.get("elevationM")),
    }


def normalize_range(item: Any) -> dict[str, str | None]:
    source = item if isinstance(item, dict) else {}
    return {
        "startUtc": _text(source.get("startUtc")) or None,
        "endUtc": _text(source.get("endUtc")) or None,
    }


def normalize_recap_payload(payload: Any) -> dict[str, Any] | None:
    """Normalise a successful recap payload; anything else yields ``None``."""

    if not isinstance(payload, dict) or payload.get("connected") is False or "error" in payload:
        return None

    breakdown = normalize_breakdown(payload.get("breakdown"))
    normalized = dict(payload)
    normalized.update(
        {
            "connected": True,
            "provider": _text(payload.get("provider")) or None,
            "range": normalize_range(payload.get("range")),
            "total": normalize_total(payload.get("total"), breakdown),
            "breakdown": breakdown,
            "availableActivityTypes": normalize_available_activity_types(
                payload.get("availableActivityTypes"), breakdown
            ),
            "activeDays": sorted(_distinct_texts(payload.get("activeDays"))),
            "activityDays": normalize_activity_days(payload.get("activityDays"), payload.get("activeDays")),
        }
    )
    if not isinstance(normalized.get("highlights"), dict):
        normalized["highlights"] = {}
    return normalized

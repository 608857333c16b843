"""Translate raw recap range parameters into a UTC ``DateWindow``."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recap.models.domain import DateWindow

DEFAULT_ROLLING_DAYS = 7
MIN_ROLLING_DAYS = 1
MAX_ROLLING_DAYS = 365


def _parse_int(value: str | int | None) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def compute_date_window(
    range_type: str | None,
    days: str | int | None = None,
    unit: str | None = None,
    offset: str | int | None = None,
    now: datetime | None = None,
) -> DateWindow:
    """Compute the recap window.

    ``rolling`` covers the last ``days`` days (clamped to 1..365, default 7).
    Anything else is a calendar range: the current month so far, the current
    year so far, or a full past/future year when ``unit=year`` carries an
    integer ``offset``.
    """

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    current = current.astimezone(timezone.utc)

    if (range_type or "").strip().lower() == "rolling":
        day_count = _parse_int(days)
        if day_count is None:
            day_count = DEFAULT_ROLLING_DAYS
        day_count = min(max(day_count, MIN_ROLLING_DAYS), MAX_ROLLING_DAYS)
        return DateWindow(current - timedelta(days=day_count), current)

    if (unit or "month").strip().lower() == "year":
        year_offset = _parse_int(offset)
        year = current.year + year_offset if year_offset is not None else None
        if year is not None and 1 <= year <= 9999:
            return DateWindow(
                datetime(year, 1, 1, tzinfo=timezone.utc),
                datetime(year, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
            )
        return DateWindow(datetime(current.year, 1, 1, tzinfo=timezone.utc), current)

    return DateWindow(datetime(current.year, current.month, 1, tzinfo=timezone.utc), current)

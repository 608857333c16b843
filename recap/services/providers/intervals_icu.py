"""Intervals.icu API client with cursor pagination."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlencode

import requests

from recap.models.domain import ActivityRecord, AthleteProfile, Credentials, DateWindow
from recap.services.errors import ProviderFailure, UnexpectedError
from recap.services.providers.base import (
    ProviderType,
    as_float,
    as_int,
    as_optional_float,
    parse_timestamp,
    request_json,
)


logger = logging.getLogger(__name__)

API_BASE_URL = "https://intervals.icu/api/v1"
AUTHORIZE_ENDPOINT = "https://intervals.icu/oauth/authorize"
SCOPE = "ACTIVITY:READ"
CURSOR_FORMAT = "%Y-%m-%dT%H:%M:%S"


def parse_activity_id(value: Any) -> int:
    """Intervals.icu ids look like ``i12345``; unparseable ids become 0."""

    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    text = str(value or "").lstrip("i")
    return int(text) if text.isdigit() else 0


def _local_start(item: dict[str, Any]) -> datetime | None:
    """``start_date_local`` as a naive wall-clock time."""

    value = item.get("start_date_local")
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().rstrip("Z"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def to_activity_record(item: dict[str, Any]) -> ActivityRecord | None:
    start = parse_timestamp(item.get("start_date")) or parse_timestamp(item.get("start_date_local"))
    if start is None:
        logger.warning("Skipping Intervals.icu activity %s without a start date", item.get("id"))
        return None

    return ActivityRecord(
        id=parse_activity_id(item.get("id")),
        name=item.get("name") or "(untitled)",
        type=item.get("type") or "Other",
        start_time_utc=start,
        distance_meters=as_float(item.get("distance")),
        moving_time_seconds=as_int(item.get("moving_time")),
        elevation_gain_meters=as_float(item.get("total_elevation_gain")),
        average_heartrate=as_optional_float(item.get("average_heartrate")),
        max_heartrate=as_optional_float(item.get("max_heartrate")),
    )


def next_cursor(items: list[dict[str, Any]]) -> str | None:
    """One second past the latest local start in ``items``."""

    starts = [start for start in map(_local_start, items) if start is not None]
    if not starts:
        return None
    return (max(starts) + timedelta(seconds=1)).strftime(CURSOR_FORMAT)


class IntervalsIcuClient:
    """Intervals.icu capability bundle.

    The ``oldest`` bound moves forward after each full page, so pages are
    always fetched one after another.
    """

    def __init__(
        self,
        client_id: str = "",
        redirect_uri: str = "",
        session: requests.Session | None = None,
        timeout: float = 30.0,
        page_size: int = 366,
        max_pages: int = 30,
    ) -> None:
        self._client_id = client_id
        self._redirect_uri = redirect_uri
        self._session = session or requests.Session()
        self._timeout = timeout
        self._page_size = page_size
        self._max_pages = max_pages

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.INTERVALS_ICU

    def fetch_activities(self, credentials: Credentials, window: DateWindow) -> list[ActivityRecord]:
        access_token = credentials.access_token or ""
        oldest = window.start_utc.strftime(CURSOR_FORMAT)
        newest = window.end_utc.strftime(CURSOR_FORMAT)

        logger.info("Fetching activities from Intervals.icu for range %s to %s", oldest, newest)

        activities: list[ActivityRecord] = []
        previous_cursor: str | None = None
        try:
            for page in range(1, self._max_pages + 1):
                logger.debug("Fetching activity page %d from Intervals.icu (oldest=%s)", page, oldest)
                items = request_json(
                    self._session,
                    f"{API_BASE_URL}/athlete/0/activities",
                    access_token=access_token,
                    params={"oldest": oldest, "newest": newest, "limit": self._page_size},
                    timeout=self._timeout,
                    provider_name="Intervals.icu",
                    page=page,
                )
                if not isinstance(items, list):
                    raise UnexpectedError("Malformed response from Intervals.icu")

                logger.debug("Received %d activities on page %d", len(items), page)
                if not items:
                    logger.debug("No more activities, pagination complete at page %d", page)
                    break

                activities.extend(
                    record for record in map(to_activity_record, items) if record is not None
                )

                if len(items) < self._page_size:
                    logger.debug("Received less than limit, pagination complete at page %d", page)
                    break

                # Cursors are local wall-clock times, so only compare them with each other.
                cursor = next_cursor(items)
                if cursor is None or (previous_cursor is not None and cursor <= previous_cursor):
                    logger.warning("Intervals.icu cursor did not advance past %s, stopping", oldest)
                    break
                oldest = previous_cursor = cursor
            else:
                logger.warning("Stopped Intervals.icu pagination at the %d page ceiling", self._max_pages)
        except ProviderFailure:
            raise
        except Exception as err:
            logger.exception("Unexpected error during activity fetch from Intervals.icu")
            raise UnexpectedError() from err

        logger.info("Successfully fetched %d activities from Intervals.icu", len(activities))
        return activities

    def generate_auth_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self._client_id,
                "redirect_uri": self._redirect_uri,
                "response_type": "code",
                "scope": SCOPE,
                "state": state,
            }
        )
        return f"{AUTHORIZE_ENDPOINT}?{query}"

    def revoke_access(self, access_token: str) -> bool:
        logger.info("Intervals.icu has no token revocation endpoint; clearing local session only")
        return False

    def fetch_profile(self, credentials: Credentials) -> AthleteProfile | None:
        try:
            athlete = request_json(
                self._session,
                f"{API_BASE_URL}/athlete/0",
                access_token=credentials.access_token or "",
                params=None,
                timeout=self._timeout,
                provider_name="Intervals.icu",
            )
        except ProviderFailure as err:
            logger.warning("Failed to fetch Intervals.icu athlete profile: %s", err.message)
            return None

        if not isinstance(athlete, dict):
            logger.warning("No athlete data in Intervals.icu response")
            return None

        first = athlete.get("firstname") or ""
        last = athlete.get("lastname") or ""
        if not first and not last and athlete.get("name"):
            first, _, last = str(athlete["name"]).partition(" ")
        return AthleteProfile(first, last)

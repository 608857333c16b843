"""Strava API client: offset pagination, Strava rate-limit headers."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import requests

from recap.models.domain import ActivityRecord, AthleteProfile, Credentials, DateWindow, RateLimitInfo
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

API_BASE_URL = "https://www.strava.com/api/v3"
AUTHORIZE_ENDPOINT = "https://www.strava.com/oauth/authorize"
DEAUTHORIZE_ENDPOINT = "https://www.strava.com/oauth/deauthorize"
SCOPE = "activity:read_all"


def parse_rate_limit_headers(response: requests.Response) -> RateLimitInfo | None:
    """Read Strava's 15-minute/daily counters; ``None`` when none are present."""

    headers = response.headers or {}
    info = RateLimitInfo(
        limit=headers.get("X-RateLimit-Limit"),
        usage=headers.get("X-RateLimit-Usage"),
        read_limit=headers.get("X-ReadRateLimit-Limit"),
        read_usage=headers.get("X-ReadRateLimit-Usage"),
    )
    if not any((info.limit, info.usage, info.read_limit, info.read_usage)):
        return None
    return info


def to_activity_record(item: dict[str, Any]) -> ActivityRecord | None:
    """Map a Strava ``SummaryActivity`` to an ``ActivityRecord``."""

    start = parse_timestamp(item.get("start_date"))
    if start is None:
        logger.warning("Skipping Strava activity %s without a start date", item.get("id"))
        return None

    return ActivityRecord(
        id=as_int(item.get("id")),
        name=item.get("name") or "(untitled)",
        type=item.get("sport_type") or item.get("type") or "Other",
        start_time_utc=start,
        distance_meters=as_float(item.get("distance")),
        moving_time_seconds=as_int(item.get("moving_time")),
        elevation_gain_meters=as_float(item.get("total_elevation_gain")),
        average_heartrate=as_optional_float(item.get("average_heartrate")),
        max_heartrate=as_optional_float(item.get("max_heartrate")),
    )


class StravaClient:
    """Strava capability bundle.

    Pagination is offset style: ``page`` increments by one while the
    ``after``/``before`` bounds stay fixed on every call.
    """

    def __init__(
        self,
        client_id: str = "",
        redirect_uri: str = "",
        session: requests.Session | None = None,
        timeout: float = 30.0,
        page_size: int = 200,
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
        return ProviderType.STRAVA

    def fetch_activities(self, credentials: Credentials, window: DateWindow) -> list[ActivityRecord]:
        access_token = credentials.access_token or ""
        after = int(window.start_utc.timestamp())
        before = int(window.end_utc.timestamp())

        logger.info(
            "Fetching activities from Strava for range %s to %s",
            window.start_utc.isoformat(),
            window.end_utc.isoformat(),
        )

        activities: list[ActivityRecord] = []
        try:
            for page in range(1, self._max_pages + 1):
                logger.debug("Fetching activity page %d from Strava", page)
                items = request_json(
                    self._session,
                    f"{API_BASE_URL}/athlete/activities",
                    access_token=access_token,
                    params={"after": after, "before": before, "page": page, "per_page": self._page_size},
                    timeout=self._timeout,
                    provider_name="Strava",
                    page=page,
                    rate_limit_parser=parse_rate_limit_headers,
                )
                if not isinstance(items, list):
                    raise UnexpectedError("Malformed response from Strava")

                logger.debug("Received %d activities on page %d", len(items), page)
                if not items:
                    logger.debug("No more activities, pagination complete at page %d", page)
                    break

                activities.extend(
                    record for record in map(to_activity_record, items) if record is not None
                )

                if len(items) < self._page_size:
                    logger.debug("Short page, pagination complete at page %d", page)
                    break
            else:
                logger.warning("Stopped Strava pagination at the %d page ceiling", self._max_pages)
        except ProviderFailure:
            raise
        except Exception as err:
            logger.exception("Unexpected error during Strava activity fetch")
            raise UnexpectedError() from err

        logger.info("Successfully fetched %d activities from Strava", len(activities))
        return activities

    def generate_auth_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self._client_id,
                "redirect_uri": self._redirect_uri,
                "response_type": "code",
                "approval_prompt": "force",
                "scope": SCOPE,
                "state": state,
            }
        )
        return f"{AUTHORIZE_ENDPOINT}?{query}"

    def revoke_access(self, access_token: str) -> bool:
        try:
            response = self._session.post(
                DEAUTHORIZE_ENDPOINT,
                data={"access_token": access_token},
                timeout=self._timeout,
            )
        except requests.RequestException:
            logger.warning("Strava deauthorization failed", exc_info=True)
            return False
        return 200 <= response.status_code < 300

    def fetch_profile(self, credentials: Credentials) -> AthleteProfile | None:
        try:
            athlete = request_json(
                self._session,
                f"{API_BASE_URL}/athlete",
                access_token=credentials.access_token or "",
                params=None,
                timeout=self._timeout,
                provider_name="Strava",
            )
        except ProviderFailure as err:
            logger.warning("Failed to fetch Strava athlete profile: %s", err.message)
            return None

        if not isinstance(athlete, dict):
            logger.warning("No athlete data in Strava response")
            return None

        profile = AthleteProfile(athlete.get("firstname") or "", athlete.get("lastname") or "")
        logger.info("Retrieved Strava athlete profile for %s", profile.full_name or "(unnamed)")
        return profile

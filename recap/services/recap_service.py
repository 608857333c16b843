"""Request-level orchestration: credentials, window, provider, aggregation."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from recap.models.domain import Credentials, RecapQuery
from recap.models.schemas import AthleteProfileSchema, ProfileResponse, RecapResponse
from recap.services.activity_groups import DEFAULT_ACTIVITY_GROUPS, ActivityGroups
from recap.services.date_window import compute_date_window
from recap.services.provider_registry import ProviderRegistry
from recap.services.providers.base import ProviderType, parse_provider_type
from recap.services.recap_aggregator import aggregate, available_activity_types


logger = logging.getLogger(__name__)

NOT_CONNECTED: dict[str, Any] = {"connected": False}


class RecapService:
    """Builds recap and profile payloads for one request at a time.

    Provider failures propagate as ``ProviderFailure``; the router turns them
    into the outbound error shape.
    """

    def __init__(self, registry: ProviderRegistry, groups: ActivityGroups | None = None) -> None:
        self.registry = registry
        self.groups = groups or DEFAULT_ACTIVITY_GROUPS

    def _provider_type(self, provider_id: str | ProviderType | None) -> ProviderType:
        return parse_provider_type(provider_id, self.registry.default)

    def build_recap(
        self,
        credentials: Credentials,
        provider_id: str | ProviderType | None,
        query: RecapQuery,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        if not credentials.is_valid(now.timestamp() if now else None):
            logger.warning("Recap request made without valid/non-expired access token")
            return dict(NOT_CONNECTED)

        window = compute_date_window(query.type, query.days, query.unit, query.offset, now=now)
        provider_type = self._provider_type(provider_id)
        client = self.registry.resolve(provider_type)

        logger.info("Fetching activities from %s", provider_type.display_name)
        fetched = client.fetch_activities(credentials, window)

        in_window = [record for record in fetched if window.contains(record.start_time_utc)]
        if len(in_window) != len(fetched):
            logger.debug("Dropped %d activities outside the requested window", len(fetched) - len(in_window))

        available_types = available_activity_types(in_window)
        selected = in_window
        if query.activity_type and query.activity_type.strip():
            wanted = query.activity_type.strip().lower()
            selected = [record for record in selected if record.type.lower() == wanted]
        if query.activity_group and query.activity_group.strip():
            selected = [record for record in selected if self.groups.matches(record.type, query.activity_group)]

        result = aggregate(
            selected,
            window,
            provider=provider_type.cookie_value,
            available_types=available_types,
            groups=self.groups,
        )
        return RecapResponse.model_validate(result.model_dump()).model_dump(by_alias=True)

    def build_profile(
        self,
        credentials: Credentials,
        provider_id: str | ProviderType | None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        if not credentials.is_valid(now.timestamp() if now else None):
            logger.warning("Profile request made without valid/non-expired access token")
            return dict(NOT_CONNECTED)

        provider_type = self._provider_type(provider_id)
        client = self.registry.resolve(provider_type)
        profile = client.fetch_profile(credentials)
        if profile is None:
            return dict(NOT_CONNECTED)

        response = ProfileResponse(
            connected=True,
            provider=provider_type.cookie_value,
            profile=AthleteProfileSchema.from_profile(profile),
        )
        return response.model_dump(by_alias=True)

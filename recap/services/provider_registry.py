"""Resolve provider clients by identifier."""
from __future__ import annotations

import logging
from typing import Iterator

import requests

from recap.config import Settings, get_settings
from recap.services.errors import ProviderNotRegistered
from recap.services.providers.base import ProviderClient, ProviderType, parse_provider_type
from recap.services.providers.intervals_icu import IntervalsIcuClient
from recap.services.providers.mock import MockProviderClient
from recap.services.providers.strava import StravaClient


logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Map of provider type to client bundle with a configured fallback."""

    def __init__(self, default: ProviderType = ProviderType.STRAVA) -> None:
        self.default = default
        self._clients: dict[ProviderType, ProviderClient] = {}

    def register(self, provider_type: ProviderType, client: ProviderClient) -> None:
        self._clients[provider_type] = client

    def registered_types(self) -> list[ProviderType]:
        return list(self._clients)

    def resolve(self, provider: ProviderType | str | None) -> ProviderClient:
        """Return the client for ``provider``.

        Unknown or blank identifiers resolve to the default provider. A known
        identifier without a registered client raises ``ProviderNotRegistered``.
        """

        provider_type = parse_provider_type(provider, self.default)
        client = self._clients.get(provider_type)
        if client is None:
            logger.error("No client registered for provider %s", provider_type.value)
            raise ProviderNotRegistered(f"Provider '{provider_type.value}' is not registered")
        return client


def build_provider_registry(
    settings: Settings,
    session: requests.Session | None = None,
) -> ProviderRegistry:
    """Wire the concrete provider clients from settings."""

    http = session or requests.Session()
    registry = ProviderRegistry(default=parse_provider_type(settings.default_provider))

    if settings.use_mock_provider:
        logger.info("Mock provider enabled; serving generated activities in place of Strava")
        registry.register(ProviderType.STRAVA, MockProviderClient(settings.oauth_redirect_uri))
    else:
        registry.register(
            ProviderType.STRAVA,
            StravaClient(
                client_id=settings.strava_client_id,
                redirect_uri=settings.oauth_redirect_uri,
                session=http,
                timeout=settings.http_timeout_seconds,
                page_size=settings.strava_page_size,
                max_pages=settings.max_pages,
            ),
        )

    registry.register(
        ProviderType.INTERVALS_ICU,
        IntervalsIcuClient(
            client_id=settings.intervals_client_id,
            redirect_uri=settings.oauth_redirect_uri,
            session=http,
            timeout=settings.http_timeout_seconds,
            page_size=settings.intervals_page_size,
            max_pages=settings.max_pages,
        ),
    )
    registry.register(ProviderType.MOCK, MockProviderClient(settings.oauth_redirect_uri))
    return registry


def get_provider_registry() -> Iterator[ProviderRegistry]:
    """FastAPI dependency yielding a registry with its own HTTP session.

    Only settings are shared between requests; clients and the
    ``requests.Session`` they use live for one request.
    """
    session = requests.Session()
    try:
        yield build_provider_registry(get_settings(), session=session)
    finally:
        session.close()

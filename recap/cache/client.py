"""Read-through HTTP client for the recap API."""
from __future__ import annotations

import logging
from typing import Any

import requests

from recap.cache.normalize import normalize_recap_payload
from recap.cache.store import (
    CACHE_PREFIX,
    PROFILE_CACHE_KEY,
    PROVIDER_CACHE_KEY,
    RECAP_CACHE_KEY,
    RecapCache,
)
from recap.constants import ACCESS_TOKEN_COOKIE, PROVIDER_COOKIE
from recap.models.domain import RecapQuery
from recap.services.providers.base import parse_provider_type


logger = logging.getLogger(__name__)


class RecapClient:
    """Fetches profile and recap payloads, consulting ``cache`` first.

    ``session`` may be a ``requests.Session`` or anything with the same
    ``get``/``post``/``cookies`` surface, such as FastAPI's ``TestClient``.
    """

    def __init__(
        self,
        base_url: str,
        session: Any | None = None,
        cache: RecapCache | None = None,
        access_token: str | None = None,
        provider: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.cache = cache
        self.timeout = timeout
        if access_token:
            self.session.cookies.set(ACCESS_TOKEN_COOKIE, access_token)
        if provider:
            self.session.cookies.set(PROVIDER_COOKIE, parse_provider_type(provider).cookie_value)

    def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _purge(self) -> None:
        if self.cache is not None:
            self.cache.invalidate_prefix(CACHE_PREFIX)

    def get_profile(self) -> dict[str, Any]:
        if self.cache is not None:
            profile = self.cache.read(PROFILE_CACHE_KEY)
            provider = self.cache.read(PROVIDER_CACHE_KEY)
            if profile and provider:
                logger.debug("Profile served from cache")
                return {"connected": True, "provider": provider, "profile": profile}

        data = self._get("/me")
        if not data.get("connected"):
            self._purge()
            return {"connected": False, "provider": None, "profile": None}

        provider = parse_provider_type(data.get("provider")).cookie_value
        if self.cache is not None:
            self.cache.write(PROFILE_CACHE_KEY, data.get("profile"))
            self.cache.write(PROVIDER_CACHE_KEY, provider)
        return {"connected": True, "provider": provider, "profile": data.get("profile")}

    def get_recap(self, query: RecapQuery, use_cache: bool = True) -> dict[str, Any]:
        fingerprint = query.to_query_string()

        if use_cache and self.cache is not None:
            cached = normalize_recap_payload(self.cache.read(RECAP_CACHE_KEY, fingerprint))
            if cached is not None:
                logger.debug("Recap cache hit for %s", fingerprint)
                return cached

        data = self._get("/recap", params=query.to_params())
        if data.get("connected") is False:
            self._purge()
            return {"connected": False}
        if "error" in data:
            logger.warning("Recap request failed: %s (%s)", data.get("error"), data.get("errorKind"))
            return data

        normalized = normalize_recap_payload(data)
        if normalized is None:
            return data
        normalized["provider"] = parse_provider_type(normalized.get("provider")).cookie_value
        if self.cache is not None:
            self.cache.write(RECAP_CACHE_KEY, normalized, fingerprint)
        return normalized

    def disconnect(self) -> None:
        response = self.session.post(f"{self.base_url}/disconnect", timeout=self.timeout)
        response.raise_for_status()
        self._purge()

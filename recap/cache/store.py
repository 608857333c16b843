"""Key-value cache persisted with SQLAlchemy."""
from __future__ import annotations

import base64
import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from recap.models.database_models import CacheEntry


logger = logging.getLogger(__name__)

CACHE_PREFIX = "recapcache:"
PROFILE_CACHE_KEY = "recapcache:profile"
PROVIDER_CACHE_KEY = "recapcache:provider"
RECAP_CACHE_KEY = "recapcache:activities-summary:v6"
APP_VERSION_KEY = "recap:app-version"


def encode_fingerprint(fingerprint: str) -> str:
    return base64.urlsafe_b64encode(fingerprint.encode("utf-8")).decode("ascii")


def full_key(key: str, fingerprint: str | None = None) -> str:
    """``<key>`` or ``<key>:<base64(fingerprint)>``."""

    return f"{key}:{encode_fingerprint(fingerprint)}" if fingerprint else key


class RecapCache:
    """Local cache for profile, provider and recap payloads.

    Storage failures are logged and reported as a miss or ignored write.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def read(self, key: str, fingerprint: str | None = None) -> Any | None:
        try:
            with self._session_factory() as session:
                entry = session.get(CacheEntry, full_key(key, fingerprint))
                return entry.payload if entry is not None else None
        except SQLAlchemyError:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None

    def write(self, key: str, value: Any, fingerprint: str | None = None) -> None:
        try:
            with self._session_factory.begin() as session:
                session.merge(
                    CacheEntry(
                        key=full_key(key, fingerprint),
                        schema_key=key,
                        query_fingerprint=fingerprint,
                        payload=value,
                    )
                )
        except SQLAlchemyError:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    def remove(self, key: str, fingerprint: str | None = None) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(delete(CacheEntry).where(CacheEntry.key == full_key(key, fingerprint)))
        except SQLAlchemyError:
            logger.warning("Cache remove failed for %s", key, exc_info=True)

    def invalidate_prefix(self, prefix: str = CACHE_PREFIX) -> int:
        """Delete every entry whose key starts with ``prefix``; returns the count."""

        try:
            with self._session_factory.begin() as session:
                keys = session.scalars(
                    select(CacheEntry.key).where(CacheEntry.key.startswith(prefix, autoescape=True))
                ).all()
                if keys:
                    session.execute(delete(CacheEntry).where(CacheEntry.key.in_(keys)))
        except SQLAlchemyError:
            logger.warning("Cache purge failed for prefix %s", prefix, exc_info=True)
            return 0
        logger.info("Purged %d cache entries with prefix %s", len(keys), prefix)
        return len(keys)

    def ensure_app_version(self, version: str) -> bool:
        """Purge the recap cache when ``version`` differs from the stored one."""

        stored = self.read(APP_VERSION_KEY)
        if stored == version:
            return False
        logger.info("App version changed from %s to %s; clearing recap cache", stored, version)
        self.invalidate_prefix(CACHE_PREFIX)
        self.write(APP_VERSION_KEY, version)
        return True

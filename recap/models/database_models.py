"""SQLAlchemy ORM models for the local recap cache."""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from recap.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(Base):
    """One cached payload, keyed by schema key plus encoded query fingerprint."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(512), primary_key=True)
    schema_key: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    query_fingerprint: Mapped[str | None] = mapped_column(String(512), nullable=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=True)
    written_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

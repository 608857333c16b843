"""Database engine and session setup for the local recap cache."""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from recap.config import get_settings


logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for SQLAlchemy models."""


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_cache_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    settings = get_settings()
    url = database_url or settings.cache_database_url
    _ensure_sqlite_directory(url)
    return create_engine(url, echo=settings.debug if echo is None else echo, future=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def init_db(engine: Engine) -> None:
    """Create cache tables if they do not exist."""

    # Registers the cache tables on Base.metadata.
    from recap.models import database_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.debug("Cache tables ensured on %s", engine.url.render_as_string(hide_password=True))

"""Logging setup for the recap API, its scripts and the provider HTTP layer.

Everything goes to the console and ``<log_dir>/app.log``. Provider clients
additionally write to ``<log_dir>/providers.log`` at their own level, so a
paging or rate-limit problem can be traced without raising the level of
the whole application.
"""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from recap.config import get_settings

PROVIDER_LOGGER = "recap.services.providers"
APP_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PROVIDER_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"

_configured = False


def build_logging_config(log_dir: Path, level: str, provider_level: str | None = None) -> dict[str, Any]:
    """Return the ``dictConfig`` schema; ``provider_level`` defaults to ``level``."""

    provider_level = provider_level or level
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "app": {"format": APP_FORMAT},
            # Requests run on worker threads; the thread name ties pages of one fetch together.
            "provider": {"format": PROVIDER_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "app",
                "level": level,
            },
            "app_file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / "app.log"),
                "encoding": "utf-8",
                "formatter": "app",
                "level": level,
            },
            "provider_file": {
                "class": "logging.FileHandler",
                "filename": str(log_dir / "providers.log"),
                "encoding": "utf-8",
                "formatter": "provider",
                "level": provider_level,
            },
        },
        "loggers": {
            PROVIDER_LOGGER: {
                "level": provider_level,
                "handlers": ["provider_file"],
                "propagate": True,
            },
            "urllib3": {"level": "WARNING"},
        },
        "root": {
            "level": level,
            "handlers": ["console", "app_file"],
        },
    }


def configure_logging() -> None:
    """Apply the logging configuration once per process."""

    global _configured
    if _configured:
        return

    try:
        settings = get_settings()
        log_dir, level, provider_level = settings.log_dir, settings.log_level, settings.provider_log_level
    except ValidationError:
        log_dir, level, provider_level = Path("logs"), "INFO", None
    log_dir.mkdir(parents=True, exist_ok=True)

    dictConfig(build_logging_config(log_dir, level, provider_level))
    _configured = True

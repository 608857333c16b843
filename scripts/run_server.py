"""Start the recap API with uvicorn."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from recap.config import get_settings
from recap.logging_config import configure_logging


logger = logging.getLogger("scripts.run_server")


def main() -> None:
    configure_logging()
    settings = get_settings()
    logger.info("Starting recap API on %s:%d", settings.app_host, settings.app_port)
    uvicorn.run(
        "recap.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()

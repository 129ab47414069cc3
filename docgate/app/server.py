"""Command-line entry point: ``python -m docgate.app.server``."""

import logging
import sys

import uvicorn

from docgate.app.config import get_settings
from docgate.app.main import create_app
from docgate.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Validate configuration and serve until interrupted."""
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        settings.validate_for_startup()
    except RuntimeError as e:
        logger.error(str(e))
        sys.exit(1)

    app = create_app(settings=settings)
    logger.info(f"Starting docgate on http://{settings.host}:{settings.port}")
    # uvicorn exits non-zero if the lifespan (store acquisition) fails.
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()

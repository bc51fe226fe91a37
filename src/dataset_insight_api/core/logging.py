import logging
from typing import Optional

from ..core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "dataset_insight_api"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stream handler to the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(getattr(h, "_insight_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._insight_handler = True
        logger.addHandler(handler)

    return logger

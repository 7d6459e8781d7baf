import logging
import sys

from solardesk.core.config import settings

LOGGER_PREFIX = "solardesk"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def setup_logging(level: str = None) -> None:
    """Configure the root application logger once per process."""
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(LOGGER_PREFIX)
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    logger.addHandler(handler)
    logger.propagate = False

    # SQLAlchemy echoes are noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")

"""Logging setup shared by the API process and maintenance scripts."""

import logging
import sys

from relief_stock.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a single stderr handler on the root logger.

    Safe to call more than once; only the first call installs the handler,
    later calls just update the level.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # SQL echo is controlled by DEBUG, keep the engine logger quiet otherwise.
    if not settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True

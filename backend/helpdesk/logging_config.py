# =============================================================================
# HELPDESK API - LOGGING
# =============================================================================

import logging
import sys

from .config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: str = None) -> None:
    """
    Configure the root 'helpdesk' logger once.

    Args:
        level: Log level name, defaults to config.LOG_LEVEL
    """
    global _configured
    if _configured:
        return

    logger = logging.getLogger("helpdesk")
    logger.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # APScheduler logs job execution at INFO, keep it quieter
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    _configured = True

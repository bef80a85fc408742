"""
Logging configuration
"""

import logging
import sys
from typing import Optional

from core.config import settings


def setup_logging(level: Optional[str] = None):
    """Configure application logging.

    Args:
        level: Overrides ``settings.LOG_LEVEL`` (the CLI passes DEBUG for --verbose)
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )

    # Per-request chatter from the store and HTTP client
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured at {level_name} level")

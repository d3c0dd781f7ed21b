"""Logging configuration for applications embedding the OPS client."""

import logging
from typing import Optional

from patent_ops.core.config import get_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for the client's component loggers.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to `LOG_LEVEL` from config.
    """
    level_name = (level or get_config().log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        force=True,  # Force reconfiguration even if logging was already configured
        handlers=[logging.StreamHandler()],
    )
    # httpx logs every request at INFO, including the token endpoint
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

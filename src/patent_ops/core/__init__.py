"""Core module for the OPS client."""

from patent_ops.core.config import get_config, reload_config, OPSConfig
from patent_ops.core.logging_setup import configure_logging

__all__ = [
    "get_config",
    "reload_config",
    "OPSConfig",
    "configure_logging",
]

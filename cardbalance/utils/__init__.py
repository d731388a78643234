"""Utilities package."""

from .config import Settings, ensure_cache_dir, settings
from .log import LoggerMixin, configure_logging, get_logger

__all__ = [
    "Settings",
    "settings",
    "ensure_cache_dir",
    "get_logger",
    "LoggerMixin",
    "configure_logging",
]

"""Utility functions for commandsense."""

from commandsense.utils.helpers import ensure_dir, get_data_path
from commandsense.utils.logging import configure_logging, configure_logging_from

__all__ = [
    "configure_logging",
    "configure_logging_from",
    "ensure_dir",
    "get_data_path",
]

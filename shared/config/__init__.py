"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, Settings
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    Limits,
    SortDirection,
    ALL_COLUMNS,
    PATH_SEPARATOR,
    EXISTS_KEY,
    NOT_EXISTS_KEY,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "Settings",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Limits",
    "SortDirection",
    "ALL_COLUMNS",
    "PATH_SEPARATOR",
    "EXISTS_KEY",
    "NOT_EXISTS_KEY",
]

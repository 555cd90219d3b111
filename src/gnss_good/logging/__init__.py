"""
This package provides easy access to all loggers and utility functions.
"""
from .loggers import (
    BaseLogger,
    DownloadLogger,
    ToolLogger,
    change_all_logger_dirs,
    remove_all_loggers_from_console,
    route_all_loggers_to_console,
    set_all_logger_levels,
)

__all__ = [
    "BaseLogger",
    "DownloadLogger",
    "ToolLogger",
    "change_all_logger_dirs",
    "remove_all_loggers_from_console",
    "route_all_loggers_to_console",
    "set_all_logger_levels",
]

"""
This module contains functions to set up loggers for the package.

The base logger is set up first, writes to a file, and is used to create other loggers.
The download logger is used by the orchestrator and the date loop and prints to the console and a file.
The tool logger records every external command (wget, gzip, crx2rnx) with its output.
"""

import logging
import os
from pathlib import Path
from typing import Literal

BASIC_FORMAT = logging.Formatter(
    "%(asctime)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s"
)
MINIMAL_CONSOLE_FORMAT = logging.Formatter("%(message)s")

BASE_LOG_FILE_NAME = "good.log"
DEFAULT_PATH = os.path.join(Path.home(), ".gnss_good")
LOG_FILE_PATH = os.getenv("LOG_FILE_PATH", DEFAULT_PATH)


class _BaseLogger:
    """Base class for creating and managing loggers.

    This class has file and console handlers.

    Attributes
    ----------
    name : str
        The name of the logger.
    dir : Path
        The directory where the log file will be stored.
    file_name : str
        The name of the log file.
    path : str
        The full path to the log file.
    format : logging.Formatter
        The logging format used by the file handler.
    level : int
        The logging level.
    logger : logging.Logger
        The logger instance.
    file_handler : logging.FileHandler
        The file handler for the logger.
    console_handler : logging.StreamHandler
        The console handler for the logger (optional).
    """

    def __init__(
        self,
        name: str = "base_logger",
        dir: Path = LOG_FILE_PATH,
        file_name: str = BASE_LOG_FILE_NAME,
        format: logging.Formatter = BASIC_FORMAT,
        console_format: logging.Formatter = MINIMAL_CONSOLE_FORMAT,
        level=logging.DEBUG,
    ):

        self.name = name
        self.dir = dir
        os.makedirs(self.dir, exist_ok=True)
        self.file_name = file_name
        self.path = os.path.join(dir, self.file_name)
        self.format = format
        self.console_format = console_format
        self.level = level
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(level)

        # File handler always records DEBUG
        self.file_handler = logging.FileHandler(self.path)
        self.file_handler.setFormatter(format)
        self.file_handler.setLevel(logging.DEBUG)
        self.logger.addHandler(self.file_handler)

    def _reset_file_handler(self) -> None:
        """Replace the file handler after the directory or format changed."""

        for handler in list(self.logger.handlers):
            if type(handler) == logging.FileHandler:
                self.logger.removeHandler(handler)
                handler.close()
        self.file_handler = logging.FileHandler(self.path)
        self.file_handler.setFormatter(self.format)
        self.file_handler.setLevel(logging.DEBUG)
        self.logger.addHandler(self.file_handler)

    def set_dir(self, dir: Path) -> None:
        """Set the directory for the logger and update the file path.

        Parameters
        ----------
        dir : Path
            The directory path to set for the logger.
        """

        dir = Path(dir)
        dir.mkdir(parents=True, exist_ok=True)
        self.dir = dir
        self.path = str(dir / self.file_name)
        self._reset_file_handler()

    def set_level(self, level: Literal[logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]) -> None:  # type: ignore
        """Set the logging level for the logger.

        Parameters
        ----------
        level : int
            One of the standard logging levels.
        """

        self.level = level
        self.logger.setLevel(level)
        if hasattr(self, "console_handler"):
            self.console_handler.setLevel(min(level, logging.INFO))

    def route_to_console(self):
        """Attach a StreamHandler with the minimal console format."""
        if not any(type(h) == logging.StreamHandler for h in self.logger.handlers):
            self.console_handler = logging.StreamHandler()
            self.console_handler.setFormatter(self.console_format)
            self.console_handler.setLevel(logging.INFO)
            self.logger.addHandler(self.console_handler)
            self.logdebug(f"Routing {self.name} logger to console")

    def remove_console(self):
        """Detach the console handler so the logger only writes to its file."""

        for handler in list(self.logger.handlers):
            if type(handler) == logging.StreamHandler:
                self.logger.removeHandler(handler)
                self.logdebug(f"Removed console handler from {self.name} logger")
        if hasattr(self, "console_handler"):
            del self.console_handler

    def logdebug(self, message) -> None:
        """Log a debug message.

        This uses stacklevel=2 so the logging module goes up the stack to get
        the calling function.
        """
        self.logger.debug(message, stacklevel=2)

    def loginfo(self, message) -> None:
        """Log an info message (stacklevel=2)."""
        self.logger.info(message, stacklevel=2)

    def logerr(self, message) -> None:
        """Log an error message (stacklevel=2)."""
        self.logger.error(message, stacklevel=2)

    def logwarn(self, message) -> None:
        """Log a warning message (stacklevel=2)."""
        self.logger.warning(message, stacklevel=2)


def route_all_loggers_to_console():
    """Route all loggers to the console."""
    DownloadLogger.route_to_console()
    ToolLogger.route_to_console()


def remove_all_loggers_from_console():
    """Remove all loggers from the console."""
    DownloadLogger.remove_console()
    ToolLogger.remove_console()


def set_all_logger_levels(level: Literal[logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL]):  # type: ignore
    """Set the level for all loggers.

    Parameters
    ----------
    level : int
        The logging level to set.
    """
    BaseLogger.set_level(level)
    DownloadLogger.set_level(level)
    ToolLogger.set_level(level)


def change_all_logger_dirs(dir: Path):
    """Change the directory for all loggers.

    Parameters
    ----------
    dir : Path
        The directory to set.
    """
    BaseLogger.set_dir(dir)
    DownloadLogger.set_dir(dir)
    ToolLogger.set_dir(dir)


BaseLogger = _BaseLogger()

DownloadLogger = _BaseLogger(
    name="base_logger.download_logger",
    file_name="download.log",
)

ToolLogger = _BaseLogger(
    name="base_logger.tool_logger",
    file_name="tools.log",
)

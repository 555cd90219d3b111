"""
This module manages environment-variable overrides.

It defines a class `Environment` that reads the external tool directory, the
per-invocation timeout and the worker-pool size from environment variables.
"""
import os
from pathlib import Path

TOOL_DIR_KEY = "GOOD_3PARTY_DIR"
TOOL_TIMEOUT_KEY = "GOOD_TOOL_TIMEOUT"
MAX_WORKERS_KEY = "GOOD_MAX_WORKERS"

DEFAULT_TOOL_TIMEOUT = 3600.0
DEFAULT_MAX_WORKERS = 1


def _positive(key: str, raw: str, cast):
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a positive number, got '{raw}'") from None
    if value <= 0:
        raise ValueError(f"{key} must be a positive number, got '{raw}'")
    return value


class Environment:
    """
    A class to manage and provide access to environment-specific settings.

    This class should not be instantiated. It provides its functionality through
    class methods.
    """

    _tool_dir: Path | None = None
    _tool_timeout: float = DEFAULT_TOOL_TIMEOUT
    _max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def tool_dir(cls) -> Path | None:
        """Returns the directory holding wget, gzip and crx2rnx, if configured."""
        return cls._tool_dir

    @classmethod
    def tool_timeout(cls) -> float:
        """Returns the timeout in seconds for one external tool invocation."""
        return cls._tool_timeout

    @classmethod
    def max_workers(cls) -> int:
        """Returns the size of the worker pool used for site-list downloads."""
        return cls._max_workers

    @classmethod
    def load_environment(cls) -> None:
        """
        Loads configuration from environment variables.

        This method checks for GOOD_3PARTY_DIR, GOOD_TOOL_TIMEOUT and
        GOOD_MAX_WORKERS and sets the class-level attributes accordingly.
        Unset variables restore the defaults.

        Raises:
            ValueError: If a numeric variable is not a positive number.
        """
        tool_dir = os.environ.get(TOOL_DIR_KEY)
        cls._tool_dir = Path(tool_dir).expanduser() if tool_dir else None

        match os.environ.get(TOOL_TIMEOUT_KEY):
            case None | "":
                cls._tool_timeout = DEFAULT_TOOL_TIMEOUT
            case raw:
                cls._tool_timeout = _positive(TOOL_TIMEOUT_KEY, raw, float)

        match os.environ.get(MAX_WORKERS_KEY):
            case None | "":
                cls._max_workers = DEFAULT_MAX_WORKERS
            case raw:
                cls._max_workers = _positive(MAX_WORKERS_KEY, raw, int)

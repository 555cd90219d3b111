from pathlib import Path

import pytest

from gnss_good.config.env_config import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_TOOL_TIMEOUT,
    MAX_WORKERS_KEY,
    TOOL_DIR_KEY,
    TOOL_TIMEOUT_KEY,
    Environment,
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in (TOOL_DIR_KEY, TOOL_TIMEOUT_KEY, MAX_WORKERS_KEY):
        monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    monkeypatch.undo()
    Environment.load_environment()


class TestEnvironment:
    def test_defaults(self, clean_env):
        Environment.load_environment()
        assert Environment.tool_dir() is None
        assert Environment.tool_timeout() == DEFAULT_TOOL_TIMEOUT
        assert Environment.max_workers() == DEFAULT_MAX_WORKERS

    def test_overrides(self, clean_env, tmp_path):
        clean_env.setenv(TOOL_DIR_KEY, str(tmp_path))
        clean_env.setenv(TOOL_TIMEOUT_KEY, "90")
        clean_env.setenv(MAX_WORKERS_KEY, "4")
        Environment.load_environment()
        assert Environment.tool_dir() == Path(tmp_path)
        assert Environment.tool_timeout() == 90.0
        assert Environment.max_workers() == 4

    @pytest.mark.parametrize("key, value", [(TOOL_TIMEOUT_KEY, "-1"), (MAX_WORKERS_KEY, "many")])
    def test_invalid_numbers(self, clean_env, key, value):
        clean_env.setenv(key, value)
        with pytest.raises(ValueError):
            Environment.load_environment()

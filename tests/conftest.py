import fnmatch
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# keep log files out of the home directory
os.environ.setdefault("LOG_FILE_PATH", tempfile.mkdtemp(prefix="gnss_good_logs_"))

from gnss_good.external_tools.tool_operations import Converter, Decompressor, ExternalTools, Fetcher
from gnss_good.utils.custom_exceptions import ConvertError, DecompressError

RESOURCES = Path(__file__).parent / "resources"


class FakeFetcher(Fetcher):
    """
    Serves files from an in-memory remote: ``{directory url: {file name: content}}``.

    A pattern filters the listing of the directory url; without a pattern the
    url names a single file.
    """

    def __init__(self, remote: Optional[Dict[str, Dict[str, bytes]]] = None, error: Optional[Exception] = None):
        self.remote = remote or {}
        self.error = error
        self.calls = []
        self.mirror_dirs: List[str] = []

    def fetch(self, url, pattern, target_dir, cut_dirs=0):
        target_dir = Path(target_dir)
        self.calls.append((url, pattern, target_dir, cut_dirs))
        if self.error is not None:
            raise self.error
        for name in self.mirror_dirs:
            (target_dir / name).mkdir(exist_ok=True)
            (target_dir / name / "leftover").write_bytes(b"")
        if pattern is None:
            directory, _, name = url.rpartition("/")
            listing = self.remote.get(directory, {})
            files = {name: listing[name]} if name in listing else {}
        else:
            files = {n: c for n, c in self.remote.get(url, {}).items() if fnmatch.fnmatchcase(n, pattern)}
        created = []
        for name, content in files.items():
            path = target_dir / name
            path.write_bytes(content)
            created.append(path)
        return sorted(created)


class FakeDecompressor(Decompressor):
    """Strips the last suffix; fails for every file, or only for the suffixes in ``fail_on``."""

    def __init__(self, fail: bool = False, fail_on: Tuple[str, ...] = ()):
        self.fail = fail
        self.fail_on = fail_on
        self.calls: List[Path] = []

    def decompress(self, path):
        path = Path(path)
        self.calls.append(path)
        if self.fail or path.suffix in self.fail_on:
            raise DecompressError(f"cannot expand {path.name}")
        expanded = path.with_suffix("")
        expanded.write_bytes(path.read_bytes())
        path.unlink()
        return expanded


class FakeConverter(Converter):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: List[Path] = []

    def convert(self, crx_path, obs_path):
        crx_path, obs_path = Path(crx_path), Path(obs_path)
        self.calls.append(crx_path)
        if self.fail:
            raise ConvertError(f"cannot convert {crx_path.name}")
        obs_path.write_bytes(b"RINEX " + crx_path.read_bytes())
        return obs_path


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def decompressor():
    return FakeDecompressor()


@pytest.fixture
def converter():
    return FakeConverter()


@pytest.fixture
def tools(fetcher, decompressor, converter):
    return ExternalTools(fetcher=fetcher, decompressor=decompressor, converter=converter)


@pytest.fixture
def site_list(tmp_path):
    path = tmp_path / "site.list"
    path.write_text((RESOURCES / "site.list").read_text())
    return path

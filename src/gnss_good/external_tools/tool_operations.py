"""
Wrappers around the external programs used by the downloader.

Each tool sits behind a narrow interface so the orchestrator can be driven by
other implementations (a native HTTP client, an in-process decompressor, test
fakes):

- :class:`Fetcher` mirrors remote files matching a pattern into a directory,
- :class:`Decompressor` expands a ``.gz`` / ``.Z`` file in place,
- :class:`Converter` turns a Hatanaka compressed observation file into RINEX.

Every invocation runs with an explicit working directory and a timeout; no
process-wide ``chdir`` is done.
"""
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..logging import ToolLogger as logger
from ..utils.custom_exceptions import ConvertError, DecompressError, ToolNotFoundError, TransferError

DEFAULT_TIMEOUT = 3600
WGET_SERVER_ERROR = 8
COMPRESSION_SUFFIXES = (".gz", ".Z")


def find_tool(name: str, tool_dir: Optional[Path | str] = None) -> Path:
    """
    Locate an external binary.

    Args:
        name (str): Program name, e.g. ``wget``.
        tool_dir (Optional[Path | str]): Directory searched instead of ``PATH``.

    Returns:
        Path: Absolute path of the binary.

    Raises:
        ToolNotFoundError: If the binary cannot be found.
    """
    found = shutil.which(name, path=str(tool_dir) if tool_dir else None)
    if found is None:
        raise ToolNotFoundError(name)
    logger.logdebug(f"Using {name} at {found}")
    return Path(found)


def _log_output(name: str, result: subprocess.CompletedProcess) -> None:
    for stream in (result.stdout, result.stderr):
        if not stream:
            continue
        for line in stream.splitlines():
            if line.strip():
                logger.logdebug(f"{name}: {line.strip()}")


class Fetcher(ABC):
    @abstractmethod
    def fetch(self, url: str, pattern: Optional[str], target_dir: Path, cut_dirs: int = 0) -> List[Path]:
        """
        Download ``url`` into ``target_dir``.

        With a ``pattern`` the URL is a directory and only matching files are
        kept; without one the URL names a single file.

        Returns:
            List[Path]: Files that appeared directly in ``target_dir``.

        Raises:
            TransferError: If the transfer failed for a reason other than a missing file.
        """


class Decompressor(ABC):
    @abstractmethod
    def decompress(self, path: Path) -> Path:
        """
        Expand ``path`` next to itself and return the expanded file.

        Raises:
            DecompressError: If no expanded file was produced.
        """


class Converter(ABC):
    @abstractmethod
    def convert(self, crx_path: Path, obs_path: Path) -> Path:
        """
        Convert a Hatanaka compressed observation file into ``obs_path``.

        Raises:
            ConvertError: If no observation file was produced.
        """


def _listing(directory: Path) -> set:
    return {p.name for p in directory.iterdir() if p.is_file()}


class WgetFetcher(Fetcher):
    """Recursive ``wget`` retrieval (HTTP, HTTPS, FTP and FTPS) with client-side name filtering."""

    def __init__(self, binary: Path | str = "wget", timeout: float = DEFAULT_TIMEOUT, verbose: bool = False):
        self.binary = str(binary)
        self.timeout = timeout
        self.verbose = verbose

    def command(self, url: str, pattern: Optional[str], cut_dirs: int) -> List[str]:
        cmd = [self.binary, "-r" if self.verbose else "-qr", "-nH"]
        if pattern:
            cmd += ["-A", pattern]
        cmd += [f"--cut-dirs={cut_dirs}", url]
        return cmd

    def fetch(self, url: str, pattern: Optional[str], target_dir: Path, cut_dirs: int = 0) -> List[Path]:
        target_dir = Path(target_dir)
        before = _listing(target_dir)
        cmd = self.command(url, pattern, cut_dirs)
        logger.logdebug(f"Running {' '.join(cmd)} in {target_dir}")
        try:
            result = subprocess.run(cmd, capture_output=True, cwd=target_dir, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise TransferError(f"wget timed out after {self.timeout} s fetching {url}") from e
        _log_output("wget", result)
        if result.returncode not in (0, WGET_SERVER_ERROR):
            raise TransferError(f"wget exited with code {result.returncode} fetching {url}")
        if result.returncode == WGET_SERVER_ERROR:
            logger.logdebug(f"wget reported a server error response for {url}")
        return sorted(target_dir / name for name in _listing(target_dir) - before)


class GzipDecompressor(Decompressor):
    """``gzip -d -f`` for both gzip and Unix-compress (``.Z``) files."""

    def __init__(self, binary: Path | str = "gzip", timeout: float = DEFAULT_TIMEOUT):
        self.binary = str(binary)
        self.timeout = timeout

    def decompress(self, path: Path) -> Path:
        path = Path(path)
        if path.suffix not in COMPRESSION_SUFFIXES:
            raise DecompressError(f"{path.name} is not a .gz or .Z file")
        expanded = path.with_suffix("")
        cmd = [self.binary, "-d", "-f", path.name]
        logger.logdebug(f"Running {' '.join(cmd)} in {path.parent}")
        try:
            result = subprocess.run(cmd, capture_output=True, cwd=path.parent, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise DecompressError(f"gzip timed out on {path.name}") from e
        _log_output("gzip", result)
        if result.returncode != 0 or not expanded.exists():
            raise DecompressError(f"gzip failed on {path.name} (exit code {result.returncode})")
        return expanded


class Crx2RnxConverter(Converter):
    """``crx2rnx -f -`` reading the compact RINEX file on stdin and writing RINEX on stdout."""

    def __init__(self, binary: Path | str = "crx2rnx", timeout: float = DEFAULT_TIMEOUT):
        self.binary = str(binary)
        self.timeout = timeout

    def convert(self, crx_path: Path, obs_path: Path) -> Path:
        crx_path, obs_path = Path(crx_path), Path(obs_path)
        cmd = [self.binary, "-f", "-"]
        logger.logdebug(f"Running {' '.join(cmd)} < {crx_path.name} > {obs_path.name}")
        try:
            with open(crx_path, "rb") as fin, open(obs_path, "wb") as fout:
                result = subprocess.run(
                    cmd, stdin=fin, stdout=fout, stderr=subprocess.PIPE, cwd=crx_path.parent, timeout=self.timeout
                )
        except subprocess.TimeoutExpired as e:
            obs_path.unlink(missing_ok=True)
            raise ConvertError(f"crx2rnx timed out on {crx_path.name}") from e
        if result.stderr:
            logger.logdebug(f"crx2rnx: {result.stderr.decode(errors='replace').strip()}")
        if result.returncode != 0 or obs_path.stat().st_size == 0:
            obs_path.unlink(missing_ok=True)
            raise ConvertError(f"crx2rnx failed on {crx_path.name} (exit code {result.returncode})")
        return obs_path


@dataclass
class ExternalTools:
    """The three collaborators handed to the orchestrator."""

    fetcher: Fetcher
    decompressor: Decompressor
    converter: Optional[Converter] = None

    @classmethod
    def discover(
        cls,
        tool_dir: Optional[Path | str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verbose: bool = False,
        need_converter: bool = True,
    ) -> "ExternalTools":
        """
        Locate ``wget``, ``gzip`` and (optionally) ``crx2rnx``.

        Raises:
            ToolNotFoundError: If a required binary is missing.
        """
        fetcher = WgetFetcher(find_tool("wget", tool_dir), timeout=timeout, verbose=verbose)
        decompressor = GzipDecompressor(find_tool("gzip", tool_dir), timeout=timeout)
        converter = Crx2RnxConverter(find_tool("crx2rnx", tool_dir), timeout=timeout) if need_converter else None
        return cls(fetcher=fetcher, decompressor=decompressor, converter=converter)

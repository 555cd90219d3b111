import gzip
import os
import shutil
import stat

import pytest

from gnss_good.external_tools.tool_operations import (
    ExternalTools,
    GzipDecompressor,
    WgetFetcher,
    find_tool,
)
from gnss_good.utils.custom_exceptions import DecompressError, ToolNotFoundError, TransferError


def write_script(directory, name, body):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class TestFindTool:
    def test_missing_tool(self, tmp_path):
        with pytest.raises(ToolNotFoundError) as e:
            find_tool("wget", tool_dir=tmp_path)
        assert e.value.tool == "wget"
        assert "3partyDir" in str(e.value), "Hint names the configuration key"

    def test_tool_dir_is_searched(self, tmp_path):
        script = write_script(tmp_path, "crx2rnx", "exit 0\n")
        assert find_tool("crx2rnx", tool_dir=tmp_path) == script

    def test_discover_without_converter(self, tmp_path):
        write_script(tmp_path, "wget", "exit 0\n")
        write_script(tmp_path, "gzip", "exit 0\n")
        tools = ExternalTools.discover(tool_dir=tmp_path, need_converter=False)
        assert tools.converter is None
        with pytest.raises(ToolNotFoundError):
            ExternalTools.discover(tool_dir=tmp_path, need_converter=True)


class TestWgetFetcher:
    def test_quiet_command(self):
        cmd = WgetFetcher("wget").command("ftp://host/a/b", "*0450.21d.*", 2)
        assert cmd == ["wget", "-qr", "-nH", "-A", "*0450.21d.*", "--cut-dirs=2", "ftp://host/a/b"]

    def test_verbose_command_without_pattern(self):
        cmd = WgetFetcher("wget", verbose=True).command("https://host/f.atx", None, 3)
        assert cmd == ["wget", "-r", "-nH", "--cut-dirs=3", "https://host/f.atx"]

    @pytest.mark.skipif(os.name != "posix", reason="shell scripts stand in for wget")
    def test_new_files_are_returned(self, tmp_path):
        binary = write_script(tmp_path, "wget", "echo data > igs21450.sp3.gz\nexit 0\n")
        target = tmp_path / "target"
        target.mkdir()
        (target / "old.txt").write_text("old")
        files = WgetFetcher(binary).fetch("ftp://host/products/2145", "igs21450.sp3.*", target, 2)
        assert files == [target / "igs21450.sp3.gz"]

    @pytest.mark.skipif(os.name != "posix", reason="shell scripts stand in for wget")
    def test_server_error_is_not_a_transfer_failure(self, tmp_path):
        binary = write_script(tmp_path, "wget", "exit 8\n")
        target = tmp_path / "target"
        target.mkdir()
        assert WgetFetcher(binary).fetch("ftp://host/x", "*.gz", target) == []

    @pytest.mark.skipif(os.name != "posix", reason="shell scripts stand in for wget")
    def test_network_failure(self, tmp_path):
        binary = write_script(tmp_path, "wget", "exit 4\n")
        target = tmp_path / "target"
        target.mkdir()
        with pytest.raises(TransferError):
            WgetFetcher(binary).fetch("ftp://host/x", "*.gz", target)


class TestGzipDecompressor:
    def test_rejects_plain_file(self, tmp_path):
        path = tmp_path / "igs14.atx"
        path.write_text("antex")
        with pytest.raises(DecompressError):
            GzipDecompressor("gzip").decompress(path)

    @pytest.mark.skipif(shutil.which("gzip") is None, reason="gzip not installed")
    def test_expands_in_place(self, tmp_path):
        path = tmp_path / "brdc0450.21n.gz"
        with gzip.open(path, "wb") as f:
            f.write(b"navigation")
        expanded = GzipDecompressor(shutil.which("gzip")).decompress(path)
        assert expanded == tmp_path / "brdc0450.21n"
        assert expanded.read_bytes() == b"navigation"
        assert not path.exists()

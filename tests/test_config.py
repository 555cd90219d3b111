import datetime
from pathlib import Path

import pytest

from gnss_good.config.good_config import CenterOption, GoodConfig, NavigationType, ObservationType
from gnss_good.products.archives import Archive
from gnss_good.utils.custom_exceptions import ConfigError

RESOURCES = Path(__file__).parent / "resources"
SAMPLE_CFG = RESOURCES / "sample.cfg"


def write_cfg(tmp_path, body, name="good.cfg"):
    path = tmp_path / name
    path.write_text(body)
    return path


class TestFlatConfig:
    def test_sample(self):
        config = GoodConfig.from_cfg(SAMPLE_CFG)
        assert config.main_dir == Path("/data/gnss")
        assert config.start_date == datetime.date(2021, 2, 14)
        assert config.ndays == 2
        assert config.minus_add_1day
        assert not config.print_info_wget
        assert config.ftp_downloading
        assert config.archive is Archive.IGN
        assert config.tool_dir == Path("/opt/good/bin")

    def test_directories(self):
        config = GoodConfig.from_cfg(SAMPLE_CFG)
        assert config.obs_dir == Path("/data/gnss/obs"), "Flag 0 joins mainDir"
        assert config.clk_dir == Path("/archive/clk"), "Flag 1 is used as given"
        assert config.tbl_dir == Path("/data/gnss/tbl"), "Trailing separator is dropped"
        assert config.eop_dir == Path("/data/gnss/eop"), "Unset directories default under mainDir"

    def test_sections(self):
        config = GoodConfig.from_cfg(SAMPLE_CFG)
        assert config.obs.enabled
        assert config.obs.type is ObservationType.HOURLY
        assert config.obs.all_sites
        assert config.obs.hours() == [3, 4]
        assert not config.obm.enabled
        assert config.obh.type is ObservationType.RATE_30S
        assert config.nav.type is NavigationType.DAILY
        assert config.nav.systems == "mixed"
        assert config.orbclk.center == "igu"
        assert config.orbclk.hours() == [6, 12, 18]
        assert config.eop.hours() == [0]
        assert config.ion.enabled and config.ion.center == "cod"
        assert not config.snx.enabled
        assert config.atx.enabled

    def test_zero_issue_count(self):
        option = CenterOption(enabled=True, center="igu", start_hour=0, count=0)
        assert option.hours() == [], "a zero count selects no issue"

    def test_year_month_day(self, tmp_path):
        path = write_cfg(tmp_path, "mainDir = /data\nprocTime = 1 2020 12 31 3\n")
        config = GoodConfig.from_cfg(path)
        assert config.start_date == datetime.date(2020, 12, 31)
        assert config.ndays == 3
        assert not config.ftp_downloading

    def test_missing_day_count(self, tmp_path):
        path = write_cfg(tmp_path, "mainDir = /data\nprocTime = 2 2021 45\n")
        with pytest.raises(ConfigError) as e:
            GoodConfig.from_cfg(path)
        assert "good.cfg:2" in str(e.value)

    def test_relative_directory_without_main_dir(self, tmp_path):
        path = write_cfg(tmp_path, "obsDir = 0 obs\nprocTime = 2 2021 45 1\n")
        with pytest.raises(ConfigError):
            GoodConfig.from_cfg(path)

    def test_sections_before_ftp_line_ignored(self, tmp_path):
        body = "mainDir = /data\nprocTime = 2 2021 45 1\ngetAtx = 1\nftpDownloading = 1 CDDIS\nnoSuchKey = 3\n"
        config = GoodConfig.from_cfg(write_cfg(tmp_path, body))
        assert not config.atx.enabled
        assert config.archive is Archive.CDDIS

    @pytest.mark.parametrize(
        "line",
        [
            "ftpDownloading = 1 ESA",
            "ftpDownloading = 1 NOWHERE",
            "ftpDownloading = 1 CDDIS\ngetObc = 1 hourly all",
            "ftpDownloading = 1 CDDIS\ngetNav = 1 daily bds",
            "ftpDownloading = 1 CDDIS\ngetTrp = 1 jpl",
        ],
    )
    def test_invalid_values(self, tmp_path, line):
        path = write_cfg(tmp_path, f"mainDir = /data\nprocTime = 2 2021 45 1\n{line}\n")
        with pytest.raises(ConfigError):
            GoodConfig.from_cfg(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            GoodConfig.from_cfg(tmp_path / "missing.cfg")


class TestYamlConfig:
    def test_from_yaml(self, tmp_path):
        body = (
            f"main_dir: {tmp_path}\n"
            "obs_dir: rinex\n"
            "start_date: 2021-02-14\n"
            "ftp_downloading: true\n"
            "archive: whu\n"
            "obs:\n"
            "  enabled: true\n"
            "  type: daily\n"
            "  sites: all\n"
        )
        config = GoodConfig.from_yaml(write_cfg(tmp_path, body, "good.yaml"))
        assert config.obs_dir == tmp_path / "rinex"
        assert config.archive is Archive.WHU
        assert config.obs.enabled

    def test_round_trip(self, tmp_path):
        config = GoodConfig.from_cfg(SAMPLE_CFG)
        path = tmp_path / "good.yml"
        config.to_yaml(path)
        assert GoodConfig.from_yaml(path) == config

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError):
            GoodConfig.from_yaml(write_cfg(tmp_path, "- a\n- b\n", "good.yaml"))

    def test_load_dispatch(self, tmp_path):
        yaml_path = write_cfg(tmp_path, f"main_dir: {tmp_path}\nstart_date: 2021-02-14\n", "good.yml")
        assert GoodConfig.load(yaml_path).start_date == datetime.date(2021, 2, 14)
        assert GoodConfig.load(SAMPLE_CFG).archive is Archive.IGN

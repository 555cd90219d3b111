import datetime

import pytest

from gnss_good.config.good_config import GoodConfig
from gnss_good.products.product_operations import FetchOutcome
from gnss_good.products.product_schemas import ProductKind
from gnss_good.time_utils.gnss_time import epoch_to_yrdoy
from gnss_good.utils.custom_exceptions import UnresolvableRequestError
from gnss_good.workflows.download_workflow import DownloadWorkflow, run_download

CDDIS = "ftps://gdc.cddis.eosdis.nasa.gov/pub/gnss"


def make_config(tmp_path, **sections):
    return GoodConfig(main_dir=tmp_path, start_date=datetime.date(2021, 2, 14), ftp_downloading=True, **sections)


class TestJobs:
    def test_order(self, tmp_path, site_list, tools):
        config = make_config(
            tmp_path,
            obs={"enabled": True, "sites": str(site_list)},
            obm={"enabled": True, "sites": "all"},
            nav={"enabled": True, "systems": "all"},
            orbclk={"enabled": True, "center": "igs"},
            eop={"enabled": True, "center": "igs"},
            snx={"enabled": True},
            dcb={"enabled": True},
            ion={"enabled": True, "center": "cod"},
            roti={"enabled": True},
            trp={"enabled": True, "center": "cod"},
            rt_orbclk={"enabled": True},
            rt_bias={"enabled": True},
            atx={"enabled": True},
        )
        jobs = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)
        assert [job.label for job in jobs] == [
            "obs", "obm", "nav", "sp3", "clk", "eop", "snx", "dcb", "ion", "roti", "trp",
            "rt_sp3", "rt_clk", "rt_bias", "atx",
        ]
        assert [r.site for r in jobs[0].requests] == ["algo", "brux", "abmf"]
        assert [r.site for r in jobs[1].requests] == [None]
        assert jobs[0].product_dir == tmp_path / "obs"
        assert jobs[-2].product_dir == tmp_path / "bia"
        assert jobs[-1].product_dir == tmp_path / "tbl"

    def test_neighbouring_days(self, tmp_path, tools):
        config = make_config(tmp_path, orbclk={"enabled": True, "center": "igs"})
        sp3, clk = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)
        days = [epoch_to_yrdoy(r.epoch) for r in sp3.requests]
        assert days == [(2021, 45), (2021, 44), (2021, 46)]
        assert {r.kind for r in clk.requests} == {ProductKind.CLK_FINAL}

    def test_ultra_rapid_stays_on_day(self, tmp_path, tools):
        config = make_config(tmp_path, orbclk={"enabled": True, "center": "igu", "start_hour": 0, "count": 4})
        jobs = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)
        assert [job.label for job in jobs] == ["sp3"]
        assert [r.hour for r in jobs[0].requests] == [0, 6, 12, 18]
        assert {epoch_to_yrdoy(r.epoch) for r in jobs[0].requests} == {(2021, 45)}

    def test_highrate_grid(self, tmp_path, site_list, tools):
        config = make_config(
            tmp_path, obs={"enabled": True, "type": "highrate", "sites": str(site_list), "start_hour": 5, "hour_count": 1}
        )
        (job,) = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)
        assert [(r.hour, r.minute) for r in job.requests[:4]] == [(5, 0), (5, 15), (5, 30), (5, 45)]
        assert len(job.requests) == 12

    def test_hourly_navigation_uses_observation_sites(self, tmp_path, site_list, tools):
        config = make_config(
            tmp_path,
            obm={"enabled": True, "sites": str(site_list)},
            nav={"enabled": True, "type": "hourly", "systems": "gal", "start_hour": 0, "hour_count": 2},
        )
        nav = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)[-1]
        assert [(r.site, r.hour) for r in nav.requests[:2]] == [("algo", 0), ("algo", 1)]
        assert len(nav.requests) == 6

    def test_unreadable_site_list_drops_dependent_jobs(self, tmp_path, site_list, tools):
        config = make_config(
            tmp_path,
            obs={"enabled": True, "sites": str(tmp_path / "missing.list")},
            obm={"enabled": True, "sites": str(site_list)},
            nav={"enabled": True, "type": "hourly", "systems": "gps", "hour_count": 1},
            trp={"enabled": True, "center": "igs"},
        )
        jobs = DownloadWorkflow(config, tools).jobs_for_day(config.start_epoch)
        assert [job.label for job in jobs] == ["obm"], "sections reusing the obs stations are dropped with it"


class TestValidate:
    def test_hourly_navigation_needs_site_list(self, tmp_path, tools):
        config = make_config(tmp_path, nav={"enabled": True, "type": "hourly", "systems": "gps"})
        with pytest.raises(UnresolvableRequestError):
            DownloadWorkflow(config, tools).validate()

    def test_center_without_product(self, tmp_path, tools):
        config = make_config(tmp_path, eop={"enabled": True, "center": "igr"})
        with pytest.raises(UnresolvableRequestError):
            DownloadWorkflow(config, tools).validate()

    def test_unknown_center(self, tmp_path, tools):
        config = make_config(tmp_path, orbclk={"enabled": True, "center": "abc"})
        with pytest.raises(UnresolvableRequestError):
            DownloadWorkflow(config, tools).validate()


class TestRun:
    def test_switched_off(self, tmp_path, tools, fetcher):
        config = GoodConfig(main_dir=tmp_path, start_date=datetime.date(2021, 2, 14), atx={"enabled": True})
        assert DownloadWorkflow(config, tools).run() == []
        assert fetcher.calls == []

    def test_site_list_days(self, tmp_path, site_list, tools, fetcher):
        fetcher.remote[f"{CDDIS}/data/daily/2021/045/21d"] = {"algo0450.21d.gz": b"a", "brux0450.21d.Z": b"b"}
        fetcher.remote[f"{CDDIS}/data/daily/2021/046/21d"] = {"algo0460.21d.gz": b"a"}
        config = make_config(tmp_path, ndays=2, obs={"enabled": True, "sites": str(site_list)})
        reports, counts = run_download(config, tools)
        assert len(reports) == 6
        assert counts[FetchOutcome.DOWNLOADED] == 3
        assert counts[FetchOutcome.NOT_PUBLISHED] == 3
        assert (tmp_path / "obs" / "2021" / "045" / "daily" / "brux0450.21o").exists()
        assert (tmp_path / "obs" / "2021" / "046" / "daily" / "algo0460.21o").exists()

    def test_rerun_is_idempotent(self, tmp_path, site_list, tools, fetcher):
        fetcher.remote[f"{CDDIS}/data/daily/2021/045/21d"] = {"algo0450.21d.gz": b"a"}
        config = make_config(tmp_path, obs={"enabled": True, "sites": str(site_list)})
        run_download(config, tools)
        calls = len(fetcher.calls)
        reports, counts = run_download(config, tools)
        assert counts[FetchOutcome.ALREADY_PRESENT] == 1
        assert len(fetcher.calls) == calls + 2, "Only the missing stations are fetched again"

    def test_weekly_sinex_falls_back_to_daily(self, tmp_path, tools, fetcher):
        fetcher.remote[f"{CDDIS}/products/2145"] = {"igs21P21450.snx.gz": b"sinex"}
        config = make_config(tmp_path, snx={"enabled": True})
        reports, _ = run_download(config, tools)
        assert [(r.request.kind, r.outcome) for r in reports] == [(ProductKind.SNX_DAILY, FetchOutcome.DOWNLOADED)]
        assert (tmp_path / "snx" / "igs2145.snx").read_bytes() == b"sinex"

    def test_weekly_sinex_found(self, tmp_path, tools, fetcher):
        fetcher.remote[f"{CDDIS}/products/2145"] = {"igs21P2145.snx.Z": b"weekly", "igs21P21450.snx.gz": b"daily"}
        config = make_config(tmp_path, snx={"enabled": True})
        reports, _ = run_download(config, tools)
        assert [r.request.kind for r in reports] == [ProductKind.SNX_WEEKLY]
        assert (tmp_path / "snx" / "igs2145.snx").read_bytes() == b"weekly"

    def test_unreadable_site_list_skips_only_its_section(self, tmp_path, tools, fetcher):
        fetcher.remote["https://files.igs.org/pub/station/general"] = {"igs14.atx": b"antex"}
        config = make_config(
            tmp_path,
            obs={"enabled": True, "sites": str(tmp_path / "missing.list")},
            atx={"enabled": True},
        )
        reports, counts = run_download(config, tools)
        assert [(r.request.kind, r.outcome) for r in reports] == [(ProductKind.ATX, FetchOutcome.DOWNLOADED)]
        assert counts[FetchOutcome.DOWNLOADED] == 1
        assert (tmp_path / "tbl" / "igs14.atx").read_bytes() == b"antex"

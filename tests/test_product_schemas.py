import pytest

from gnss_good.products.archives import Archive, get_archive, ProductCategory
from gnss_good.products.product_schemas import (
    CENTER_KINDS,
    TEMPLATES,
    Latency,
    ProductKind,
    ProductRequest,
    classify_center,
    naming_fields,
    product_hours,
    resolve,
    site_from_filename,
    validate_table,
)
from gnss_good.time_utils.gnss_time import gps_week_to_epoch, yrdoy_to_epoch
from gnss_good.utils.custom_exceptions import ConfigError, UnresolvableRequestError

DAY = yrdoy_to_epoch(2021, 45)
CDDIS = "ftps://gdc.cddis.eosdis.nasa.gov/pub/gnss"


class TestCenters:
    @pytest.mark.parametrize(
        "code, latency",
        [("igu", Latency.ULTRA), ("IGR", Latency.RAPID), ("cod", Latency.FINAL), ("wum", Latency.MGEX)],
    )
    def test_classify(self, code, latency):
        assert classify_center(code).latency is latency

    def test_unknown_center(self):
        with pytest.raises(UnresolvableRequestError):
            classify_center("xyz")
        # unresolvable requests are configuration errors
        assert issubclass(UnresolvableRequestError, ConfigError)

    def test_product_hours(self):
        assert product_hours(classify_center("igu"), 1, 3) == [6, 12, 18]
        assert product_hours(classify_center("igu"), 0, 10) == [0, 6, 12, 18]
        assert product_hours(classify_center("gfu"), 4, 2) == [6, 9]
        assert product_hours(classify_center("igs"), 5, 2) == [0]

    @pytest.mark.parametrize("center", ["igs", "igr", "igu", "gfu"])
    @pytest.mark.parametrize("count", [0, -1])
    def test_product_hours_without_issues(self, center, count):
        assert product_hours(classify_center(center), 0, count) == []

    def test_every_center_kind_is_named_somewhere(self):
        named = {kind for _, kind in TEMPLATES}
        assert CENTER_KINDS <= named


class TestNamingFields:
    def test_fields(self):
        fields = naming_fields(DAY, hour=1, minute=15, site="ALGO00CAN")
        assert fields["yyyy"] == "2021"
        assert fields["yy"] == "21"
        assert fields["doy"] == "045"
        assert fields["MM"] == "02"
        assert fields["wwww"] == "2145"
        assert fields["dow"] == "0"
        assert fields["hh"] == "01"
        assert fields["hl"] == "b"
        assert fields["mm"] == "15"
        assert fields["site"] == "algo"
        assert fields["SITE"] == "ALGO"

    def test_site_from_filename(self):
        assert site_from_filename("ALGO00CAN_R_20210450000_01D_30S_MO.crx") == "algo"
        assert site_from_filename("brux0450.21d") == "brux"


class TestObservations:
    def test_cddis_daily_batch(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_DAILY, Archive.CDDIS))
        assert rp.url == f"{CDDIS}/data/daily/2021/045/21d"
        assert rp.cut_dirs == 7
        assert rp.remote == "*0450.21d"
        assert rp.batch
        assert rp.local is None
        assert rp.accept_pattern == "*0450.21d.*"
        assert rp.local_dir == "2021/045/daily"

    def test_all_is_batch(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_DAILY, Archive.CDDIS, site="all"))
        assert rp.batch

    def test_for_site(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_DAILY)).for_site("xxxx")
        assert not rp.batch
        assert rp.remote == "xxxx0450.21d"
        assert rp.local == "xxxx0450.21o"
        assert rp.crx_name == "xxxx0450.21d"

    def test_ign_layout(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_DAILY, Archive.IGN, site="algo"))
        assert rp.url == "ftp://igs.ign.fr/pub/igs/data/2021/045"
        assert rp.cut_dirs == 5

    def test_hourly_session_letter(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_HOURLY, site="algo", hour=2))
        assert rp.url == f"{CDDIS}/data/hourly/2021/045/02"
        assert rp.local == "algo045c.21o"
        assert rp.local_dir == "2021/045/hourly/02"

    def test_highrate_minutes(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_HIGHRATE, site="algo", hour=0, minute=30))
        assert rp.local == "algo045a30.21o"
        with pytest.raises(UnresolvableRequestError):
            resolve(ProductRequest(DAY, ProductKind.OBS_IGS_HIGHRATE, site="algo", minute=10))

    def test_whu_highrate_uses_cddis(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_IGS_HIGHRATE, Archive.WHU, site="algo", hour=3))
        assert rp.url == f"{CDDIS}/data/highrate/2021/045/21d/03"

    def test_mgex_long_name(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_MGEX_DAILY, site="ALGO"))
        assert rp.remote == "ALGO*_20210450000_01D_30S_MO.crx"
        assert rp.local == "algo0450.21o"
        assert rp.crx_name == "algo0450.21d"

    def test_site_list_only_products(self):
        with pytest.raises(UnresolvableRequestError):
            resolve(ProductRequest(DAY, ProductKind.OBS_NGS_DAILY))
        with pytest.raises(UnresolvableRequestError):
            resolve(ProductRequest(DAY, ProductKind.NAV_HOURLY_GPS, site="all"))

    def test_single_host_ignores_archive(self):
        rp = resolve(ProductRequest(DAY, ProductKind.OBS_NGS_DAILY, Archive.IGN, site="zdc1"))
        assert rp.archive is Archive.NGS
        assert rp.url == "https://noaa-cors-pds.s3.amazonaws.com/rinex/2021/045/zdc1"
        assert rp.exact_urls() == [(f"{rp.url}/zdc10450.21d.gz", "zdc10450.21d.gz")]


class TestNavigation:
    def test_daily_mixed(self):
        rp = resolve(ProductRequest(DAY, ProductKind.NAV_DAILY_MIXED))
        assert rp.url == f"{CDDIS}/data/daily/2021/brdc"
        assert rp.remote == "BRDC00IGS_R_20210450000_01D_MN.rnx"
        assert rp.local == "brdm0450.21p"

    def test_whu_legacy_layout(self):
        old = resolve(ProductRequest(yrdoy_to_epoch(2019, 100), ProductKind.NAV_DAILY_GPS, Archive.WHU))
        assert old.url == "ftp://igs.gnsswhu.cn/pub/gps/data/daily/2019/100/19n"
        new = resolve(ProductRequest(DAY, ProductKind.NAV_DAILY_GPS, Archive.WHU))
        assert new.url == "ftp://igs.gnsswhu.cn/pub/gps/data/daily/2021/brdc"

    def test_hourly_per_site(self):
        rp = resolve(ProductRequest(DAY, ProductKind.NAV_HOURLY_GAL, site="algo", hour=5))
        assert rp.remote == "ALGO*_R_20210450500_01H_EN.rnx"
        assert rp.local == "algo045f.21en"


class TestProducts:
    def test_final_clock(self):
        rp = resolve(ProductRequest(gps_week_to_epoch(2150, 3), ProductKind.CLK_FINAL, center="igs"))
        assert rp.url == f"{CDDIS}/products/2150"
        assert rp.local == "igs21503.clk_30s"
        assert rp.local_dir == "final"
        assert "repro3" in rp.cleanup

    def test_code_final_extension(self):
        rp = resolve(ProductRequest(DAY, ProductKind.SP3_FINAL, center="cod"))
        assert rp.local == "cod21450.eph"

    def test_mgex_orbit_renamed(self):
        rp = resolve(ProductRequest(DAY, ProductKind.SP3_MGEX, center="com"))
        assert rp.remote == "COD0MGXFIN_20210450000_01D_*_ORB.SP3"
        assert rp.local == "com21450.sp3"
        assert rp.url == f"{CDDIS}/products/mgex/2145"

    def test_center_must_publish_kind(self):
        with pytest.raises(UnresolvableRequestError):
            resolve(ProductRequest(DAY, ProductKind.CLK_RAPID, center="igu"))
        with pytest.raises(UnresolvableRequestError):
            resolve(ProductRequest(DAY, ProductKind.SP3_FINAL))

    def test_esa_exact_order(self):
        rp = resolve(ProductRequest(DAY, ProductKind.SP3_ULTRA, center="esu", hour=6))
        assert rp.archive is Archive.ESA
        names = [name for _, name in rp.exact_urls()]
        assert names == ["esu21450_06.sp3.Z", "esu21450_06.sp3.gz"]

    def test_code_rapid(self):
        rp = resolve(ProductRequest(DAY, ProductKind.SP3_RAPID, center="cor"))
        assert rp.url == "ftp://ftp.aiub.unibe.ch/CODE/2021_M"
        assert rp.remote == "COD21450.EPH_M"

    def test_antenna_table(self):
        rp = resolve(ProductRequest(DAY, ProductKind.ATX))
        assert rp.exact_urls() == [("https://files.igs.org/pub/station/general/igs14.atx", "igs14.atx")]
        assert rp.accept_pattern == "igs14.atx"

    def test_real_time_bias_directory(self):
        bias = resolve(ProductRequest(DAY, ProductKind.RT_BIAS))
        assert bias.local_dir == ""
        assert bias.local == "cnt21450.bia"
        assert resolve(ProductRequest(DAY, ProductKind.RT_SP3)).local_dir == "real_time"

    def test_dcb_month(self):
        rp = resolve(ProductRequest(DAY, ProductKind.DCB_P2C2))
        assert rp.remote == "P2C22102_RINEX.DCB"
        assert rp.local == "P2C22102.DCB"


class TestValidateTable:
    def test_complete(self):
        validate_table(
            {
                (Archive.CDDIS, ProductKind.OBS_IGS_DAILY, None),
                (Archive.IGN, ProductKind.SP3_FINAL, "igs"),
                (Archive.WHU, ProductKind.ATX, None),
            }
        )

    def test_missing_entry(self):
        with pytest.raises(UnresolvableRequestError) as e:
            validate_table({(Archive.CDDIS, ProductKind.CLK_RAPID, "esu")})
        assert "clk_rapid" in str(e.value)

    def test_archive_lookup(self):
        assert get_archive("ign").base(ProductCategory.OBS_DAILY) == "ftp://igs.ign.fr/pub/igs/data"
        with pytest.raises(KeyError):
            get_archive("nowhere")

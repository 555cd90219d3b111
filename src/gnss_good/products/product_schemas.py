"""
Naming resolver for remote GNSS observation and product files.

Every downloadable product is described by a :class:`NamingTemplate` stored in
``TEMPLATES`` under the key ``(archive, kind)``. A :class:`ProductRequest`
(epoch, kind, archive, optional analysis center / site / hour / minute) is
turned into a :class:`ResolvedProduct` holding the remote directory URL, the
``--cut-dirs`` depth, the remote file pattern and the canonical local file
name.

Template strings are ``str.format`` patterns using the fields built by
:func:`naming_fields`::

    yyyy yy doy wwww dow hh hl mm MM site SITE ac prefix sp3_ext clk_ext base
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..logging import DownloadLogger as logger
from ..time_utils.gnss_time import (
    Epoch,
    epoch_to_gps_week,
    epoch_to_ymdhms,
    epoch_to_yrdoy,
    hour_letter,
    yyyy_to_yy,
)
from ..utils.custom_exceptions import UnresolvableRequestError
from .archives import ARCHIVES, GLOBAL_ARCHIVES, Archive, ProductCategory

HIGHRATE_MINUTES: Tuple[int, ...] = (0, 15, 30, 45)
ALL_SITES = "all"


class ProductKind(str, Enum):
    # observations
    OBS_IGS_DAILY = "obs_igs_daily"
    OBS_IGS_HOURLY = "obs_igs_hourly"
    OBS_IGS_HIGHRATE = "obs_igs_highrate"
    OBS_MGEX_DAILY = "obs_mgex_daily"
    OBS_MGEX_HOURLY = "obs_mgex_hourly"
    OBS_MGEX_HIGHRATE = "obs_mgex_highrate"
    OBS_CUT_DAILY = "obs_cut_daily"
    OBS_GA_DAILY = "obs_ga_daily"
    OBS_GA_HOURLY = "obs_ga_hourly"
    OBS_GA_HIGHRATE = "obs_ga_highrate"
    OBS_HK_30S = "obs_hk_30s"
    OBS_HK_5S = "obs_hk_5s"
    OBS_HK_1S = "obs_hk_1s"
    OBS_NGS_DAILY = "obs_ngs_daily"
    OBS_EPN_DAILY = "obs_epn_daily"
    # broadcast navigation
    NAV_DAILY_GPS = "nav_daily_gps"
    NAV_DAILY_GLO = "nav_daily_glo"
    NAV_DAILY_MIXED = "nav_daily_mixed"
    NAV_HOURLY_GPS_SHORT = "nav_hourly_gps_short"
    NAV_HOURLY_GLO_SHORT = "nav_hourly_glo_short"
    NAV_HOURLY_GPS = "nav_hourly_gps"
    NAV_HOURLY_GLO = "nav_hourly_glo"
    NAV_HOURLY_BDS = "nav_hourly_bds"
    NAV_HOURLY_GAL = "nav_hourly_gal"
    NAV_HOURLY_QZS = "nav_hourly_qzs"
    NAV_HOURLY_IRN = "nav_hourly_irn"
    NAV_HOURLY_MIXED = "nav_hourly_mixed"
    NAV_RTNAV = "nav_rtnav"
    # precise orbit / clock / earth rotation
    SP3_ULTRA = "sp3_ultra"
    SP3_ULTRA_MGEX = "sp3_ultra_mgex"
    SP3_RAPID = "sp3_rapid"
    SP3_FINAL = "sp3_final"
    SP3_MGEX = "sp3_mgex"
    CLK_RAPID = "clk_rapid"
    CLK_FINAL = "clk_final"
    CLK_MGEX = "clk_mgex"
    EOP_ULTRA = "eop_ultra"
    EOP_FINAL = "eop_final"
    # other products
    SNX_WEEKLY = "snx_weekly"
    SNX_DAILY = "snx_daily"
    DCB_P1P2 = "dcb_p1p2"
    DCB_P1C1 = "dcb_p1c1"
    DCB_P2C2 = "dcb_p2c2"
    DCB_MGEX = "dcb_mgex"
    ION = "ion"
    ROTI = "roti"
    ZTD_IGS = "ztd_igs"
    ZTD_COD = "ztd_cod"
    RT_SP3 = "rt_sp3"
    RT_CLK = "rt_clk"
    RT_BIAS = "rt_bias"
    ATX = "atx"


class Latency(str, Enum):
    ULTRA = "ultra"
    RAPID = "rapid"
    FINAL = "final"
    MGEX = "mgex"


@dataclass(frozen=True)
class AnalysisCenter:
    """
    An analysis center code and the products it publishes.

    Attributes:
        code (str): Three letter code used in configuration, e.g. ``igs``.
        name (str): Organisation name used in log messages.
        latency (Latency): Latency class the code belongs to.
        orbit_kinds (Tuple[ProductKind, ...]): Orbit/clock kinds fetched for the code.
        eop_kind (Optional[ProductKind]): Earth rotation kind, None if not published.
        host (Optional[Archive]): Fixed host; None means the selected global archive.
        prefix (Optional[str]): Remote file prefix when it differs from ``code``.
        step (int): Hour spacing of the issues (24 for daily products).
        sp3_ext (str): Orbit file extension.
        clk_ext (str): Clock file extension.
    """

    code: str
    name: str
    latency: Latency
    orbit_kinds: Tuple[ProductKind, ...]
    eop_kind: Optional[ProductKind] = None
    host: Optional[Archive] = None
    prefix: Optional[str] = None
    step: int = 24
    sp3_ext: str = "sp3"
    clk_ext: str = "clk"

    @property
    def kinds(self) -> Tuple[ProductKind, ...]:
        if self.eop_kind is None:
            return self.orbit_kinds
        return self.orbit_kinds + (self.eop_kind,)


_ULTRA = (ProductKind.SP3_ULTRA,)
_RAPID = (ProductKind.SP3_RAPID, ProductKind.CLK_RAPID)
_FINAL = (ProductKind.SP3_FINAL, ProductKind.CLK_FINAL)
_MGEX = (ProductKind.SP3_MGEX, ProductKind.CLK_MGEX)

ANALYSIS_CENTERS: Dict[str, AnalysisCenter] = {
    ac.code: ac
    for ac in (
        # ultra-rapid
        AnalysisCenter("esu", "ESA", Latency.ULTRA, _ULTRA, ProductKind.EOP_ULTRA, host=Archive.ESA, step=6),
        AnalysisCenter("gfu", "GFZ", Latency.ULTRA, _ULTRA, ProductKind.EOP_ULTRA, host=Archive.GFZ, step=3),
        AnalysisCenter("igu", "IGS", Latency.ULTRA, _ULTRA, ProductKind.EOP_ULTRA, step=6),
        AnalysisCenter("wuu", "WHU", Latency.ULTRA, (ProductKind.SP3_ULTRA_MGEX,), prefix="WUM0MGXULA", step=1),
        # rapid
        AnalysisCenter("cor", "CODE", Latency.RAPID, _RAPID, host=Archive.CODE, prefix="COD"),
        AnalysisCenter("emp", "NRCan", Latency.RAPID, _RAPID, host=Archive.NRCAN, prefix="emr"),
        AnalysisCenter("esr", "ESA", Latency.RAPID, _RAPID, host=Archive.ESA),
        AnalysisCenter("gfr", "GFZ", Latency.RAPID, _RAPID, host=Archive.GFZ, prefix="gfz"),
        AnalysisCenter("igr", "IGS", Latency.RAPID, _RAPID),
        # final
        AnalysisCenter("cod", "CODE", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL, sp3_ext="eph", clk_ext="clk_05s"),
        AnalysisCenter("emr", "NRCan", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        AnalysisCenter("esa", "ESA", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        AnalysisCenter("gfz", "GFZ", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        AnalysisCenter("grg", "CNES", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        AnalysisCenter("igs", "IGS", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL, clk_ext="clk_30s"),
        AnalysisCenter("jpl", "JPL", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        AnalysisCenter("mit", "MIT", Latency.FINAL, _FINAL, ProductKind.EOP_FINAL),
        # multi-GNSS final
        AnalysisCenter("com", "CODE", Latency.MGEX, _MGEX, prefix="COD0MGXFIN"),
        AnalysisCenter("gbm", "GFZ", Latency.MGEX, _MGEX, prefix="GFZ0MGXRAP"),
        AnalysisCenter("grm", "CNES", Latency.MGEX, _MGEX, prefix="GRG0MGXFIN"),
        AnalysisCenter("wum", "WHU", Latency.MGEX, _MGEX, prefix="WUM0MGXFIN"),
    )
}

CENTER_KINDS = frozenset(kind for ac in ANALYSIS_CENTERS.values() for kind in ac.kinds)


def classify_center(code: str) -> AnalysisCenter:
    """
    Classify an analysis center code into exactly one latency class.

    Args:
        code (str): Center code, case-insensitive.

    Returns:
        AnalysisCenter: The registered center.

    Raises:
        UnresolvableRequestError: If the code is not ultra-rapid, rapid, final or MGEX final.

    Examples:
        >>> classify_center("IGU").latency
        <Latency.ULTRA: 'ultra'>
    """
    try:
        return ANALYSIS_CENTERS[code.strip().lower()]
    except KeyError:
        raise UnresolvableRequestError(
            f"Analysis center '{code}' is not an ultra-rapid, rapid, final or MGEX final center"
        ) from None


def product_hours(center: AnalysisCenter, start_hour: int, count: int) -> List[int]:
    """
    Issue hours of an orbit/clock or EOP product within one day.

    The start hour is rounded up to the next issue of the center and ``count``
    issues are taken, without crossing midnight. A count of zero selects no
    issue.

    Examples:
        >>> product_hours(classify_center("igu"), 1, 3)
        [6, 12, 18]
        >>> product_hours(classify_center("igs"), 5, 2)
        [0]
        >>> product_hours(classify_center("igs"), 0, 0)
        []
    """
    if count <= 0:
        return []
    step = center.step
    if step >= 24:
        return [0]
    first = -(-start_hour // step) * step
    return list(range(first, min(first + count * step, 24), step))


def observation_hours(start_hour: int, count: int) -> List[int]:
    """Hours ``start_hour .. start_hour+count-1`` clipped to the day."""
    return list(range(start_hour, min(start_hour + count, 24)))


def site_from_filename(filename: str) -> str:
    """Four character station identifier of a short or long RINEX file name, lower case."""
    return filename[:4].lower()


@dataclass(frozen=True)
class NamingTemplate:
    """
    Naming convention of one product on one archive.

    Attributes:
        category (ProductCategory): Base URL category looked up on the archive.
        url (str): Remote directory template.
        cut_dirs (int): Number of remote directories stripped by the fetcher.
        remote (str): Decompressed remote file name for one unit; may hold a wildcard.
        local (str): Canonical local file name.
        local_dir (str): Sub-directory template under the product directory.
        batch (Optional[str]): Wildcard fetched when every site is requested; None if site lists only.
        convert (bool): Remote file is Hatanaka compressed and converted to a ``.yyo`` file.
        suffixes (Tuple[str, ...]): Compression suffixes published, in the order tried.
        exact (bool): Fetch ``url/remote.suffix`` directly rather than filtering a listing.
        cleanup (Tuple[str, ...]): Mirror directories the fetcher leaves behind.
        host (Optional[Archive]): Archive whose base URL is used instead of the keyed archive.
        legacy_url (Optional[Tuple[int, str]]): ``(year, url)``, the layout used before ``year``.
    """

    category: ProductCategory
    url: str
    cut_dirs: int
    remote: str
    local: str
    local_dir: str = ""
    batch: Optional[str] = None
    convert: bool = False
    suffixes: Tuple[str, ...] = ("gz", "Z")
    exact: bool = False
    cleanup: Tuple[str, ...] = ()
    host: Optional[Archive] = None
    legacy_url: Optional[Tuple[int, str]] = None

    @property
    def per_site(self) -> bool:
        return "{site}" in self.local or "{SITE}" in self.remote or "{site}" in self.remote

    @property
    def highrate(self) -> bool:
        return "{mm}" in self.local


TemplateKey = Tuple[Archive, ProductKind]
TEMPLATES: Dict[TemplateKey, NamingTemplate] = {}


def _register(archives: Iterable[Archive], kind: ProductKind, overrides: Optional[Dict[Archive, dict]] = None, **kwargs):
    overrides = overrides or {}
    for archive in archives:
        TEMPLATES[(archive, kind)] = NamingTemplate(**{**kwargs, **overrides.get(archive, {})})


# ---------------------------------------------------------------------------
# observations
# ---------------------------------------------------------------------------
_IGN_DAILY = {"url": "{base}/{yyyy}/{doy}", "cut_dirs": 5}
_IGN_HOURLY = {"url": "{base}/{yyyy}/{doy}", "cut_dirs": 6}
_CDDIS_HIGHRATE = {"url": "{base}/{yyyy}/{doy}/{yy}d/{hh}", "cut_dirs": 8}
_IGN_HIGHRATE = {"url": "{base}/{yyyy}/{doy}", "cut_dirs": 6}
_WHU_HIGHRATE = {**_CDDIS_HIGHRATE, "host": Archive.CDDIS}

_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_IGS_DAILY,
    {Archive.IGN: _IGN_DAILY},
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}/{yy}d", cut_dirs=7,
    remote="{site}{doy}0.{yy}d", batch="*{doy}0.{yy}d", local="{site}{doy}0.{yy}o",
    local_dir="{yyyy}/{doy}/daily", convert=True,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_IGS_HOURLY,
    {Archive.IGN: _IGN_HOURLY},
    category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{hh}", cut_dirs=7,
    remote="{site}{doy}{hl}.{yy}d", batch="*{doy}{hl}.{yy}d", local="{site}{doy}{hl}.{yy}o",
    local_dir="{yyyy}/{doy}/hourly/{hh}", convert=True,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_IGS_HIGHRATE,
    {Archive.IGN: _IGN_HIGHRATE, Archive.WHU: _WHU_HIGHRATE},
    category=ProductCategory.OBS_HIGHRATE, **_CDDIS_HIGHRATE,
    remote="{site}{doy}{hl}{mm}.{yy}d", batch="*{doy}{hl}{mm}.{yy}d", local="{site}{doy}{hl}{mm}.{yy}o",
    local_dir="{yyyy}/{doy}/highrate/{hh}", convert=True,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_MGEX_DAILY,
    {Archive.IGN: _IGN_DAILY},
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}/{yy}d", cut_dirs=7,
    remote="{SITE}*_{yyyy}{doy}0000_01D_30S_MO.crx", batch="*{yyyy}{doy}0000_01D_30S_MO.crx",
    local="{site}{doy}0.{yy}o", local_dir="{yyyy}/{doy}/daily", convert=True,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_MGEX_HOURLY,
    {Archive.IGN: _IGN_HOURLY},
    category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{hh}", cut_dirs=7,
    remote="{SITE}*_{yyyy}{doy}{hh}00_01H_30S_MO.crx", batch="*{yyyy}{doy}{hh}00_01H_30S_MO.crx",
    local="{site}{doy}{hl}.{yy}o", local_dir="{yyyy}/{doy}/hourly/{hh}", convert=True,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.OBS_MGEX_HIGHRATE,
    {Archive.IGN: _IGN_HIGHRATE, Archive.WHU: _WHU_HIGHRATE},
    category=ProductCategory.OBS_HIGHRATE, **_CDDIS_HIGHRATE,
    remote="{SITE}*_{yyyy}{doy}{hh}{mm}_15M_01S_MO.crx", batch="*{yyyy}{doy}{hh}{mm}_15M_01S_MO.crx",
    local="{site}{doy}{hl}{mm}.{yy}o", local_dir="{yyyy}/{doy}/highrate/{hh}", convert=True,
)
_register(
    (Archive.CUT,), ProductKind.OBS_CUT_DAILY,
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}", cut_dirs=5,
    remote="{SITE}00AUS_R_{yyyy}{doy}0000_01D_30S_MO.crx", local="{site}{doy}0.{yy}o",
    local_dir="{yyyy}/{doy}/daily", convert=True, suffixes=("gz",), exact=True,
)
_register(
    (Archive.GA,), ProductKind.OBS_GA_DAILY,
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}", cut_dirs=3,
    remote="{SITE}*_{yyyy}{doy}0000_01D_30S_MO.crx", batch="*{yyyy}{doy}0000_01D_30S_MO.crx",
    local="{site}{doy}0.{yy}o", local_dir="{yyyy}/{doy}/daily", convert=True, suffixes=("gz",),
)
_register(
    (Archive.GA,), ProductKind.OBS_GA_HOURLY,
    category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{hh}", cut_dirs=4,
    remote="{SITE}*_{yyyy}{doy}{hh}00_01H_30S_MO.crx", batch="*{yyyy}{doy}{hh}00_01H_30S_MO.crx",
    local="{site}{doy}{hl}.{yy}o", local_dir="{yyyy}/{doy}/hourly/{hh}", convert=True, suffixes=("gz",),
)
_register(
    (Archive.GA,), ProductKind.OBS_GA_HIGHRATE,
    category=ProductCategory.OBS_HIGHRATE, url="{base}/{yyyy}/{doy}/{hh}", cut_dirs=4,
    remote="{SITE}*_{yyyy}{doy}{hh}{mm}_15M_01S_MO.crx", batch="*{yyyy}{doy}{hh}{mm}_15M_01S_MO.crx",
    local="{site}{doy}{hl}{mm}.{yy}o", local_dir="{yyyy}/{doy}/highrate/{hh}", convert=True, suffixes=("gz",),
)
_register(
    (Archive.HK,), ProductKind.OBS_HK_30S,
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}/{site}/30s", cut_dirs=5,
    remote="{SITE}00HKG_R_{yyyy}{doy}0000_01D_30S_MO.crx", local="{site}{doy}0.{yy}o",
    local_dir="{yyyy}/{doy}/30s", convert=True, suffixes=("gz",), exact=True,
)
_register(
    (Archive.HK,), ProductKind.OBS_HK_5S,
    category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{site}/5s", cut_dirs=5,
    remote="{SITE}00HKG_R_{yyyy}{doy}{hh}00_01H_05S_MO.crx", local="{site}{doy}{hl}.{yy}o",
    local_dir="{yyyy}/{doy}/5s/{hh}", convert=True, suffixes=("gz",), exact=True,
)
_register(
    (Archive.HK,), ProductKind.OBS_HK_1S,
    category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{site}/1s", cut_dirs=5,
    remote="{SITE}00HKG_R_{yyyy}{doy}{hh}00_01H_01S_MO.crx", local="{site}{doy}{hl}.{yy}o",
    local_dir="{yyyy}/{doy}/1s/{hh}", convert=True, suffixes=("gz",), exact=True,
)
_register(
    (Archive.NGS,), ProductKind.OBS_NGS_DAILY,
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}/{site}", cut_dirs=4,
    remote="{site}{doy}0.{yy}d", local="{site}{doy}0.{yy}o",
    local_dir="{yyyy}/{doy}/daily", convert=True, suffixes=("gz",), exact=True,
)
_register(
    (Archive.EPN,), ProductKind.OBS_EPN_DAILY,
    category=ProductCategory.OBS_DAILY, url="{base}/{yyyy}/{doy}", cut_dirs=4,
    remote="{SITE}*_{yyyy}{doy}0000_01D_30S_MO.crx", batch="*{yyyy}{doy}0000_01D_30S_MO.crx",
    local="{site}{doy}0.{yy}o", local_dir="{yyyy}/{doy}/daily", convert=True, suffixes=("gz",),
)

# ---------------------------------------------------------------------------
# broadcast navigation
# ---------------------------------------------------------------------------
_DAILY_NAV = {
    ProductKind.NAV_DAILY_GPS: ("brdc{doy}0.{yy}n", "brdc{doy}0.{yy}n", "n"),
    ProductKind.NAV_DAILY_GLO: ("brdc{doy}0.{yy}g", "brdc{doy}0.{yy}g", "g"),
    ProductKind.NAV_DAILY_MIXED: ("BRDC00IGS_R_{yyyy}{doy}0000_01D_MN.rnx", "brdm{doy}0.{yy}p", "p"),
}
for _kind, (_remote, _local, _tag) in _DAILY_NAV.items():
    _ign = {"url": "{base}/{yyyy}/{doy}", "cut_dirs": 5}
    if _kind is ProductKind.NAV_DAILY_MIXED:
        _ign["remote"] = "BRDC00IGN_R_{yyyy}{doy}0000_01D_MN.rnx"
    _register(
        GLOBAL_ARCHIVES, _kind,
        {
            Archive.IGN: _ign,
            Archive.WHU: {"cut_dirs": 7, "legacy_url": (2020, "{base}/{yyyy}/{doy}/{yy}" + _tag)},
        },
        category=ProductCategory.NAV, url="{base}/{yyyy}/brdc", cut_dirs=6,
        remote=_remote, local=_local, local_dir="{yyyy}/{doy}/daily",
    )

_HOURLY_NAV = {
    ProductKind.NAV_HOURLY_GPS_SHORT: ("{site}{doy}{hl}.{yy}n", "{site}{doy}{hl}.{yy}n"),
    ProductKind.NAV_HOURLY_GLO_SHORT: ("{site}{doy}{hl}.{yy}g", "{site}{doy}{hl}.{yy}g"),
    ProductKind.NAV_HOURLY_GPS: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_GN.rnx", "{site}{doy}{hl}.{yy}gn"),
    ProductKind.NAV_HOURLY_GLO: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_RN.rnx", "{site}{doy}{hl}.{yy}rn"),
    ProductKind.NAV_HOURLY_BDS: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_CN.rnx", "{site}{doy}{hl}.{yy}cn"),
    ProductKind.NAV_HOURLY_GAL: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_EN.rnx", "{site}{doy}{hl}.{yy}en"),
    ProductKind.NAV_HOURLY_QZS: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_JN.rnx", "{site}{doy}{hl}.{yy}jn"),
    ProductKind.NAV_HOURLY_IRN: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_IN.rnx", "{site}{doy}{hl}.{yy}in"),
    ProductKind.NAV_HOURLY_MIXED: ("{SITE}*_R_{yyyy}{doy}{hh}00_01H_MN.rnx", "{site}{doy}{hl}.{yy}mn"),
}
for _kind, (_remote, _local) in _HOURLY_NAV.items():
    # WHU hourly navigation files are taken from the CDDIS layout
    _register(
        GLOBAL_ARCHIVES, _kind,
        {Archive.IGN: _IGN_HOURLY, Archive.WHU: {"host": Archive.CDDIS}},
        category=ProductCategory.OBS_HOURLY, url="{base}/{yyyy}/{doy}/{hh}", cut_dirs=7,
        remote=_remote, local=_local, local_dir="{yyyy}/{doy}/hourly/{hh}",
    )

_register(
    (Archive.LRZ,), ProductKind.NAV_RTNAV,
    category=ProductCategory.NAV, url="{base}", cut_dirs=3,
    remote="brdm{doy}z.{yy}p", local="brdm{doy}z.{yy}p", local_dir="{yyyy}/{doy}/daily",
)

DAILY_NAV_KINDS: Dict[str, Tuple[ProductKind, ...]] = {
    "gps": (ProductKind.NAV_DAILY_GPS,),
    "glo": (ProductKind.NAV_DAILY_GLO,),
    "mixed": (ProductKind.NAV_DAILY_MIXED,),
    "all": (ProductKind.NAV_DAILY_GPS, ProductKind.NAV_DAILY_GLO, ProductKind.NAV_DAILY_MIXED),
}
HOURLY_NAV_KINDS: Dict[str, Tuple[ProductKind, ...]] = {
    "gps": (ProductKind.NAV_HOURLY_GPS_SHORT, ProductKind.NAV_HOURLY_GPS),
    "glo": (ProductKind.NAV_HOURLY_GLO_SHORT, ProductKind.NAV_HOURLY_GLO),
    "bds": (ProductKind.NAV_HOURLY_BDS,),
    "gal": (ProductKind.NAV_HOURLY_GAL,),
    "qzs": (ProductKind.NAV_HOURLY_QZS,),
    "irn": (ProductKind.NAV_HOURLY_IRN,),
    "mixed": (ProductKind.NAV_HOURLY_MIXED,),
    "all": tuple(_HOURLY_NAV),
}

# ---------------------------------------------------------------------------
# precise orbit, clock and earth rotation products
# ---------------------------------------------------------------------------
_ESA = {"category": ProductCategory.PRODUCTS, "url": "{base}/{wwww}", "cut_dirs": 3, "exact": True, "suffixes": ("Z", "gz")}
_GFZ_ULTRA = {"category": ProductCategory.PRODUCTS, "url": "{base}/ultra/w{wwww}", "cut_dirs": 5}
_GFZ_RAPID = {"category": ProductCategory.PRODUCTS, "url": "{base}/rapid/w{wwww}", "cut_dirs": 5}
_CODE_RAPID = {"category": ProductCategory.PRODUCTS, "url": "{base}/{yyyy}_M", "cut_dirs": 2}
_NRCAN_RAPID = {"category": ProductCategory.PRODUCTS, "url": "{base}/rapid/{wwww}", "cut_dirs": 4, "cleanup": ("dcm",)}
_REPRO3 = ("repro3",)

_ultra_sp3 = {"remote": "{ac}{wwww}{dow}_{hh}.sp3", "local": "{ac}{wwww}{dow}_{hh}.sp3", "local_dir": "ultra"}
_register((Archive.ESA,), ProductKind.SP3_ULTRA, **_ESA, **_ultra_sp3)
_register((Archive.GFZ,), ProductKind.SP3_ULTRA, **_GFZ_ULTRA, **_ultra_sp3)
_register(
    GLOBAL_ARCHIVES, ProductKind.SP3_ULTRA,
    category=ProductCategory.SP3, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3, **_ultra_sp3,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.SP3_ULTRA_MGEX,
    category=ProductCategory.SP3_MGEX, url="{base}/{wwww}", cut_dirs=5,
    remote="{prefix}_{yyyy}{doy}{hh}00_01D_*_ORB.SP3", local="{ac}{wwww}{dow}_{hh}.sp3", local_dir="ultra",
)

for _kind, _ext, _code_ext in (
    (ProductKind.SP3_RAPID, "sp3", "EPH_M"),
    (ProductKind.CLK_RAPID, "clk", "CLK_M"),
):
    _register(
        (Archive.CODE,), _kind, **_CODE_RAPID,
        remote="{prefix}{wwww}{dow}." + _code_ext, local="{prefix}{wwww}{dow}." + _code_ext, local_dir="rapid",
    )
    _named = {"remote": "{prefix}{wwww}{dow}." + _ext, "local": "{prefix}{wwww}{dow}." + _ext, "local_dir": "rapid"}
    _register((Archive.NRCAN,), _kind, **_NRCAN_RAPID, **_named)
    _register((Archive.GFZ,), _kind, **_GFZ_RAPID, **_named)
    _own = {"remote": "{ac}{wwww}{dow}." + _ext, "local": "{ac}{wwww}{dow}." + _ext, "local_dir": "rapid"}
    _register((Archive.ESA,), _kind, **_ESA, **_own)
    _register(
        GLOBAL_ARCHIVES, _kind,
        category=ProductCategory.SP3 if _ext == "sp3" else ProductCategory.CLK,
        url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3, **_own,
    )

_register(
    GLOBAL_ARCHIVES, ProductKind.SP3_FINAL,
    category=ProductCategory.SP3, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3,
    remote="{ac}{wwww}{dow}.{sp3_ext}", local="{ac}{wwww}{dow}.{sp3_ext}", local_dir="final",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.CLK_FINAL,
    category=ProductCategory.CLK, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3,
    remote="{ac}{wwww}{dow}.{clk_ext}", local="{ac}{wwww}{dow}.{clk_ext}", local_dir="final",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.SP3_MGEX,
    category=ProductCategory.SP3_MGEX, url="{base}/{wwww}", cut_dirs=5,
    remote="{prefix}_{yyyy}{doy}0000_01D_*_ORB.SP3", local="{ac}{wwww}{dow}.sp3", local_dir="final",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.CLK_MGEX,
    category=ProductCategory.CLK_MGEX, url="{base}/{wwww}", cut_dirs=5,
    remote="{prefix}_{yyyy}{doy}0000_01D_*_CLK.CLK", local="{ac}{wwww}{dow}.clk", local_dir="final",
)

_ultra_erp = {"remote": "{ac}{wwww}{dow}_{hh}.erp", "local": "{ac}{wwww}{dow}_{hh}.erp"}
_register((Archive.ESA,), ProductKind.EOP_ULTRA, **_ESA, **_ultra_erp)
_register((Archive.GFZ,), ProductKind.EOP_ULTRA, **_GFZ_ULTRA, **_ultra_erp)
_register(
    GLOBAL_ARCHIVES, ProductKind.EOP_ULTRA,
    category=ProductCategory.EOP, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3, **_ultra_erp,
)
_register(
    GLOBAL_ARCHIVES, ProductKind.EOP_FINAL,
    category=ProductCategory.EOP, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3,
    remote="{ac}{wwww}7.erp", local="{ac}{wwww}7.erp",
)

# ---------------------------------------------------------------------------
# station solutions, biases, atmosphere, real-time and antenna products
# ---------------------------------------------------------------------------
_register(
    GLOBAL_ARCHIVES, ProductKind.SNX_WEEKLY,
    category=ProductCategory.SNX, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3,
    remote="igs*P{wwww}.snx", local="igs{wwww}.snx",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.SNX_DAILY,
    category=ProductCategory.SNX, url="{base}/{wwww}", cut_dirs=4, cleanup=_REPRO3,
    remote="igs*P{wwww}{dow}.snx", local="igs{wwww}.snx",
)
for _kind, _remote, _local in (
    (ProductKind.DCB_P1P2, "P1P2{yy}{MM}.DCB", "P1P2{yy}{MM}.DCB"),
    (ProductKind.DCB_P1C1, "P1C1{yy}{MM}.DCB", "P1C1{yy}{MM}.DCB"),
    (ProductKind.DCB_P2C2, "P2C2{yy}{MM}_RINEX.DCB", "P2C2{yy}{MM}.DCB"),
):
    _register(
        (Archive.CODE,), _kind,
        category=ProductCategory.PRODUCTS, url="{base}/{yyyy}", cut_dirs=2, remote=_remote, local=_local,
    )
_register(
    GLOBAL_ARCHIVES, ProductKind.DCB_MGEX,
    {Archive.IGN: {"cut_dirs": 6}, Archive.WHU: {"cut_dirs": 6}},
    category=ProductCategory.DCB_MGEX, url="{base}/{yyyy}", cut_dirs=5,
    remote="CAS0MGXRAP_{yyyy}{doy}0000_01D_01D_DCB.BSX", local="CAS0MGXRAP_{yyyy}{doy}0000_01D_01D_DCB.BSX",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.ION,
    category=ProductCategory.ION, url="{base}/{yyyy}/{doy}", cut_dirs=6, cleanup=("topex",),
    remote="{ac}g{doy}0.{yy}i", local="{ac}g{doy}0.{yy}i",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.ROTI,
    category=ProductCategory.ROTI, url="{base}/{yyyy}/{doy}", cut_dirs=6, cleanup=("topex",),
    remote="roti{doy}0.{yy}f", local="roti{doy}0.{yy}f",
)
_register(
    GLOBAL_ARCHIVES, ProductKind.ZTD_IGS,
    {Archive.IGN: {"cut_dirs": 6}},
    category=ProductCategory.ZTD, url="{base}/{yyyy}/{doy}", cut_dirs=7,
    remote="{site}{doy}0.{yy}zpd", batch="*{doy}0.{yy}zpd", local="{site}{doy}0.{yy}zpd",
    local_dir="{yyyy}/{doy}",
)
_register(
    (Archive.CODE,), ProductKind.ZTD_COD,
    category=ProductCategory.PRODUCTS, url="{base}/{yyyy}", cut_dirs=2,
    remote="COD{wwww}{dow}.TRO", local="COD{wwww}{dow}.TRO", local_dir="{yyyy}/{doy}",
)
_CNES_CLEANUP = ("FORMAT_BIAIS_OFFI1", "FORMATBIAS_OFF_v1")
for _kind, _ext in ((ProductKind.RT_SP3, "sp3"), (ProductKind.RT_CLK, "clk"), (ProductKind.RT_BIAS, "bia")):
    _register(
        (Archive.CNES,), _kind,
        category=ProductCategory.PRODUCTS, url="{base}/REAL_TIME", cut_dirs=2,
        remote="cnt{wwww}{dow}." + _ext, local="cnt{wwww}{dow}." + _ext,
        local_dir="" if _kind is ProductKind.RT_BIAS else "real_time",
        suffixes=("gz",), exact=True, cleanup=_CNES_CLEANUP,
    )
_register(
    (Archive.IGS,), ProductKind.ATX,
    category=ProductCategory.PRODUCTS, url="{base}", cut_dirs=3,
    remote="igs14.atx", local="igs14.atx", suffixes=(), exact=True,
)

# kinds always fetched from one host, whatever archive is configured
SINGLE_HOST: Dict[ProductKind, Archive] = {
    ProductKind.OBS_CUT_DAILY: Archive.CUT,
    ProductKind.OBS_GA_DAILY: Archive.GA,
    ProductKind.OBS_GA_HOURLY: Archive.GA,
    ProductKind.OBS_GA_HIGHRATE: Archive.GA,
    ProductKind.OBS_HK_30S: Archive.HK,
    ProductKind.OBS_HK_5S: Archive.HK,
    ProductKind.OBS_HK_1S: Archive.HK,
    ProductKind.OBS_NGS_DAILY: Archive.NGS,
    ProductKind.OBS_EPN_DAILY: Archive.EPN,
    ProductKind.NAV_RTNAV: Archive.LRZ,
    ProductKind.DCB_P1P2: Archive.CODE,
    ProductKind.DCB_P1C1: Archive.CODE,
    ProductKind.DCB_P2C2: Archive.CODE,
    ProductKind.ZTD_COD: Archive.CODE,
    ProductKind.RT_SP3: Archive.CNES,
    ProductKind.RT_CLK: Archive.CNES,
    ProductKind.RT_BIAS: Archive.CNES,
    ProductKind.ATX: Archive.IGS,
}


@dataclass(frozen=True)
class ProductRequest:
    """
    One unit of download work.

    Attributes:
        epoch (Epoch): Day (and time of day) the product refers to.
        kind (ProductKind): Product to fetch.
        archive (Archive): Selected global archive, ignored by single-host products.
        center (Optional[str]): Analysis center code, for orbit/clock/EOP and ionosphere products.
        site (Optional[str]): Station identifier; None requests every station in one batch.
        hour (int): Hour of day for sub-daily products.
        minute (int): Minute bucket (00/15/30/45) for high-rate products.
    """

    epoch: Epoch
    kind: ProductKind
    archive: Archive = Archive.CDDIS
    center: Optional[str] = None
    site: Optional[str] = None
    hour: int = 0
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour {self.hour} outside 0..23")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute {self.minute} outside 0..59")

    def __str__(self) -> str:
        parts = [self.kind.value, str(self.epoch.to_date())]
        if self.center:
            parts.append(self.center)
        if self.site:
            parts.append(self.site)
        if self.hour or self.minute:
            parts.append(f"{self.hour:02d}:{self.minute:02d}")
        return " ".join(parts)


@dataclass(frozen=True)
class ResolvedProduct:
    """
    Remote location and local naming of a :class:`ProductRequest`.

    Attributes:
        request (ProductRequest): The request that was resolved.
        template (NamingTemplate): Table entry used.
        archive (Archive): Archive the template was keyed on.
        url (str): Remote directory.
        cut_dirs (int): Remote directories stripped by the fetcher.
        remote (str): Decompressed remote name; a wildcard pattern in batch mode.
        local (Optional[str]): Canonical local name, None in batch mode.
        local_dir (str): Sub-directory under the product directory.
        batch (bool): True when every station is fetched in one call.
    """

    request: ProductRequest
    template: NamingTemplate
    archive: Archive
    url: str
    cut_dirs: int
    remote: str
    local: Optional[str]
    local_dir: str
    batch: bool = False
    fields: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    @property
    def suffixes(self) -> Tuple[str, ...]:
        return self.template.suffixes

    @property
    def convert(self) -> bool:
        return self.template.convert

    @property
    def exact(self) -> bool:
        return self.template.exact

    @property
    def cleanup(self) -> Tuple[str, ...]:
        return self.template.cleanup

    @property
    def accept_pattern(self) -> str:
        """Filename filter handed to the fetcher."""
        if not self.suffixes:
            return self.remote
        if len(self.suffixes) == 1:
            return f"{self.remote}.{self.suffixes[0]}"
        return f"{self.remote}.*"

    @property
    def crx_name(self) -> Optional[str]:
        """Short Hatanaka name (``.yyd``) the decompressed observation file is renamed to."""
        if not self.convert or self.local is None:
            return None
        return self.local[:-1] + "d"

    def exact_urls(self) -> List[Tuple[str, str]]:
        """``(url, filename)`` pairs to fetch one by one, in suffix order."""
        if not self.suffixes:
            return [(f"{self.url}/{self.remote}", self.remote)]
        return [(f"{self.url}/{self.remote}.{sfx}", f"{self.remote}.{sfx}") for sfx in self.suffixes]

    def for_site(self, site: str) -> "ResolvedProduct":
        """Resolve the same request for one station of a batch."""
        return resolve(replace(self.request, site=site))

    def __str__(self) -> str:
        return f"{self.request.kind.value}: {self.url} -A {self.accept_pattern} --cut-dirs={self.cut_dirs} -> {self.local or '<per site>'}"


def naming_fields(
    epoch: Epoch,
    hour: int = 0,
    minute: int = 0,
    site: Optional[str] = None,
    center: Optional[AnalysisCenter | str] = None,
) -> Dict[str, str]:
    """
    Build the format fields used by the naming templates.

    Args:
        epoch (Epoch): Day of the product.
        hour (int): Hour of day for sub-daily products.
        minute (int): Minute bucket for high-rate products.
        site (Optional[str]): Station identifier, any case.
        center (Optional[AnalysisCenter | str]): Analysis center or bare code.

    Returns:
        Dict[str, str]: Field name to formatted value.

    Examples:
        >>> fields = naming_fields(yrdoy_to_epoch(2021, 45), hour=1)
        >>> fields["yy"], fields["doy"], fields["hl"], fields["wwww"]
        ('21', '045', 'b', '2145')
    """
    year, doy = epoch_to_yrdoy(epoch)
    _, month, *_ = epoch_to_ymdhms(epoch)
    week, dow = epoch_to_gps_week(epoch)
    fields = {
        "yyyy": f"{year:04d}",
        "yy": f"{yyyy_to_yy(year):02d}",
        "doy": f"{doy:03d}",
        "MM": f"{month:02d}",
        "wwww": f"{week:04d}",
        "dow": str(dow),
        "hh": f"{hour:02d}",
        "hl": hour_letter(hour),
        "mm": f"{minute:02d}",
    }
    if site:
        code = site.strip()[:4]
        fields["site"] = code.lower()
        fields["SITE"] = code.upper()
    if isinstance(center, AnalysisCenter):
        fields["ac"] = center.code
        fields["prefix"] = center.prefix or center.code
        fields["sp3_ext"] = center.sp3_ext
        fields["clk_ext"] = center.clk_ext
    elif center:
        fields["ac"] = center.strip().lower()
    return fields


def lookup_template(archive: Archive, kind: ProductKind) -> NamingTemplate:
    """
    Fetch the table entry for ``(archive, kind)``.

    Raises:
        UnresolvableRequestError: If the combination has no entry.
    """
    try:
        return TEMPLATES[(archive, kind)]
    except KeyError:
        raise UnresolvableRequestError(f"No naming template for {kind.value} on {archive.value}") from None


def template_archive(kind: ProductKind, archive: Archive, center: Optional[AnalysisCenter] = None) -> Archive:
    """Archive the table is keyed on for a kind requested from ``archive``."""
    if kind in SINGLE_HOST:
        return SINGLE_HOST[kind]
    if center is not None and center.host is not None:
        return center.host
    if archive not in GLOBAL_ARCHIVES:
        raise UnresolvableRequestError(f"{kind.value} must be fetched from one of CDDIS, IGN or WHU, not {archive.value}")
    return archive


def validate_table(pairs: Iterable[Tuple[Archive, ProductKind, Optional[str]]]) -> None:
    """
    Check that every enabled ``(archive, kind, center)`` has a table entry.

    Run once before the date loop so that a missing combination is reported as a
    configuration error rather than skipped silently.

    Raises:
        UnresolvableRequestError: Listing every missing combination.
    """
    missing = []
    for archive, kind, center_code in pairs:
        center = None
        if kind in CENTER_KINDS:
            center = classify_center(center_code or "")
            if kind not in center.kinds:
                missing.append(f"{kind.value} for center {center.code}")
                continue
        key = template_archive(kind, archive, center)
        if (key, kind) not in TEMPLATES:
            missing.append(f"{kind.value} on {key.value}")
    if missing:
        raise UnresolvableRequestError("No naming template for: " + ", ".join(missing))
    logger.logdebug("Naming table covers every enabled product")


def resolve(request: ProductRequest) -> ResolvedProduct:
    """
    Resolve a product request into remote and local names.

    Args:
        request (ProductRequest): The unit of work.

    Returns:
        ResolvedProduct: Remote URL, cut depth, remote pattern and canonical local name.

    Raises:
        UnresolvableRequestError: If the center, archive, site selection or minute
            bucket does not fit the product.

    Examples:
        >>> rp = resolve(ProductRequest(yrdoy_to_epoch(2021, 45), ProductKind.OBS_IGS_DAILY))
        >>> rp.url
        'ftps://gdc.cddis.eosdis.nasa.gov/pub/gnss/data/daily/2021/045/21d'
        >>> rp.remote
        '*0450.21d'
    """
    kind = request.kind
    center = None
    if kind in CENTER_KINDS:
        if not request.center:
            raise UnresolvableRequestError(f"{kind.value} needs an analysis center")
        center = classify_center(request.center)
        if kind not in center.kinds:
            raise UnresolvableRequestError(
                f"Center {center.code} ({center.latency.value}) does not publish {kind.value}"
            )
    key = template_archive(kind, request.archive, center)
    template = lookup_template(key, kind)

    if template.highrate and request.minute not in HIGHRATE_MINUTES:
        raise UnresolvableRequestError(f"High-rate minute must be one of 00/15/30/45, got {request.minute:02d}")

    site = request.site
    if site is not None and site.strip().lower() == ALL_SITES:
        site = None
    batch = False
    if template.per_site and site is None:
        if template.batch is None:
            raise UnresolvableRequestError(f"{kind.value} supports site lists only")
        batch = True

    fields = naming_fields(
        request.epoch,
        hour=request.hour,
        minute=request.minute,
        site=site,
        center=center if center is not None else request.center,
    )
    descriptor = ARCHIVES[template.host or key]
    fields["base"] = descriptor.base(template.category)

    url = template.url
    if template.legacy_url is not None and int(fields["yyyy"]) < template.legacy_url[0]:
        url = template.legacy_url[1]
    try:
        remote = (template.batch if batch else template.remote).format(**fields)
        local = None if batch else template.local.format(**fields)
        resolved = ResolvedProduct(
            request=request,
            template=template,
            archive=key,
            url=url.format(**fields),
            cut_dirs=template.cut_dirs,
            remote=remote,
            local=local,
            local_dir=template.local_dir.format(**fields),
            batch=batch,
            fields=fields,
        )
    except KeyError as e:
        raise UnresolvableRequestError(f"{kind.value} needs a value for {e}") from None
    logger.logdebug(f"Resolved {request} -> {resolved}")
    return resolved

"""
Static descriptors of the data archives the downloader knows about.

The three IGS global data centers (CDDIS, IGN, WHU) carry every product
category; the others are single-purpose hosts (national CORS networks and
analysis-center servers) that publish one or two product families.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class Archive(str, Enum):
    """Archives selectable in ``ftpDownloading`` plus the fixed single-purpose hosts."""

    CDDIS = "CDDIS"
    IGN = "IGN"
    WHU = "WHU"
    CUT = "CUT"
    GA = "GA"
    HK = "HK"
    NGS = "NGS"
    EPN = "EPN"
    ESA = "ESA"
    GFZ = "GFZ"
    CODE = "CODE"
    NRCAN = "NRCAN"
    CNES = "CNES"
    LRZ = "LRZ"
    IGS = "IGS"


GLOBAL_ARCHIVES: Tuple[Archive, ...] = (Archive.CDDIS, Archive.IGN, Archive.WHU)


class ProductCategory(str, Enum):
    OBS_DAILY = "obs_daily"
    OBS_HOURLY = "obs_hourly"
    OBS_HIGHRATE = "obs_highrate"
    NAV = "nav"
    SP3 = "sp3"
    CLK = "clk"
    EOP = "eop"
    SNX = "snx"
    SP3_MGEX = "sp3_mgex"
    CLK_MGEX = "clk_mgex"
    DCB_MGEX = "dcb_mgex"
    ION = "ion"
    ROTI = "roti"
    ZTD = "ztd"
    PRODUCTS = "products"


@dataclass(frozen=True)
class ArchiveDescriptor:
    """
    A named data source and its base URL for each product category it serves.

    Attributes:
        name (Archive): Archive identifier.
        description (str): Human readable name used in log messages.
        base_urls (Dict[ProductCategory, str]): Base URL per product category.
    """

    name: Archive
    description: str
    base_urls: Dict[ProductCategory, str] = field(default_factory=dict)

    def base(self, category: ProductCategory) -> str:
        try:
            return self.base_urls[category]
        except KeyError:
            raise KeyError(f"{self.name.value} does not serve {category.value} products") from None

    def __str__(self) -> str:
        return self.description


_CDDIS = "ftps://gdc.cddis.eosdis.nasa.gov/pub/gnss"
_IGN = "ftp://igs.ign.fr/pub/igs"
_WHU = "ftp://igs.gnsswhu.cn/pub/gps"

ARCHIVES: Dict[Archive, ArchiveDescriptor] = {
    Archive.CDDIS: ArchiveDescriptor(
        Archive.CDDIS,
        "NASA CDDIS",
        {
            ProductCategory.OBS_DAILY: f"{_CDDIS}/data/daily",
            ProductCategory.OBS_HOURLY: f"{_CDDIS}/data/hourly",
            ProductCategory.OBS_HIGHRATE: f"{_CDDIS}/data/highrate",
            ProductCategory.NAV: f"{_CDDIS}/data/daily",
            ProductCategory.SP3: f"{_CDDIS}/products",
            ProductCategory.CLK: f"{_CDDIS}/products",
            ProductCategory.EOP: f"{_CDDIS}/products",
            ProductCategory.SNX: f"{_CDDIS}/products",
            ProductCategory.SP3_MGEX: f"{_CDDIS}/products/mgex",
            ProductCategory.CLK_MGEX: f"{_CDDIS}/products/mgex",
            ProductCategory.DCB_MGEX: f"{_CDDIS}/products/bias",
            ProductCategory.ION: f"{_CDDIS}/products/ionex",
            ProductCategory.ROTI: f"{_CDDIS}/products/ionex",
            ProductCategory.ZTD: f"{_CDDIS}/products/troposphere/zpd",
        },
    ),
    Archive.IGN: ArchiveDescriptor(
        Archive.IGN,
        "IGN France",
        {
            ProductCategory.OBS_DAILY: f"{_IGN}/data",
            ProductCategory.OBS_HOURLY: f"{_IGN}/data/hourly",
            ProductCategory.OBS_HIGHRATE: f"{_IGN}/data/highrate",
            ProductCategory.NAV: f"{_IGN}/data",
            ProductCategory.SP3: f"{_IGN}/products",
            ProductCategory.CLK: f"{_IGN}/products",
            ProductCategory.EOP: f"{_IGN}/products",
            ProductCategory.SNX: f"{_IGN}/products",
            ProductCategory.SP3_MGEX: f"{_IGN}/products/mgex",
            ProductCategory.CLK_MGEX: f"{_IGN}/products/mgex",
            ProductCategory.DCB_MGEX: f"{_IGN}/products/mgex/dcb",
            ProductCategory.ION: f"{_IGN}/products/ionosphere",
            ProductCategory.ROTI: f"{_IGN}/products/ionosphere",
            ProductCategory.ZTD: f"{_IGN}/products/troposphere",
        },
    ),
    Archive.WHU: ArchiveDescriptor(
        Archive.WHU,
        "Wuhan University IGS data center",
        {
            ProductCategory.OBS_DAILY: f"{_WHU}/data/daily",
            ProductCategory.OBS_HOURLY: f"{_WHU}/data/hourly",
            ProductCategory.OBS_HIGHRATE: f"{_WHU}/data",
            ProductCategory.NAV: f"{_WHU}/data/daily",
            ProductCategory.SP3: f"{_WHU}/products",
            ProductCategory.CLK: f"{_WHU}/products",
            ProductCategory.EOP: f"{_WHU}/products",
            ProductCategory.SNX: f"{_WHU}/products",
            ProductCategory.SP3_MGEX: f"{_WHU}/products/mgex",
            ProductCategory.CLK_MGEX: f"{_WHU}/products/mgex",
            ProductCategory.DCB_MGEX: f"{_WHU}/products/mgex/dcb",
            ProductCategory.ION: f"{_WHU}/products/ionex",
            ProductCategory.ROTI: f"{_WHU}/products/ionex",
            ProductCategory.ZTD: f"{_WHU}/products/troposphere/new",
        },
    ),
    Archive.CUT: ArchiveDescriptor(
        Archive.CUT,
        "Curtin University",
        {ProductCategory.OBS_DAILY: "http://saegnss2.curtin.edu/ldc/rinex3/daily"},
    ),
    Archive.GA: ArchiveDescriptor(
        Archive.GA,
        "Geoscience Australia",
        {
            ProductCategory.OBS_DAILY: "ftp://ftp.data.gnss.ga.gov.au/daily",
            ProductCategory.OBS_HOURLY: "ftp://ftp.data.gnss.ga.gov.au/hourly",
            ProductCategory.OBS_HIGHRATE: "ftp://ftp.data.gnss.ga.gov.au/highrate",
        },
    ),
    Archive.HK: ArchiveDescriptor(
        Archive.HK,
        "Hong Kong SatRef",
        {
            ProductCategory.OBS_DAILY: "ftp://ftp.geodetic.gov.hk/rinex3",
            ProductCategory.OBS_HOURLY: "ftp://ftp.geodetic.gov.hk/rinex3",
        },
    ),
    Archive.NGS: ArchiveDescriptor(
        Archive.NGS,
        "NOAA NGS CORS",
        {ProductCategory.OBS_DAILY: "https://noaa-cors-pds.s3.amazonaws.com/rinex"},
    ),
    Archive.EPN: ArchiveDescriptor(
        Archive.EPN,
        "EUREF Permanent Network",
        {ProductCategory.OBS_DAILY: "ftp://ftp.epncb.oma.be/pub/obs"},
    ),
    Archive.ESA: ArchiveDescriptor(
        Archive.ESA,
        "ESA navigation office",
        {ProductCategory.PRODUCTS: "http://navigation-office.esa.int/products/gnss-products"},
    ),
    Archive.GFZ: ArchiveDescriptor(
        Archive.GFZ,
        "GFZ Potsdam",
        {ProductCategory.PRODUCTS: "ftp://ftp.gfz-potsdam.de/pub/GNSS/products"},
    ),
    Archive.CODE: ArchiveDescriptor(
        Archive.CODE,
        "CODE Bern",
        {ProductCategory.PRODUCTS: "ftp://ftp.aiub.unibe.ch/CODE"},
    ),
    Archive.NRCAN: ArchiveDescriptor(
        Archive.NRCAN,
        "NRCan",
        {ProductCategory.PRODUCTS: "ftp://rtopsdata1.geod.nrcan.gc.ca/gps/products"},
    ),
    Archive.CNES: ArchiveDescriptor(
        Archive.CNES,
        "CNES PPP-Wizard",
        {ProductCategory.PRODUCTS: "http://www.ppp-wizard.net/products"},
    ),
    Archive.LRZ: ArchiveDescriptor(
        Archive.LRZ,
        "LRZ real-time navigation",
        {ProductCategory.NAV: "ftp://ftp.lrz.de/transfer/steigenb/brdm"},
    ),
    Archive.IGS: ArchiveDescriptor(
        Archive.IGS,
        "IGS central bureau",
        {ProductCategory.PRODUCTS: "https://files.igs.org/pub/station/general"},
    ),
}


def get_archive(name: Archive | str) -> ArchiveDescriptor:
    """
    Look up an archive descriptor by enum or case-insensitive name.

    Raises:
        KeyError: If the archive is unknown.
    """
    if isinstance(name, str) and not isinstance(name, Archive):
        try:
            name = Archive(name.strip().upper())
        except ValueError:
            raise KeyError(f"Unknown archive '{name}'") from None
    return ARCHIVES[name]

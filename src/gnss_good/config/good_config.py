"""
Configuration of a download run.

Two file formats produce the same :class:`GoodConfig`:

- the flat ``key = value`` format (``#`` starts a comment line) read by
  :meth:`GoodConfig.from_cfg`,
- YAML using the snake case field names of :class:`GoodConfig`, read by
  :meth:`GoodConfig.from_yaml`.

:meth:`GoodConfig.load` picks the reader from the file suffix.
"""
import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_serializer, field_validator, model_validator

from ..logging import BaseLogger as logger
from ..products.archives import GLOBAL_ARCHIVES, Archive
from ..products.product_schemas import (
    ALL_SITES,
    DAILY_NAV_KINDS,
    HOURLY_NAV_KINDS,
    classify_center,
    observation_hours,
    product_hours,
)
from ..time_utils.gnss_time import Epoch, yrdoy_to_epoch, ymdhms_to_epoch
from ..utils.custom_exceptions import ConfigError
from .site_list import read_site_list

YAML_SUFFIXES = (".yaml", ".yml")

# flat key -> (field name, default sub-directory of main_dir)
DIRECTORY_KEYS: Dict[str, Tuple[str, str]] = {
    "obsDir": ("obs_dir", "obs"),
    "obmDir": ("obm_dir", "obm"),
    "obcDir": ("obc_dir", "obc"),
    "obgDir": ("obg_dir", "obg"),
    "obhDir": ("obh_dir", "obh"),
    "obnDir": ("obn_dir", "obn"),
    "obeDir": ("obe_dir", "obe"),
    "navDir": ("nav_dir", "nav"),
    "sp3Dir": ("sp3_dir", "sp3"),
    "clkDir": ("clk_dir", "clk"),
    "eopDir": ("eop_dir", "eop"),
    "snxDir": ("snx_dir", "snx"),
    "dcbDir": ("dcb_dir", "dcb"),
    "biaDir": ("bia_dir", "bia"),
    "ionDir": ("ion_dir", "ion"),
    "ztdDir": ("ztd_dir", "ztd"),
    "tblDir": ("tbl_dir", "tbl"),
}


class ObservationType(str, Enum):
    DAILY = "daily"
    HOURLY = "hourly"
    HIGHRATE = "highrate"
    RATE_30S = "30s"
    RATE_5S = "5s"
    RATE_1S = "1s"


class NavigationType(str, Enum):
    DAILY = "daily"
    HOURLY = "hourly"
    RTNAV = "RTNAV"


class ProductOption(BaseModel):
    enabled: bool = Field(False, title="Download Switch")


class ObservationOption(ProductOption):
    """
    Selection of one observation source.

    Attributes:
        type (ObservationType): Daily, hourly or high-rate files (30s/5s/1s for Hong Kong).
        sites (str): ``all`` or the path of a site-list file.
        start_hour (int): First hour of sub-daily files.
        hour_count (int): Number of hours, clipped to the end of the day.
    """

    type: ObservationType = Field(ObservationType.DAILY, title="Observation File Type")
    sites: str = Field(
        ALL_SITES,
        title="Site Selection",
        description="'all' for every station of the archive, otherwise the path of a site-list file.",
    )
    start_hour: int = Field(0, ge=0, le=23, title="First Hour")
    hour_count: int = Field(24, ge=0, title="Number of Hours")

    @property
    def all_sites(self) -> bool:
        return self.sites.strip().lower() == ALL_SITES

    def site_list(self) -> Optional[List[str]]:
        """Station codes of the site list, None when every station is requested."""
        if self.all_sites:
            return None
        return read_site_list(self.sites)

    def hours(self) -> List[int]:
        return observation_hours(self.start_hour, self.hour_count)


class NavigationOption(ProductOption):
    type: NavigationType = Field(NavigationType.DAILY, title="Navigation File Type")
    systems: str = Field(
        "gps",
        title="Constellations",
        description="gps, glo, bds, gal, qzs, irn, mixed or all (daily files: gps, glo, mixed or all).",
    )
    start_hour: int = Field(0, ge=0, le=23, title="First Hour")
    hour_count: int = Field(24, ge=0, title="Number of Hours")

    @field_validator("systems")
    def _v_systems(cls, v: str):
        v = v.strip().lower()
        if v not in HOURLY_NAV_KINDS:
            raise ValueError(f"unknown constellation selection '{v}'")
        return v

    def hours(self) -> List[int]:
        return observation_hours(self.start_hour, self.hour_count)


class CenterOption(ProductOption):
    """Orbit/clock or earth rotation products of one analysis center."""

    center: str = Field("igs", title="Analysis Center Code")
    start_hour: int = Field(0, ge=0, le=23, title="First Issue Hour")
    count: int = Field(1, ge=0, title="Number of Issues")

    @field_validator("center")
    def _v_center(cls, v: str):
        return v.strip().lower()

    def hours(self) -> List[int]:
        """
        Issue hours for the day.

        Raises:
            UnresolvableRequestError: If the center is not in any latency class.
        """
        return product_hours(classify_center(self.center), self.start_hour, self.count)


class IonosphereOption(ProductOption):
    center: str = Field("igs", title="Analysis Center Code")

    @field_validator("center")
    def _v_center(cls, v: str):
        return v.strip().lower()


class TroposphereOption(ProductOption):
    center: str = Field("igs", title="Troposphere Product Source", description="'igs' (per site) or 'cod'.")

    @field_validator("center")
    def _v_center(cls, v: str):
        v = v.strip().lower()
        if v not in ("igs", "cod"):
            raise ValueError(f"troposphere products come from 'igs' or 'cod', not '{v}'")
        return v


_OBSERVATION_TYPES = {
    "obs": (ObservationType.DAILY, ObservationType.HOURLY, ObservationType.HIGHRATE),
    "obm": (ObservationType.DAILY, ObservationType.HOURLY, ObservationType.HIGHRATE),
    "obg": (ObservationType.DAILY, ObservationType.HOURLY, ObservationType.HIGHRATE),
    "obc": (ObservationType.DAILY,),
    "obn": (ObservationType.DAILY,),
    "obe": (ObservationType.DAILY,),
    "obh": (ObservationType.RATE_30S, ObservationType.RATE_5S, ObservationType.RATE_1S),
}


class GoodConfig(BaseModel):
    """
    Settings of one download run.

    Directories left unset default to a sub-directory of ``main_dir`` named
    after the product (``obs``, ``nav``, ``sp3`` ...). Relative directories
    are taken relative to ``main_dir``.

    Attributes:
        main_dir (Path): Root of the local product tree.
        tool_dir (Optional[Path]): Directory holding wget, gzip and crx2rnx; None searches PATH.
        start_date (datetime.date): First day to download.
        ndays (int): Number of consecutive days.
        minus_add_1day (bool): Also fetch non ultra-rapid orbits/clocks of the neighbouring days.
        print_info_wget (bool): Let wget report progress instead of running quietly.
        ftp_downloading (bool): Master switch for downloading.
        archive (Archive): Global archive (CDDIS, IGN or WHU) for products it carries.
    """

    main_dir: Path = Field(..., title="Main Directory")
    obs_dir: Optional[Path] = Field(None, title="IGS Observation Directory")
    obm_dir: Optional[Path] = Field(None, title="MGEX Observation Directory")
    obc_dir: Optional[Path] = Field(None, title="Curtin Observation Directory")
    obg_dir: Optional[Path] = Field(None, title="Geoscience Australia Observation Directory")
    obh_dir: Optional[Path] = Field(None, title="Hong Kong Observation Directory")
    obn_dir: Optional[Path] = Field(None, title="NGS Observation Directory")
    obe_dir: Optional[Path] = Field(None, title="EPN Observation Directory")
    nav_dir: Optional[Path] = Field(None, title="Broadcast Ephemeris Directory")
    sp3_dir: Optional[Path] = Field(None, title="Precise Orbit Directory")
    clk_dir: Optional[Path] = Field(None, title="Precise Clock Directory")
    eop_dir: Optional[Path] = Field(None, title="Earth Rotation Parameter Directory")
    snx_dir: Optional[Path] = Field(None, title="SINEX Directory")
    dcb_dir: Optional[Path] = Field(None, title="Code Bias Directory")
    bia_dir: Optional[Path] = Field(None, title="Real-time Bias Directory")
    ion_dir: Optional[Path] = Field(None, title="Ionosphere Directory")
    ztd_dir: Optional[Path] = Field(None, title="Troposphere Directory")
    tbl_dir: Optional[Path] = Field(None, title="Table Directory")
    tool_dir: Optional[Path] = Field(
        None,
        title="Third-party Tool Directory",
        description="Directory holding wget, gzip and crx2rnx. If not provided, the system PATH will be used.",
    )

    start_date: datetime.date = Field(..., title="First Day")
    ndays: int = Field(1, ge=1, title="Number of Consecutive Days")
    minus_add_1day: bool = Field(True, title="Fetch Orbits and Clocks of the Neighbouring Days")
    print_info_wget: bool = Field(False, title="Print wget Progress")

    ftp_downloading: bool = Field(False, title="Download Master Switch")
    archive: Archive = Field(Archive.CDDIS, title="Global Archive")

    obs: ObservationOption = ObservationOption()
    obm: ObservationOption = ObservationOption()
    obc: ObservationOption = ObservationOption()
    obg: ObservationOption = ObservationOption()
    obh: ObservationOption = ObservationOption(type=ObservationType.RATE_30S)
    obn: ObservationOption = ObservationOption()
    obe: ObservationOption = ObservationOption()
    nav: NavigationOption = NavigationOption()
    orbclk: CenterOption = CenterOption()
    eop: CenterOption = CenterOption()
    snx: ProductOption = ProductOption()
    dcb: ProductOption = ProductOption()
    ion: IonosphereOption = IonosphereOption()
    roti: ProductOption = ProductOption()
    trp: TroposphereOption = TroposphereOption()
    rt_orbclk: ProductOption = ProductOption()
    rt_bias: ProductOption = ProductOption()
    atx: ProductOption = ProductOption()

    @field_validator("archive", mode="before")
    def _v_archive(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_serializer(*(name for name, _ in DIRECTORY_KEYS.values()), "main_dir", "tool_dir")
    def _s_path(self, v):
        return str(v) if v is not None else None

    @model_validator(mode="after")
    def _check(self) -> "GoodConfig":
        if self.archive not in GLOBAL_ARCHIVES:
            raise ValueError(f"archive must be one of CDDIS, IGN or WHU, not {self.archive.value}")
        for name, default in DIRECTORY_KEYS.values():
            value = getattr(self, name)
            if value is None:
                setattr(self, name, self.main_dir / default)
            elif not value.is_absolute():
                setattr(self, name, self.main_dir / value)
        for section, allowed in _OBSERVATION_TYPES.items():
            option: ObservationOption = getattr(self, section)
            if option.type not in allowed:
                names = ", ".join(t.value for t in allowed)
                raise ValueError(f"{section} type must be one of {names}, not {option.type.value}")
        if self.nav.type is NavigationType.DAILY and self.nav.systems not in DAILY_NAV_KINDS:
            raise ValueError(f"daily navigation files exist for gps, glo, mixed or all, not {self.nav.systems}")
        return self

    @property
    def start_epoch(self) -> Epoch:
        return ymdhms_to_epoch(self.start_date.year, self.start_date.month, self.start_date.day)

    def to_yaml(self, filepath: Path):
        with open(filepath, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f)

    @classmethod
    def _validated(cls, data: dict, source: Path) -> "GoodConfig":
        try:
            config = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration {source}:\n{e}") from e
        logger.logdebug(f"Loaded configuration {source}")
        return config

    @classmethod
    def from_yaml(cls, filepath: Path | str) -> "GoodConfig":
        """
        Read a YAML configuration.

        Raises:
            ConfigError: If the file cannot be read, is not a mapping or fails validation.
        """
        filepath = Path(filepath)
        try:
            with open(filepath) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot open configuration file {filepath}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse configuration file {filepath}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {filepath} does not hold a mapping")
        return cls._validated(data, filepath)

    @classmethod
    def from_cfg(cls, filepath: Path | str) -> "GoodConfig":
        """
        Read a flat ``key = value`` configuration.

        Directory keys take ``<flag> <path>``: flag 0 joins ``path`` to
        ``mainDir``, flag 1 uses it as given. The ``get*`` keys are read only
        after an ``ftpDownloading`` line.

        Raises:
            ConfigError: If the file cannot be read or a value cannot be parsed.
        """
        filepath = Path(filepath)
        try:
            lines = filepath.read_text().splitlines()
        except OSError as e:
            raise ConfigError(f"Cannot open configuration file {filepath}: {e}") from e

        data: Dict[str, object] = {}
        directories: Dict[str, Tuple[int, str]] = {}
        in_ftp_section = False
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            where = f"{filepath}:{lineno}"
            key, sep, value = line.partition("=")
            if not sep:
                logger.logwarn(f"{where}: line without '=' ignored")
                continue
            key, value = key.strip(), value.strip()
            values = value.split()
            try:
                match key:
                    case "mainDir":
                        data["main_dir"] = value
                    case _ if key in DIRECTORY_KEYS:
                        directories[DIRECTORY_KEYS[key][0]] = _directory(value)
                    case "3partyDir":
                        flag, tool_dir = _directory(value)
                        if flag == 1:
                            data["tool_dir"] = tool_dir
                    case "procTime":
                        data["start_date"], data["ndays"] = _proc_time(values)
                    case "minusAdd1day":
                        data["minus_add_1day"] = _switch(values)
                    case "printInfoWget":
                        data["print_info_wget"] = _switch(values)
                    case "ftpDownloading":
                        data["ftp_downloading"] = _switch(values)
                        if len(values) > 1:
                            data["archive"] = values[1]
                        in_ftp_section = True
                    case _ if key in SECTION_KEYS:
                        if not in_ftp_section:
                            logger.logwarn(f"{where}: {key} before ftpDownloading ignored")
                            continue
                        section, parse = SECTION_KEYS[key]
                        data[section] = parse(values)
                    case _:
                        logger.logwarn(f"{where}: unknown key '{key}' ignored")
            except (ValueError, IndexError) as e:
                raise ConfigError(f"{where}: invalid value for {key}: {e}") from e

        main_dir = data.get("main_dir")
        for name, (flag, path) in directories.items():
            if flag == 0:
                if main_dir is None:
                    raise ConfigError(f"{filepath}: {name} is relative to mainDir but mainDir is not set")
                data[name] = str(Path(main_dir) / path)
            else:
                data[name] = path
        return cls._validated(data, filepath)

    @classmethod
    def load(cls, filepath: Path | str) -> "GoodConfig":
        """Read ``filepath`` as YAML for ``.yaml``/``.yml`` files, otherwise as a flat configuration."""
        filepath = Path(filepath)
        if filepath.suffix.lower() in YAML_SUFFIXES:
            return cls.from_yaml(filepath)
        return cls.from_cfg(filepath)


def _switch(values: List[str]) -> bool:
    return int(values[0]) == 1


def _directory(value: str) -> Tuple[int, str]:
    flag, *rest = value.split(maxsplit=1)
    flag = int(flag)
    if flag not in (0, 1):
        raise ValueError(f"directory flag must be 0 or 1, got {flag}")
    path = rest[0].strip().rstrip("/\\") if rest else ""
    if not path:
        raise ValueError("directory path is missing")
    return flag, path


def _proc_time(values: List[str]) -> Tuple[datetime.date, int]:
    match int(values[0]):
        case 1:
            if len(values) < 5:
                raise ValueError("the number of consecutive days is missing")
            year, month, day = (int(float(v)) for v in values[1:4])
            epoch = ymdhms_to_epoch(year, month, day)
            ndays = int(values[4])
        case 2:
            if len(values) < 4:
                raise ValueError("the number of consecutive days is missing")
            year, doy = (int(float(v)) for v in values[1:3])
            epoch = yrdoy_to_epoch(year, doy)
            ndays = int(values[3])
        case mode:
            raise ValueError(f"procTime mode must be 1 (year month day) or 2 (year doy), got {mode}")
    return epoch.to_date(), ndays


def _hours(values: List[str], first: int) -> dict:
    hours = {}
    if len(values) > first:
        hours["start_hour"] = int(values[first])
    if len(values) > first + 1:
        hours["hour_count"] = int(values[first + 1])
    return hours


def _observation(values: List[str]) -> dict:
    return {"enabled": _switch(values), "type": values[1], "sites": values[2], **_hours(values, 3)}


def _navigation(values: List[str]) -> dict:
    return {"enabled": _switch(values), "type": values[1], "systems": values[2], **_hours(values, 3)}


def _center(values: List[str]) -> dict:
    option = {"enabled": _switch(values), "center": values[1]}
    if len(values) > 2:
        option["start_hour"] = int(values[2])
    if len(values) > 3:
        option["count"] = int(values[3])
    return option


def _center_only(values: List[str]) -> dict:
    return {"enabled": _switch(values), "center": values[1]}


def _flag_only(values: List[str]) -> dict:
    return {"enabled": _switch(values)}


SECTION_KEYS: Dict[str, Tuple[str, Callable[[List[str]], dict]]] = {
    "getObs": ("obs", _observation),
    "getObm": ("obm", _observation),
    "getObc": ("obc", _observation),
    "getObg": ("obg", _observation),
    "getObh": ("obh", _observation),
    "getObn": ("obn", _observation),
    "getObe": ("obe", _observation),
    "getNav": ("nav", _navigation),
    "getOrbClk": ("orbclk", _center),
    "getEop": ("eop", _center),
    "getSnx": ("snx", _flag_only),
    "getDcb": ("dcb", _flag_only),
    "getIon": ("ion", _center_only),
    "getRoti": ("roti", _flag_only),
    "getTrp": ("trp", _center_only),
    "getRtOrbClk": ("rt_orbclk", _flag_only),
    "getRtBias": ("rt_bias", _flag_only),
    "getAtx": ("atx", _flag_only),
}

"""
The download date loop.

For every day of the configured range the enabled product sections are turned
into :class:`ProductJob` objects (a product directory plus the requests to run
in it) in a fixed order: observations, broadcast navigation, orbits and clocks,
earth rotation, SINEX, code biases, ionosphere, ROTI, troposphere, real-time
orbits/clocks and biases, antenna corrections. Each job is executed by the
orchestrator; no failure of a single unit stops the loop.
"""
# External imports
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm.auto import tqdm

# Local imports
from ..config.env_config import Environment
from ..config.good_config import GoodConfig, NavigationType, ObservationOption, ObservationType
from ..external_tools.tool_operations import ExternalTools
from ..logging import DownloadLogger as logger
from ..products.archives import Archive
from ..products.product_operations import FetchReport, run_requests, summarize
from ..products.product_schemas import (
    DAILY_NAV_KINDS,
    HIGHRATE_MINUTES,
    HOURLY_NAV_KINDS,
    Latency,
    ProductKind,
    ProductRequest,
    classify_center,
    resolve,
    validate_table,
)
from ..time_utils.gnss_time import Epoch, add_days, daily_epochs
from ..utils.custom_exceptions import ConfigError

# section -> kind per observation type
OBSERVATION_KINDS: Dict[str, Dict[ObservationType, ProductKind]] = {
    "obs": {
        ObservationType.DAILY: ProductKind.OBS_IGS_DAILY,
        ObservationType.HOURLY: ProductKind.OBS_IGS_HOURLY,
        ObservationType.HIGHRATE: ProductKind.OBS_IGS_HIGHRATE,
    },
    "obm": {
        ObservationType.DAILY: ProductKind.OBS_MGEX_DAILY,
        ObservationType.HOURLY: ProductKind.OBS_MGEX_HOURLY,
        ObservationType.HIGHRATE: ProductKind.OBS_MGEX_HIGHRATE,
    },
    "obc": {ObservationType.DAILY: ProductKind.OBS_CUT_DAILY},
    "obg": {
        ObservationType.DAILY: ProductKind.OBS_GA_DAILY,
        ObservationType.HOURLY: ProductKind.OBS_GA_HOURLY,
        ObservationType.HIGHRATE: ProductKind.OBS_GA_HIGHRATE,
    },
    "obh": {
        ObservationType.RATE_30S: ProductKind.OBS_HK_30S,
        ObservationType.RATE_5S: ProductKind.OBS_HK_5S,
        ObservationType.RATE_1S: ProductKind.OBS_HK_1S,
    },
    "obn": {ObservationType.DAILY: ProductKind.OBS_NGS_DAILY},
    "obe": {ObservationType.DAILY: ProductKind.OBS_EPN_DAILY},
}

_CLOCK_KINDS = (ProductKind.CLK_RAPID, ProductKind.CLK_FINAL, ProductKind.CLK_MGEX, ProductKind.RT_CLK)
_DAILY_TYPES = (ObservationType.DAILY, ObservationType.RATE_30S)


@dataclass
class ProductJob:
    """
    Requests sharing one product directory.

    Attributes:
        label (str): Section name used in log messages.
        product_dir (Path): Directory the requests resolve their sub-directories in.
        requests (List[ProductRequest]): Units of work, in order.
        fallback (List[ProductRequest]): Run only when no unit of ``requests`` succeeded.
    """

    label: str
    product_dir: Path
    requests: List[ProductRequest]
    fallback: List[ProductRequest] = field(default_factory=list)


class DownloadWorkflow:
    """
    Runs the configured downloads day by day.

    Args:
        config (GoodConfig): Validated run configuration.
        tools (Optional[ExternalTools]): Tool collaborators; located on first use when None.
        max_workers (Optional[int]): Thread pool size for site-list jobs; defaults to $GOOD_MAX_WORKERS.
    """

    def __init__(
        self,
        config: GoodConfig,
        tools: Optional[ExternalTools] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config
        self.tools = tools
        self.max_workers = max_workers or Environment.max_workers()
        self._site_lists: Dict[str, Optional[List[Optional[str]]]] = {}

    @property
    def archive(self) -> Archive:
        return self.config.archive

    def _sites(self, section: str) -> List[Optional[str]]:
        """
        Stations of an observation section; ``[None]`` requests every station in one batch.

        An unreadable site list is logged once and yields no station, so only
        the products depending on it are dropped from the run.
        """
        if section not in self._site_lists:
            option: ObservationOption = getattr(self.config, section)
            try:
                sites = option.site_list()
            except ConfigError as e:
                logger.logerr(f"{section}: {e}, its products are skipped")
                sites = []
            self._site_lists[section] = [None] if sites is None else list(sites)
        return self._site_lists[section]

    def _station_section(self) -> str:
        """Section whose site selection is reused by hourly navigation and IGS troposphere files."""
        if self.config.obs.enabled:
            return "obs"
        if self.config.obm.enabled:
            return "obm"
        return "obs"

    def _observation_jobs(self, epoch: Epoch) -> List[ProductJob]:
        jobs = []
        for section, kinds in OBSERVATION_KINDS.items():
            option: ObservationOption = getattr(self.config, section)
            if not option.enabled:
                continue
            sites = self._sites(section)
            if not sites:
                continue
            kind = kinds[option.type]
            if option.type in _DAILY_TYPES:
                grid = [(0, 0)]
            elif option.type is ObservationType.HIGHRATE:
                grid = [(hour, minute) for hour in option.hours() for minute in HIGHRATE_MINUTES]
            else:
                grid = [(hour, 0) for hour in option.hours()]
            requests = [
                ProductRequest(epoch, kind, self.archive, site=site, hour=hour, minute=minute)
                for site in sites
                for hour, minute in grid
            ]
            jobs.append(ProductJob(section, getattr(self.config, f"{section}_dir"), requests))
        return jobs

    def _navigation_job(self, epoch: Epoch) -> Optional[ProductJob]:
        nav = self.config.nav
        if not nav.enabled:
            return None
        match nav.type:
            case NavigationType.DAILY:
                requests = [ProductRequest(epoch, kind, self.archive) for kind in DAILY_NAV_KINDS[nav.systems]]
            case NavigationType.HOURLY:
                sites = self._sites(self._station_section())
                if not sites:
                    return None
                requests = [
                    ProductRequest(epoch, kind, self.archive, site=site, hour=hour)
                    for site in sites
                    for hour in nav.hours()
                    for kind in HOURLY_NAV_KINDS[nav.systems]
                ]
            case NavigationType.RTNAV:
                requests = [ProductRequest(epoch, ProductKind.NAV_RTNAV, self.archive)]
        return ProductJob("nav", self.config.nav_dir, requests)

    def _orbit_clock_jobs(self, epoch: Epoch) -> List[ProductJob]:
        option = self.config.orbclk
        if not option.enabled:
            return []
        center = classify_center(option.center)
        days = [epoch]
        if self.config.minus_add_1day and center.latency is not Latency.ULTRA:
            days += [add_days(epoch, -1), add_days(epoch, 1)]
        orbits, clocks = [], []
        for day in days:
            for hour in option.hours():
                for kind in center.orbit_kinds:
                    request = ProductRequest(day, kind, self.archive, center=center.code, hour=hour)
                    (clocks if kind in _CLOCK_KINDS else orbits).append(request)
        jobs = [ProductJob("sp3", self.config.sp3_dir, orbits)]
        if clocks:
            jobs.append(ProductJob("clk", self.config.clk_dir, clocks))
        return jobs

    def _eop_job(self, epoch: Epoch) -> Optional[ProductJob]:
        option = self.config.eop
        if not option.enabled:
            return None
        center = classify_center(option.center)
        kind = center.eop_kind or ProductKind.EOP_FINAL
        requests = [
            ProductRequest(epoch, kind, self.archive, center=center.code, hour=hour) for hour in option.hours()
        ]
        return ProductJob("eop", self.config.eop_dir, requests)

    def _troposphere_job(self, epoch: Epoch) -> Optional[ProductJob]:
        if not self.config.trp.enabled:
            return None
        if self.config.trp.center == "cod":
            requests = [ProductRequest(epoch, ProductKind.ZTD_COD, self.archive)]
        else:
            sites = self._sites(self._station_section())
            if not sites:
                return None
            requests = [ProductRequest(epoch, ProductKind.ZTD_IGS, self.archive, site=site) for site in sites]
        return ProductJob("trp", self.config.ztd_dir, requests)

    def _real_time_jobs(self, epoch: Epoch) -> List[ProductJob]:
        days = [epoch]
        if self.config.minus_add_1day:
            days += [add_days(epoch, -1), add_days(epoch, 1)]
        return [
            ProductJob("rt_sp3", self.config.sp3_dir, [ProductRequest(d, ProductKind.RT_SP3) for d in days]),
            ProductJob("rt_clk", self.config.clk_dir, [ProductRequest(d, ProductKind.RT_CLK) for d in days]),
        ]

    def jobs_for_day(self, epoch: Epoch) -> List[ProductJob]:
        """
        Build the jobs of one day in download order.

        Sections whose site list cannot be read contribute no job.

        Raises:
            UnresolvableRequestError: If an analysis center is unknown.
        """
        config = self.config
        jobs = self._observation_jobs(epoch)
        if (nav := self._navigation_job(epoch)) is not None:
            jobs.append(nav)
        jobs.extend(self._orbit_clock_jobs(epoch))
        if (eop := self._eop_job(epoch)) is not None:
            jobs.append(eop)
        if config.snx.enabled:
            jobs.append(
                ProductJob(
                    "snx",
                    config.snx_dir,
                    [ProductRequest(epoch, ProductKind.SNX_WEEKLY, self.archive)],
                    fallback=[ProductRequest(epoch, ProductKind.SNX_DAILY, self.archive)],
                )
            )
        if config.dcb.enabled:
            kinds = (ProductKind.DCB_P1P2, ProductKind.DCB_P1C1, ProductKind.DCB_P2C2, ProductKind.DCB_MGEX)
            jobs.append(ProductJob("dcb", config.dcb_dir, [ProductRequest(epoch, k, self.archive) for k in kinds]))
        if config.ion.enabled:
            request = ProductRequest(epoch, ProductKind.ION, self.archive, center=config.ion.center)
            jobs.append(ProductJob("ion", config.ion_dir, [request]))
        if config.roti.enabled:
            jobs.append(ProductJob("roti", config.ion_dir, [ProductRequest(epoch, ProductKind.ROTI, self.archive)]))
        if (trp := self._troposphere_job(epoch)) is not None:
            jobs.append(trp)
        if config.rt_orbclk.enabled:
            jobs.extend(self._real_time_jobs(epoch))
        if config.rt_bias.enabled:
            jobs.append(ProductJob("rt_bias", config.bia_dir, [ProductRequest(epoch, ProductKind.RT_BIAS)]))
        if config.atx.enabled:
            jobs.append(ProductJob("atx", config.tbl_dir, [ProductRequest(epoch, ProductKind.ATX)]))
        return jobs

    def validate(self) -> None:
        """
        Check the enabled products before anything is downloaded.

        Every enabled ``(archive, kind, center)`` must have a naming template and
        every request of the first day must resolve, which also rejects ``all``
        for products that only support site lists.

        Raises:
            UnresolvableRequestError: If a product cannot be named.
        """
        jobs = self.jobs_for_day(self.config.start_epoch)
        requests = [r for job in jobs for r in job.requests + job.fallback]
        validate_table({(r.archive, r.kind, r.center) for r in requests})
        for request in requests:
            resolve(request)
        logger.loginfo(f"{len(requests)} requests per day in {len(jobs)} product groups")

    def _ensure_tools(self) -> ExternalTools:
        if self.tools is None:
            config = self.config
            need_converter = any(getattr(config, section).enabled for section in OBSERVATION_KINDS)
            self.tools = ExternalTools.discover(
                tool_dir=config.tool_dir or Environment.tool_dir(),
                timeout=Environment.tool_timeout(),
                verbose=config.print_info_wget,
                need_converter=need_converter,
            )
        return self.tools

    def run_job(self, job: ProductJob) -> List[FetchReport]:
        tools = self._ensure_tools()
        logger.logdebug(f"{job.label}: {len(job.requests)} requests in {job.product_dir}")
        reports = run_requests(job.requests, job.product_dir, tools, self.max_workers)
        if job.fallback and not any(r.outcome.succeeded for r in reports):
            logger.loginfo(f"{job.label}: trying the fallback product")
            fallback = run_requests(job.fallback, job.product_dir, tools, self.max_workers)
            if any(r.outcome.succeeded for r in fallback):
                return fallback
            reports.extend(fallback)
        return reports

    def run(self) -> List[FetchReport]:
        """
        Download every enabled product for every day of the range.

        Returns:
            List[FetchReport]: One report per unit of work, in execution order.

        Raises:
            ConfigError: If the configuration cannot be turned into requests.
            ToolNotFoundError: If wget, gzip or (for observations) crx2rnx is missing.
        """
        config = self.config
        if not config.ftp_downloading:
            logger.logwarn("ftpDownloading is off, nothing to download")
            return []
        self.validate()
        self._ensure_tools()

        reports: List[FetchReport] = []
        epochs = daily_epochs(config.start_epoch, config.ndays)
        for epoch in tqdm(epochs, desc="Downloading days", disable=len(epochs) < 2):
            logger.loginfo(f"Processing {epoch.to_date()}")
            for job in self.jobs_for_day(epoch):
                reports.extend(self.run_job(job))
        return reports


def run_download(config: GoodConfig, tools: Optional[ExternalTools] = None) -> Tuple[List[FetchReport], Dict]:
    """Run a workflow for ``config`` and return its reports with the per-outcome counts."""
    reports = DownloadWorkflow(config, tools=tools).run()
    return reports, summarize(reports)

# External imports
import concurrent.futures
import fnmatch
import os
import shutil
import tempfile
from dataclasses import dataclass
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Dict, Iterable, List, Optional

# Local imports
from ..logging import DownloadLogger as logger
from ..external_tools.tool_operations import COMPRESSION_SUFFIXES, ExternalTools
from ..utils.custom_exceptions import (
    ConvertError,
    DecompressError,
    TransferError,
    UnresolvableRequestError,
)
from .product_schemas import ProductRequest, ResolvedProduct, resolve, site_from_filename

STAGING_PREFIX = ".good-"


class FetchOutcome(str, Enum):
    ALREADY_PRESENT = "already_present"
    DOWNLOADED = "downloaded"
    NOT_PUBLISHED = "not_published"
    TRANSFER_FAILED = "transfer_failed"
    DECOMPRESS_FAILED = "decompress_failed"
    CONVERT_FAILED = "convert_failed"
    UNRESOLVABLE = "unresolvable"

    @property
    def succeeded(self) -> bool:
        return self in (FetchOutcome.ALREADY_PRESENT, FetchOutcome.DOWNLOADED)


@dataclass
class FetchReport:
    """
    Outcome of one unit of work.

    Attributes:
        request (ProductRequest): The request the unit belongs to.
        outcome (FetchOutcome): What happened.
        path (Optional[Path]): Canonical local artifact, when its name is known.
        site (Optional[str]): Station of the unit, for per-site products.
        detail (str): Failure description.
    """

    request: ProductRequest
    outcome: FetchOutcome
    path: Optional[Path] = None
    site: Optional[str] = None
    detail: str = ""

    def __str__(self) -> str:
        name = self.path.name if self.path is not None else str(self.request)
        text = f"{self.outcome.value}: {name}"
        return f"{text} ({self.detail})" if self.detail else text


def _report(resolved: ResolvedProduct, outcome: FetchOutcome, path: Optional[Path] = None, detail: str = "") -> FetchReport:
    report = FetchReport(resolved.request, outcome, path, resolved.fields.get("site"), detail)
    match outcome:
        case FetchOutcome.ALREADY_PRESENT:
            logger.loginfo(f"{path} already exists, skipped")
        case FetchOutcome.DOWNLOADED:
            logger.loginfo(f"Downloaded {path}")
        case FetchOutcome.NOT_PUBLISHED:
            logger.logwarn(f"{resolved.accept_pattern} not found at {resolved.url}")
        case _:
            logger.logwarn(f"{outcome.value} for {resolved.request}: {detail}")
    return report


def _staged(staging: Path) -> List[Path]:
    return sorted(p for p in staging.iterdir() if p.is_file())


def _candidates(resolved: ResolvedProduct, files: Iterable[Path]) -> List[Path]:
    """Files matching the remote pattern, ordered by the published compression suffixes."""
    files = list(files)
    if not resolved.suffixes:
        return [f for f in files if fnmatch.fnmatchcase(f.name, resolved.remote)]
    found = []
    for suffix in resolved.suffixes:
        pattern = f"{resolved.remote}.{suffix}"
        found.extend(f for f in files if fnmatch.fnmatchcase(f.name, pattern))
    return found


def _fetch(resolved: ResolvedProduct, staging: Path, tools: ExternalTools) -> List[Path]:
    """
    Run the fetcher for ``resolved`` into ``staging``.

    Exact products are requested file by file, one compression suffix after the
    other, until one arrives. Other products are fetched by filtering the remote
    directory listing with the accept pattern.
    """
    if not resolved.exact:
        tools.fetcher.fetch(resolved.url, resolved.accept_pattern, staging, resolved.cut_dirs)
        return _candidates(resolved, _staged(staging))
    for url, filename in resolved.exact_urls():
        tools.fetcher.fetch(url, None, staging, resolved.cut_dirs)
        if (staging / filename).is_file():
            return [staging / filename]
    return []


def _cleanup(staging: Path, resolved: ResolvedProduct) -> None:
    for name in resolved.cleanup:
        mirror = staging / name
        if mirror.is_dir():
            logger.logdebug(f"Removing mirror directory {name}")
            shutil.rmtree(mirror)


def _finish(resolved: ResolvedProduct, compressed: Path, staging: Path, target: Path, tools: ExternalTools) -> FetchReport:
    """
    Decompress, rename and convert one staged file, then move the result into ``target``.

    Every tool failure is turned into the matching :class:`FetchOutcome`.
    """
    local = target / resolved.local
    try:
        if compressed.suffix in COMPRESSION_SUFFIXES and resolved.suffixes:
            expanded = tools.decompressor.decompress(compressed)
        else:
            expanded = compressed

        staged_name = resolved.crx_name if resolved.convert else resolved.local
        staged = staging / staged_name
        if expanded != staged:
            try:
                os.replace(expanded, staged)
            except OSError as e:
                raise DecompressError(f"cannot rename {expanded.name} to {staged_name}: {e}") from e
            logger.logdebug(f"Renamed {expanded.name} to {staged_name}")

        if resolved.convert:
            if tools.converter is None:
                raise ConvertError(f"no converter configured for {staged_name}")
            converted = tools.converter.convert(staged, staging / resolved.local)
            staged.unlink(missing_ok=True)
            staged = converted

        os.replace(staged, local)
    except DecompressError as e:
        return _report(resolved, FetchOutcome.DECOMPRESS_FAILED, local, str(e))
    except ConvertError as e:
        return _report(resolved, FetchOutcome.CONVERT_FAILED, local, str(e))
    return _report(resolved, FetchOutcome.DOWNLOADED, local)


def _finish_any(
    resolved: ResolvedProduct, candidates: List[Path], staging: Path, target: Path, tools: ExternalTools
) -> FetchReport:
    """Process ``candidates`` in suffix order until one yields the canonical file; else report the last failure."""
    for compressed in candidates:
        report = _finish(resolved, compressed, staging, target, tools)
        if report.outcome.succeeded:
            break
    return report


def _fetch_single(resolved: ResolvedProduct, target: Path, tools: ExternalTools) -> FetchReport:
    local = target / resolved.local
    if local.exists():
        return _report(resolved, FetchOutcome.ALREADY_PRESENT, local)

    with tempfile.TemporaryDirectory(prefix=STAGING_PREFIX, dir=target) as tmp:
        staging = Path(tmp)
        try:
            candidates = _fetch(resolved, staging, tools)
        except TransferError as e:
            return _report(resolved, FetchOutcome.TRANSFER_FAILED, local, str(e))
        finally:
            _cleanup(staging, resolved)
        if not candidates:
            return _report(resolved, FetchOutcome.NOT_PUBLISHED, local)
        return _finish_any(resolved, candidates, staging, target, tools)


def _fetch_batch(resolved: ResolvedProduct, target: Path, tools: ExternalTools) -> List[FetchReport]:
    """
    Fetch every station of a day/hour with one wildcard call and process them one by one.

    Stations whose canonical file already exists are skipped. When a station is
    published with several compression suffixes they are tried in the
    template's order until one of them is processed.
    """
    with tempfile.TemporaryDirectory(prefix=STAGING_PREFIX, dir=target) as tmp:
        staging = Path(tmp)
        try:
            candidates = _fetch(resolved, staging, tools)
        except TransferError as e:
            return [_report(resolved, FetchOutcome.TRANSFER_FAILED, None, str(e))]
        finally:
            _cleanup(staging, resolved)
        if not candidates:
            return [_report(resolved, FetchOutcome.NOT_PUBLISHED)]

        logger.loginfo(f"Fetched {len(candidates)} files matching {resolved.accept_pattern} from {resolved.url}")
        by_site: Dict[str, List[Path]] = {}
        for compressed in candidates:
            by_site.setdefault(site_from_filename(compressed.name), []).append(compressed)

        reports = []
        for site, files in by_site.items():
            try:
                unit = resolved.for_site(site)
            except UnresolvableRequestError as e:
                logger.logerr(f"Cannot name {files[0].name}: {e}")
                reports.append(FetchReport(resolved.request, FetchOutcome.UNRESOLVABLE, site=site, detail=str(e)))
                continue
            local = target / unit.local
            if local.exists():
                reports.append(_report(unit, FetchOutcome.ALREADY_PRESENT, local))
                continue
            reports.append(_finish_any(unit, files, staging, target, tools))
        return reports


def fetch_product(resolved: ResolvedProduct, product_dir: Path, tools: ExternalTools) -> List[FetchReport]:
    """
    Fetch, decompress, rename and convert one resolved product.

    The work happens in a private staging directory inside the target
    directory; the finished file is moved into place with :func:`os.replace`
    so the existence check of a concurrent unit never sees a partial file.

    Args:
        resolved (ResolvedProduct): The resolved request.
        product_dir (Path): Directory of the product family (``obsDir``, ``sp3Dir`` ...).
        tools (ExternalTools): Fetcher, decompressor and converter.

    Returns:
        List[FetchReport]: One report, or one per station in batch mode.

    Example:
        >>> request = ProductRequest(yrdoy_to_epoch(2021, 45), ProductKind.OBS_IGS_DAILY, site="algo")
        >>> fetch_product(resolve(request), Path("obs"), tools)
        [FetchReport(..., outcome=<FetchOutcome.DOWNLOADED: 'downloaded'>, path=PosixPath('obs/2021/045/daily/algo0450.21o'), ...)]
    """
    target = Path(product_dir) / resolved.local_dir
    target.mkdir(parents=True, exist_ok=True)
    if resolved.batch:
        return _fetch_batch(resolved, target, tools)
    return [_fetch_single(resolved, target, tools)]


def run_request(request: ProductRequest, product_dir: Path, tools: ExternalTools) -> List[FetchReport]:
    """Resolve and fetch one request; an unresolvable request is reported, not raised."""
    try:
        resolved = resolve(request)
    except UnresolvableRequestError as e:
        logger.logerr(f"Cannot resolve {request}: {e}")
        return [FetchReport(request, FetchOutcome.UNRESOLVABLE, site=request.site, detail=str(e))]
    return fetch_product(resolved, product_dir, tools)


def run_requests(
    requests: List[ProductRequest],
    product_dir: Path,
    tools: ExternalTools,
    max_workers: int = 1,
) -> List[FetchReport]:
    """
    Run independent requests, optionally on a bounded thread pool.

    Reports are returned in request order whatever the pool size.
    """
    run = partial(run_request, product_dir=product_dir, tools=tools)
    if max_workers <= 1 or len(requests) <= 1:
        return [report for request in requests for report in run(request)]
    reports = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        for unit_reports in executor.map(run, requests):
            reports.extend(unit_reports)
    return reports


def summarize(reports: Iterable[FetchReport]) -> dict:
    """Count reports per outcome."""
    counts = {outcome: 0 for outcome in FetchOutcome}
    for report in reports:
        counts[report.outcome] += 1
    return counts

"""Reader for site-list files: one station identifier per line."""
from pathlib import Path
from typing import List

from ..logging import BaseLogger as logger
from ..utils.custom_exceptions import ConfigError

SITE_CODE_LENGTH = 4


def read_site_list(path: Path | str) -> List[str]:
    """
    Read the station identifiers of a site-list file.

    Blank lines and lines starting with ``#`` are skipped. Long RINEX3
    identifiers such as ``ABMF00GLP`` are cut to their four character code.
    Codes are lower case and duplicates are dropped, keeping the first
    occurrence.

    Args:
        path (Path | str): Site-list file.

    Returns:
        List[str]: Station codes in file order.

    Raises:
        ConfigError: If the file cannot be read or holds a code shorter than four characters.
    """
    path = Path(path)
    try:
        lines = path.read_text().splitlines()
    except OSError as e:
        raise ConfigError(f"Cannot open site list {path}: {e}") from e

    sites: List[str] = []
    for lineno, line in enumerate(lines, start=1):
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        code = entry.split()[0]
        if len(code) < SITE_CODE_LENGTH:
            raise ConfigError(f"{path}:{lineno}: '{code}' is not a station identifier")
        code = code[:SITE_CODE_LENGTH].lower()
        if code not in sites:
            sites.append(code)
    logger.logdebug(f"Read {len(sites)} sites from {path}")
    return sites

"""
This module is the command-line entry point for the application.

It uses Typer to create a CLI that runs a download configuration and that
shows how a single product request is named, without downloading it.
"""
import datetime
import logging
from pathlib import Path
from typing import Optional

import typer

from ..config.env_config import Environment
from ..config.good_config import GoodConfig
from ..logging import (
    DownloadLogger as logger,
    change_all_logger_dirs,
    route_all_loggers_to_console,
    set_all_logger_levels,
)
from ..products.archives import Archive
from ..products.product_operations import FetchOutcome
from ..products.product_schemas import ProductKind, ProductRequest, resolve
from ..time_utils.gnss_time import Epoch
from ..utils.custom_exceptions import ConfigError, ToolNotFoundError, UnresolvableRequestError
from ..workflows.download_workflow import run_download

EXIT_OK = 0
EXIT_ALL_FAILED = 1
EXIT_CONFIG = 2

app = typer.Typer(help="Download GNSS observation and product files from public archives.")


@app.command()
def run(
    config: Path = typer.Argument(..., help="Configuration file (flat key = value format, or .yaml/.yml)."),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Directory for the log files."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print debug messages to the console."),
):
    """
    Runs every download enabled in a configuration file.

    Exits with 0 when at least one file was downloaded or already present (or
    nothing was requested), 1 when every attempted unit failed and 2 when the
    configuration is invalid or an external tool is missing.
    """
    if log_dir is not None:
        change_all_logger_dirs(log_dir)
    route_all_loggers_to_console()
    if verbose:
        set_all_logger_levels(logging.DEBUG)

    try:
        Environment.load_environment()
        good_config = GoodConfig.load(config)
        reports, counts = run_download(good_config)
    except (ConfigError, ToolNotFoundError) as e:
        logger.logerr(str(e))
        raise typer.Exit(code=EXIT_CONFIG)
    except ValueError as e:
        logger.logerr(f"Invalid environment: {e}")
        raise typer.Exit(code=EXIT_CONFIG)

    for outcome, count in counts.items():
        if count:
            typer.echo(f"{outcome.value:>18}: {count}")
    if reports and not (counts[FetchOutcome.DOWNLOADED] or counts[FetchOutcome.ALREADY_PRESENT]):
        raise typer.Exit(code=EXIT_ALL_FAILED)


@app.command("resolve")
def resolve_product(
    kind: ProductKind = typer.Argument(..., help="Product kind."),
    date: datetime.datetime = typer.Option(..., "--date", formats=["%Y-%m-%d"], help="Day of the product."),
    archive: Archive = typer.Option(Archive.CDDIS, "--archive", help="Global archive."),
    center: Optional[str] = typer.Option(None, "--center", help="Analysis center code."),
    site: Optional[str] = typer.Option(None, "--site", help="Station identifier, or 'all'."),
    hour: int = typer.Option(0, "--hour", min=0, max=23),
    minute: int = typer.Option(0, "--minute", min=0, max=59),
):
    """Prints the remote location and local name of one product without downloading it."""
    request = ProductRequest(Epoch.from_date(date.date()), kind, archive, center=center, site=site, hour=hour, minute=minute)
    try:
        resolved = resolve(request)
    except UnresolvableRequestError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    typer.echo(f"url:       {resolved.url}")
    typer.echo(f"cut-dirs:  {resolved.cut_dirs}")
    typer.echo(f"accept:    {resolved.accept_pattern}")
    typer.echo(f"local dir: {resolved.local_dir or '.'}")
    typer.echo(f"local:     {resolved.local or '<one file per station>'}")


if __name__ == "__main__":
    app()

"""CLI entrypoint for team-velocity."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Coroutine

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .models import PERIODS
from .store import DEFAULT_DATA_DIR

_period_option = click.option(
    "--period",
    type=click.Choice(list(PERIODS), case_sensitive=False),
    default="month",
    show_default=True,
    help="Rolling window ending now",
)
_format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format",
)
_output_option = click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(),
    help="Save output to file instead of stdout",
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _run(coro: Coroutine[Any, Any, None]) -> None:
    try:
        asyncio.run(coro)
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--data-dir",
    envvar="TEAM_VELOCITY_DATA_DIR",
    show_envvar=True,
    default=str(DEFAULT_DATA_DIR),
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding collected snapshots",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, data_dir: Path, verbose: bool) -> None:
    """Team velocity metrics from GitHub issues, pull requests and commits.

    \b
    Examples:
      team-velocity collect myorg/myrepo
      team-velocity summary --period week
      team-velocity trends --months 12 --format json
      team-velocity export --output metrics.csv
    """
    _configure_logging(verbose)
    ctx.obj = {"data_dir": data_dir}


@main.command()
@click.argument("target")
@click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    required=True,
    show_envvar=True,
    help="GitHub personal access token",
)
@click.option("--api-url", default=None, help="GitHub Enterprise API base URL")
@click.option(
    "--no-ssl-verify",
    is_flag=True,
    default=False,
    help="Disable SSL verification (self-signed certs)",
)
@click.option(
    "--max-pages",
    type=int,
    default=None,
    help="Stop paginating each endpoint after this many pages",
)
@click.pass_context
def collect(
    ctx: click.Context,
    target: str,
    token: str,
    api_url: str | None,
    no_ssl_verify: bool,
    max_pages: int | None,
) -> None:
    """Fetch a snapshot of TARGET (owner/repo) and store it."""
    if "/" not in target:
        raise click.BadParameter("expected owner/repo", param_hint="TARGET")
    owner, repo = target.split("/", 1)

    from .orchestrator import run_collect

    try:
        path = asyncio.run(
            run_collect(
                owner=owner,
                repo=repo,
                token=token,
                data_dir=ctx.obj["data_dir"],
                api_url=api_url,
                verify_ssl=not no_ssl_verify,
                max_pages=max_pages,
            )
        )
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status == 404:
            click.echo(f"Error: '{target}' not found. Check the owner/repo name.", err=True)
        elif status in (401, 403):
            click.echo("Error: Authentication failed. Check your --token or $GITHUB_TOKEN.", err=True)
        else:
            click.echo(f"Error: GitHub API returned {status}.", err=True)
        sys.exit(1)
    except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
        click.echo(f"Error: Could not connect to GitHub API. {exc}", err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Snapshot saved to {path}")


@main.command()
@_period_option
@_format_option
@click.option(
    "--top-n", default=10, show_default=True, help="Number of team members to show"
)
@_output_option
@click.pass_context
def summary(
    ctx: click.Context,
    period: str,
    output_format: str,
    top_n: int,
    output_file: str | None,
) -> None:
    """Team summary: health score, breakdown, velocity and recommendations."""
    from .orchestrator import run_summary

    _run(
        run_summary(
            ctx.obj["data_dir"],
            period=period,
            output_format=output_format,
            top_n=top_n,
            output_file=output_file,
        )
    )


@main.command()
@_period_option
@_format_option
@_output_option
@click.pass_context
def velocity(
    ctx: click.Context, period: str, output_format: str, output_file: str | None
) -> None:
    """Story points, throughput, cycle time and lead time."""
    from .orchestrator import run_velocity

    _run(
        run_velocity(
            ctx.obj["data_dir"],
            period=period,
            output_format=output_format,
            output_file=output_file,
        )
    )


@main.command()
@click.option(
    "--months",
    type=click.IntRange(min=1),
    default=6,
    show_default=True,
    help="Number of monthly points",
)
@_format_option
@_output_option
@click.pass_context
def trends(
    ctx: click.Context, months: int, output_format: str, output_file: str | None
) -> None:
    """Monthly trend series (simulated around the current month)."""
    from .orchestrator import run_trends

    _run(
        run_trends(
            ctx.obj["data_dir"],
            months=months,
            output_format=output_format,
            output_file=output_file,
        )
    )


@main.command()
@_period_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["csv", "json"], case_sensitive=False),
    default="csv",
    show_default=True,
    help="Export format (csv exports feature and bug records only)",
)
@_output_option
@click.pass_context
def export(
    ctx: click.Context, period: str, output_format: str, output_file: str | None
) -> None:
    """Export classified metrics."""
    from .orchestrator import run_export

    _run(
        run_export(
            ctx.obj["data_dir"],
            period=period,
            output_format=output_format,
            output_file=output_file,
        )
    )


if __name__ == "__main__":  # pragma: no cover
    main()

"""Orchestrator: wires together client, store, engine, and renderer."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

from .collector import collect_snapshot
from .engine import (
    collect_category_metrics,
    compute_summary,
    compute_trends,
    compute_velocity_metrics,
)
from .github.client import GitHubClient
from .models import MetricsExport, Snapshot, resolve_period
from .renderer import render_csv, render_json, render_summary, render_trends, render_velocity
from .store import SnapshotStore

logger = logging.getLogger(__name__)


def _load(data_dir: Path) -> Snapshot | None:
    snapshot = SnapshotStore(data_dir).load_latest()
    if snapshot is None:
        logger.info("No snapshot in %s; reporting empty metrics", data_dir)
    return snapshot


async def run_collect(
    owner: str,
    repo: str,
    token: str,
    data_dir: Path,
    api_url: str | None = None,
    verify_ssl: bool = True,
    max_pages: int | None = None,
) -> Path:
    """Fetch a fresh snapshot and store it."""
    async with GitHubClient(
        token=token, base_url=api_url, verify_ssl=verify_ssl, max_pages=max_pages
    ) as client:
        snapshot = await collect_snapshot(client, owner, repo)
    return SnapshotStore(data_dir).save(snapshot)


async def run_summary(
    data_dir: Path,
    period: str = "month",
    output_format: str = "table",
    top_n: int = 10,
    output_file: str | None = None,
) -> None:
    summary = await compute_summary(_load(data_dir), period)
    if output_format == "json":
        render_json(summary, output_file=output_file)
    else:
        render_summary(summary, top_n=top_n, output_file=output_file)


async def run_velocity(
    data_dir: Path,
    period: str = "month",
    output_format: str = "table",
    output_file: str | None = None,
) -> None:
    velocity = await compute_velocity_metrics(_load(data_dir), period)
    if output_format == "json":
        render_json(velocity, output_file=output_file)
    else:
        render_velocity(velocity, output_file=output_file)


async def run_trends(
    data_dir: Path,
    months: int = 6,
    output_format: str = "table",
    output_file: str | None = None,
) -> None:
    report = await compute_trends(_load(data_dir), months)
    if output_format == "json":
        render_json(report, output_file=output_file)
    else:
        render_trends(report, output_file=output_file)


async def run_export(
    data_dir: Path,
    period: str = "month",
    output_format: str = "csv",
    output_file: str | None = None,
) -> None:
    period = resolve_period(period)
    metrics, _ = await collect_category_metrics(_load(data_dir), period)
    if output_format == "json":
        export = MetricsExport(
            timestamp=datetime.now(timezone.utc).isoformat(),
            period=period,
            features=metrics["features"],
            bugs=metrics["bugs"],
            pull_requests=metrics["pull_requests"],
            code_quality=metrics["code_quality"],
        )
        render_json(export, output_file=output_file)
    else:
        render_csv(metrics["features"], metrics["bugs"], output_file=output_file)

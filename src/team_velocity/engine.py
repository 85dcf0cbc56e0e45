"""Metrics engine: compute category metrics concurrently and join them into a summary."""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Any, Callable

from .classifier import (
    classify_bugs,
    classify_features,
    filter_commits,
    filter_pull_requests,
    get_date_range,
)
from .extractor import bug_metrics, code_quality_metrics, feature_metrics, pull_request_metrics
from .models import (
    AuthorActivity,
    BugBreakdown,
    BugMetrics,
    Breakdown,
    CodeQualityBreakdown,
    CodeQualityMetrics,
    Contribution,
    FeatureBreakdown,
    FeatureMetrics,
    PullRequestBreakdown,
    PullRequestMetrics,
    Snapshot,
    SummaryTotals,
    TeamSummary,
    TrendReport,
    VelocitySnapshot,
    WorkItem,
    resolve_period,
)
from .scoring import (
    generate_recommendations,
    health_score,
    overall_avg_cycle_time,
    overall_completion_rate,
)
from .trends import historical_trends
from .velocity import compute_velocity

logger = logging.getLogger(__name__)

CATEGORIES = ("features", "bugs", "pull_requests", "code_quality")


def _features(snapshot: Snapshot, period: str, now: datetime) -> FeatureMetrics:
    window = get_date_range(period, now)
    return feature_metrics(classify_features(snapshot, window), period)


def _bugs(snapshot: Snapshot, period: str, now: datetime) -> BugMetrics:
    window = get_date_range(period, now)
    return bug_metrics(classify_bugs(snapshot, window), period)


def _pull_requests(snapshot: Snapshot, period: str, now: datetime) -> PullRequestMetrics:
    window = get_date_range(period, now)
    return pull_request_metrics(filter_pull_requests(snapshot, window), period)


def _code_quality(snapshot: Snapshot, period: str, now: datetime) -> CodeQualityMetrics:
    window = get_date_range(period, now)
    return code_quality_metrics(filter_commits(snapshot, window), period)


_EMPTY: dict[str, Callable[[str], Any]] = {
    "features": lambda period: FeatureMetrics(period=period),
    "bugs": lambda period: BugMetrics(period=period),
    "pull_requests": lambda period: PullRequestMetrics(period=period),
    "code_quality": lambda period: CodeQualityMetrics(period=period),
}


async def collect_category_metrics(
    snapshot: Snapshot | None,
    period: str | None = "month",
    now: datetime | None = None,
    categories: tuple[str, ...] = CATEGORIES,
) -> tuple[dict[str, Any], list[str]]:
    """Compute each category in its own task.

    Returns the metrics keyed by category and the names of categories that
    failed; a failed category is replaced by its zeroed metrics.
    """
    period = resolve_period(period)
    now = now or datetime.now(timezone.utc)
    if snapshot is None:
        snapshot = Snapshot()

    compute = {
        "features": _features,
        "bugs": _bugs,
        "pull_requests": _pull_requests,
        "code_quality": _code_quality,
    }
    tasks = [
        asyncio.create_task(asyncio.to_thread(compute[name], snapshot, period, now))
        for name in categories
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    metrics: dict[str, Any] = {}
    failed: list[str] = []
    for name, result in zip(categories, results):
        if isinstance(result, Exception):
            logger.warning("Error computing %s metrics: %s", name, result)
            failed.append(name)
            result = _EMPTY[name](period)
        metrics[name] = result
    return metrics, failed


def calculate_team_contributions(
    issues: list[WorkItem],
    prs: list[WorkItem],
    author_activity: dict[str, AuthorActivity] | None = None,
) -> dict[str, Contribution]:
    """Merge issue assignees, PR authors and commit authors into one tally.

    Keys are used as given; a login and a commit display name for the same
    person remain separate entries.
    """
    contributions: dict[str, Contribution] = {}
    for issue in issues:
        if issue.assignee:
            contributions.setdefault(issue.assignee, Contribution()).issues += 1
    for pr in prs:
        if pr.user:
            contributions.setdefault(pr.user, Contribution()).prs += 1
    for author, activity in (author_activity or {}).items():
        entry = contributions.setdefault(author, Contribution())
        entry.commits += activity.commits
        entry.files += activity.files
    return contributions


async def compute_velocity_metrics(
    snapshot: Snapshot | None,
    period: str | None = "month",
    now: datetime | None = None,
) -> VelocitySnapshot:
    period = resolve_period(period)
    metrics, _ = await collect_category_metrics(
        snapshot, period, now, categories=("features", "bugs", "pull_requests")
    )
    return compute_velocity(
        metrics["features"], metrics["bugs"], metrics["pull_requests"], period
    )


async def compute_summary(
    snapshot: Snapshot | None,
    period: str | None = "month",
    now: datetime | None = None,
) -> TeamSummary:
    """Full team summary for one period."""
    period = resolve_period(period)
    now = now or datetime.now(timezone.utc)
    metrics, failed = await collect_category_metrics(snapshot, period, now)
    features: FeatureMetrics = metrics["features"]
    bugs: BugMetrics = metrics["bugs"]
    prs: PullRequestMetrics = metrics["pull_requests"]
    quality: CodeQualityMetrics = metrics["code_quality"]

    velocity = compute_velocity(features, bugs, prs, period)
    health = health_score(velocity, features, bugs, prs)
    contributions = calculate_team_contributions(
        features.features + bugs.bugs, prs.prs, quality.author_activity
    )

    return TeamSummary(
        timestamp=now.isoformat(),
        period=period,
        summary=SummaryTotals(
            total_work=features.total + bugs.total,
            completed_work=features.completed + bugs.resolved,
            completion_rate=overall_completion_rate(features, bugs),
            avg_cycle_time=overall_avg_cycle_time(velocity.cycle_time),
            team_size=len(contributions),
            health_score=health.score,
            health_band=health.band,
        ),
        velocity=velocity,
        breakdown=Breakdown(
            features=FeatureBreakdown(
                total=features.total,
                completed=features.completed,
                rate=features.completion_rate,
            ),
            bugs=BugBreakdown(
                total=bugs.total,
                resolved=bugs.resolved,
                rate=bugs.resolution_rate,
                avg_resolution_time=bugs.avg_resolution_time,
            ),
            pull_requests=PullRequestBreakdown(
                total=prs.total,
                merged=prs.merged,
                rate=prs.merge_rate,
                avg_review_time=prs.avg_review_time,
            ),
            code_quality=CodeQualityBreakdown(
                total_commits=quality.total_commits,
                avg_files_changed=quality.avg_files_changed,
            ),
        ),
        team_contributions=contributions,
        recommendations=generate_recommendations(velocity, features, bugs, prs),
        failed_categories=failed,
    )


async def compute_trends(
    snapshot: Snapshot | None,
    months: int = 6,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> TrendReport:
    """Monthly trend series built around the current month's real counts."""
    metrics, _ = await collect_category_metrics(
        snapshot, "month", now, categories=("features", "bugs", "pull_requests")
    )
    return historical_trends(
        metrics["features"],
        metrics["bugs"],
        metrics["pull_requests"],
        months=months,
        now=now,
        rng=rng,
    )

"""Per-category counts, rates, durations and author activity."""

from __future__ import annotations

from collections import defaultdict

from .models import (
    AuthorActivity,
    BugMetrics,
    CodeQualityMetrics,
    CommitRecord,
    DerivedMetrics,
    FeatureMetrics,
    PullRequestMetrics,
    WorkItem,
    parse_timestamp,
    resolve_period,
)

PRIORITY_MARKERS = ("priority", "critical", "urgent")

_SECONDS_PER_UNIT = {"days": 86400.0, "hours": 3600.0}


def rate(completed: int, total: int) -> float:
    """Percentage rounded to one decimal; 0.0 when there is nothing to divide."""
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 1)


def mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _is_completed(item: WorkItem, completion_field: str) -> bool:
    if completion_field == "merged_at":
        return bool(item.merged_at)
    return item.is_completed


def durations(items: list[WorkItem], completion_field: str, unit: str) -> list[float]:
    """Elapsed creation-to-completion times, skipping items missing either end."""
    seconds = _SECONDS_PER_UNIT[unit]
    values: list[float] = []
    for item in items:
        if completion_field == "closed_at" and item.state != "closed":
            continue
        created = parse_timestamp(item.created_at)
        finished = parse_timestamp(getattr(item, completion_field))
        if created is None or finished is None:
            continue
        values.append((finished - created).total_seconds() / seconds)
    return values


def extract(
    items: list[WorkItem],
    completion_field: str = "closed_at",
    duration_unit: str | None = None,
) -> DerivedMetrics:
    """Count completed items and optionally average their durations.

    ``completion_field`` is ``closed_at`` for issues (closed or merged counts
    as done) or ``merged_at`` for pull requests (only merged counts).
    """
    total = len(items)
    completed = sum(1 for item in items if _is_completed(item, completion_field))
    avg_duration = None
    if duration_unit is not None:
        avg_duration = mean(durations(items, completion_field, duration_unit))
    return DerivedMetrics(
        total=total,
        completed=completed,
        rate=rate(completed, total),
        avg_duration=avg_duration,
    )


def extract_priority(labels: list[str]) -> str:
    for name in labels:
        lower = name.lower()
        if any(marker in lower for marker in PRIORITY_MARKERS):
            return name
    return "normal"


def monthly_completion(items: list[WorkItem]) -> dict[str, int]:
    """Completed item counts keyed by ``YYYY-MM`` of the close date."""
    monthly: dict[str, int] = defaultdict(int)
    for item in items:
        closed = parse_timestamp(item.closed_at)
        if closed is not None:
            monthly[closed.strftime("%Y-%m")] += 1
    return dict(monthly)


def feature_metrics(features: list[WorkItem], period: str | None = None) -> FeatureMetrics:
    derived = extract(features)
    return FeatureMetrics(
        features=features,
        total=derived.total,
        completed=derived.completed,
        completion_rate=derived.rate,
        monthly_completion=monthly_completion(features),
        period=resolve_period(period),
    )


def bug_metrics(bugs: list[WorkItem], period: str | None = None) -> BugMetrics:
    for bug in bugs:
        bug.priority = extract_priority(bug.labels)
    derived = extract(bugs, "closed_at", duration_unit="days")
    return BugMetrics(
        bugs=bugs,
        total=derived.total,
        resolved=derived.completed,
        resolution_rate=derived.rate,
        avg_resolution_time=derived.avg_duration or 0.0,
        period=resolve_period(period),
    )


def pull_request_metrics(prs: list[WorkItem], period: str | None = None) -> PullRequestMetrics:
    derived = extract(prs, "merged_at", duration_unit="hours")
    return PullRequestMetrics(
        prs=prs,
        total=derived.total,
        merged=derived.completed,
        merge_rate=derived.rate,
        avg_review_time=derived.avg_duration or 0.0,
        period=resolve_period(period),
    )


def author_activity(commits: list[CommitRecord]) -> dict[str, AuthorActivity]:
    """Commit and file tallies keyed by the raw commit author name."""
    # Names are not normalized: "Alice" and "alice" stay separate.
    activity: dict[str, AuthorActivity] = {}
    for commit in commits:
        if not commit.author:
            continue
        entry = activity.setdefault(commit.author, AuthorActivity())
        entry.commits += 1
        entry.files += commit.files_changed
    return activity


def code_quality_metrics(
    commits: list[CommitRecord], period: str | None = None
) -> CodeQualityMetrics:
    return CodeQualityMetrics(
        commits=commits,
        total_commits=len(commits),
        avg_files_changed=mean([float(c.files_changed) for c in commits]),
        author_activity=author_activity(commits),
        period=resolve_period(period),
    )

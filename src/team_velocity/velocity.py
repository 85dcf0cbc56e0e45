"""Velocity calculation: story points, throughput, cycle and lead time."""

from __future__ import annotations

from .extractor import mean, rate
from .models import (
    BugMetrics,
    CycleTime,
    FeatureMetrics,
    LeadTime,
    PullRequestMetrics,
    StoryPoints,
    Throughput,
    VelocitySnapshot,
    WorkItem,
    parse_timestamp,
    resolve_period,
)

MAX_STORY_POINTS = 13
# Approximate weeks per month.
WEEKS_PER_MONTH = 4.33


def estimate_story_points(item: WorkItem) -> int:
    """Heuristic size estimate from comment volume, labels and title words."""
    points = 1
    labels = [name.lower() for name in item.labels]
    title = item.title.lower()
    if item.comments > 10:
        points += 2
    if any("epic" in name for name in labels):
        points += 5
    if any("complex" in name for name in labels):
        points += 3
    if "refactor" in title:
        points += 2
    if "migration" in title:
        points += 3
    return min(points, MAX_STORY_POINTS)


def story_points(features: list[WorkItem]) -> StoryPoints:
    estimates = [(item, estimate_story_points(item)) for item in features]
    total = sum(points for _, points in estimates)
    completed = sum(points for item, points in estimates if item.state == "closed")
    return StoryPoints(
        total=total,
        completed=completed,
        completion_rate=rate(completed, total),
    )


def calculate_throughput(items: list[WorkItem]) -> float:
    """Completed items scaled by :data:`WEEKS_PER_MONTH`, whatever the period."""
    if not items:
        return 0.0
    completed = sum(1 for item in items if item.is_completed)
    return round(completed * WEEKS_PER_MONTH, 1)


def calculate_avg_cycle_time(
    items: list[WorkItem], completed_field: str = "closed_at"
) -> float:
    """Mean whole days between creation and ``completed_field``."""
    days: list[float] = []
    for item in items:
        created = parse_timestamp(item.created_at)
        finished = parse_timestamp(getattr(item, completed_field))
        if created is None or finished is None:
            continue
        elapsed = (finished - created).total_seconds() / 86400
        days.append(float(int(elapsed)))
    return mean(days)


def calculate_lead_time(items: list[WorkItem]) -> float:
    return calculate_avg_cycle_time(items)


def compute_velocity(
    features: FeatureMetrics,
    bugs: BugMetrics,
    prs: PullRequestMetrics,
    period: str | None = None,
) -> VelocitySnapshot:
    return VelocitySnapshot(
        story_points=story_points(features.features),
        throughput=Throughput(
            features_per_week=calculate_throughput(features.features),
            bugs_per_week=calculate_throughput(bugs.bugs),
            prs_per_week=calculate_throughput(prs.prs),
        ),
        cycle_time=CycleTime(
            avg_feature_cycle_time=calculate_avg_cycle_time(features.features),
            avg_bug_cycle_time=calculate_avg_cycle_time(bugs.bugs),
            avg_pr_cycle_time=calculate_avg_cycle_time(prs.prs, "merged_at"),
        ),
        lead_time=LeadTime(
            avg_lead_time=calculate_lead_time(features.features + bugs.bugs)
        ),
        period=resolve_period(period),
    )

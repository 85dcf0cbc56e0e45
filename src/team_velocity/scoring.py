"""Health scoring and recommendations from threshold checks."""

from __future__ import annotations

from .extractor import rate
from .models import (
    BugMetrics,
    CycleTime,
    FeatureMetrics,
    HealthScore,
    PullRequestMetrics,
    Recommendation,
    VelocitySnapshot,
)

FEATURE_COMPLETION_THRESHOLD = 70.0
BUG_RESOLUTION_THRESHOLD = 80.0
PR_MERGE_THRESHOLD = 85.0
FEATURE_CYCLE_DAYS_THRESHOLD = 14.0
BUG_RESOLUTION_DAYS_THRESHOLD = 7.0
PR_REVIEW_HOURS_THRESHOLD = 48.0


def calculate_velocity_score(
    velocity: VelocitySnapshot,
    features: FeatureMetrics,
    bugs: BugMetrics,
    prs: PullRequestMetrics,
) -> int:
    """Start at 100 and subtract a fixed penalty for each breached threshold."""
    score = 100
    if features.completion_rate < FEATURE_COMPLETION_THRESHOLD:
        score -= 20
    if bugs.resolution_rate < BUG_RESOLUTION_THRESHOLD:
        score -= 15
    if prs.merge_rate < PR_MERGE_THRESHOLD:
        score -= 10
    if velocity.cycle_time.avg_feature_cycle_time > FEATURE_CYCLE_DAYS_THRESHOLD:
        score -= 15
    if bugs.avg_resolution_time > BUG_RESOLUTION_DAYS_THRESHOLD:
        score -= 10
    return max(score, 0)


def score_band(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    return "poor"


def health_score(
    velocity: VelocitySnapshot,
    features: FeatureMetrics,
    bugs: BugMetrics,
    prs: PullRequestMetrics,
) -> HealthScore:
    score = calculate_velocity_score(velocity, features, bugs, prs)
    return HealthScore(score=score, band=score_band(score))


def generate_recommendations(
    velocity: VelocitySnapshot,
    features: FeatureMetrics,
    bugs: BugMetrics,
    prs: PullRequestMetrics,
) -> list[Recommendation]:
    recommendations: list[Recommendation] = []

    if features.completion_rate < FEATURE_COMPLETION_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="features",
                priority="high",
                message=(
                    "Feature completion rate is below 70%. Consider breaking down "
                    "large features into smaller tasks."
                ),
                action="Review feature sizing and sprint planning",
            )
        )

    if bugs.resolution_rate < BUG_RESOLUTION_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="bugs",
                priority="high",
                message=(
                    "Bug resolution rate is below 80%. Prioritize bug triage "
                    "and resolution."
                ),
                action="Allocate more time for bug fixes in sprints",
            )
        )

    if velocity.cycle_time.avg_feature_cycle_time > FEATURE_CYCLE_DAYS_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="velocity",
                priority="medium",
                message=(
                    "Average feature cycle time is over 2 weeks. Consider reducing "
                    "scope or improving workflow."
                ),
                action="Review development process and remove blockers",
            )
        )

    if prs.avg_review_time > PR_REVIEW_HOURS_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="process",
                priority="medium",
                message="PR review time is over 48 hours. Improve code review process.",
                action="Set up review assignments and SLA targets",
            )
        )

    return recommendations


def overall_completion_rate(features: FeatureMetrics, bugs: BugMetrics) -> float:
    return rate(features.completed + bugs.resolved, features.total + bugs.total)


def overall_avg_cycle_time(cycle_time: CycleTime) -> float:
    """Mean of the non-zero feature, bug and PR cycle times."""
    times = [
        t
        for t in (
            cycle_time.avg_feature_cycle_time,
            cycle_time.avg_bug_cycle_time,
            cycle_time.avg_pr_cycle_time,
        )
        if t > 0
    ]
    if not times:
        return 0.0
    return round(sum(times) / len(times), 1)

"""Trend series and insights.

Past snapshots are not retained, so each historical point is the current
period's counts scaled by a random factor. The resulting report is flagged
``simulated``.
"""

from __future__ import annotations

import math
import random
from datetime import datetime, timezone

from .classifier import subtract_months
from .models import (
    BugMetrics,
    BugTrend,
    FeatureMetrics,
    FeatureTrend,
    PRTrend,
    PullRequestMetrics,
    TrendPoint,
    TrendReport,
)

VARIATION_LOW = 0.8
VARIATION_HIGH = 1.2
INSIGHT_THRESHOLD = 5.0


def _vary(value: int, rng: random.Random) -> int:
    return math.floor(value * rng.uniform(VARIATION_LOW, VARIATION_HIGH))


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def calculate_trend(values: list[float]) -> float:
    """Difference between the last and first value."""
    if len(values) < 2:
        return 0.0
    return values[-1] - values[0]


def analyze_trends(trends: list[TrendPoint]) -> list[str]:
    insights: list[str] = []

    feature_trend = calculate_trend(
        [_percent(t.features.completed, t.features.total) for t in trends]
    )
    if feature_trend > INSIGHT_THRESHOLD:
        insights.append("📈 Feature completion rate is improving over time")
    elif feature_trend < -INSIGHT_THRESHOLD:
        insights.append("📉 Feature completion rate is declining - needs attention")

    bug_trend = calculate_trend([_percent(t.bugs.resolved, t.bugs.total) for t in trends])
    if bug_trend > INSIGHT_THRESHOLD:
        insights.append("🐛 Bug resolution is improving")
    elif bug_trend < -INSIGHT_THRESHOLD:
        insights.append("🐛 Bug resolution is declining")

    return insights


def historical_trends(
    features: FeatureMetrics,
    bugs: BugMetrics,
    prs: PullRequestMetrics,
    months: int = 6,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> TrendReport:
    """Synthesize ``months`` monthly points, oldest first."""
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    trends: list[TrendPoint] = []
    for offset in range(max(months, 0) - 1, -1, -1):
        date = subtract_months(now, offset)
        trends.append(
            TrendPoint(
                month=date.strftime("%Y-%m"),
                month_name=date.strftime("%b %Y"),
                features=FeatureTrend(
                    completed=_vary(features.completed, rng),
                    total=_vary(features.total, rng),
                ),
                bugs=BugTrend(
                    resolved=_vary(bugs.resolved, rng),
                    total=_vary(bugs.total, rng),
                ),
                prs=PRTrend(
                    merged=_vary(prs.merged, rng),
                    total=_vary(prs.total, rng),
                ),
            )
        )
    return TrendReport(trends=trends, insights=analyze_trends(trends), simulated=True)

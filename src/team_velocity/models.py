"""Data models for team-velocity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

PERIODS = ("week", "month", "quarter")
DEFAULT_PERIOD = "month"


def resolve_period(value: str | None) -> str:
    """Return a known period name, falling back to ``month``."""
    if value and value.lower() in PERIODS:
        return value.lower()
    return DEFAULT_PERIOD


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp into an aware datetime."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _login(user: Any) -> str | None:
    if isinstance(user, dict):
        return user.get("login")
    if isinstance(user, str):
        return user
    return None


def label_names(labels: Any) -> list[str]:
    """Label names from GitHub label objects or plain strings."""
    names: list[str] = []
    for label in labels or []:
        if isinstance(label, dict):
            name = label.get("name")
            if name:
                names.append(str(name))
        elif isinstance(label, str):
            names.append(label)
    return names


@dataclass
class PeriodWindow:
    since: datetime
    until: datetime


@dataclass
class Snapshot:
    """Raw collected data: GitHub issue, pull request and commit payloads."""

    timestamp: str | None = None
    issues: list[dict[str, Any]] = field(default_factory=list)
    pull_requests: list[dict[str, Any]] = field(default_factory=list)
    commits: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        """Build a snapshot, treating anything malformed as missing data."""
        if not isinstance(data, dict):
            return cls()

        def _records(value: Any) -> list[dict[str, Any]]:
            if not isinstance(value, list):
                return []
            return [r for r in value if isinstance(r, dict)]

        prs = data.get("pullRequests", data.get("pull_requests"))
        timestamp = data.get("timestamp")
        return cls(
            timestamp=timestamp if isinstance(timestamp, str) else None,
            issues=_records(data.get("issues")),
            pull_requests=_records(prs),
            commits=_records(data.get("commits")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "issues": self.issues,
            "pullRequests": self.pull_requests,
            "commits": self.commits,
        }


@dataclass
class WorkItem:
    """An issue or pull request reduced to the fields the metrics use."""

    number: int | None
    title: str
    state: str
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    merged_at: str | None = None
    assignee: str | None = None
    user: str | None = None
    labels: list[str] = field(default_factory=list)
    comments: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    review_comments: int = 0
    priority: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> WorkItem:
        return cls(
            number=raw.get("number"),
            title=raw.get("title") or "",
            state=raw.get("state") or "open",
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
            closed_at=raw.get("closed_at"),
            merged_at=raw.get("merged_at"),
            assignee=_login(raw.get("assignee")),
            user=_login(raw.get("user")),
            labels=label_names(raw.get("labels")),
            comments=raw.get("comments") or 0,
            additions=raw.get("additions") or 0,
            deletions=raw.get("deletions") or 0,
            changed_files=raw.get("changed_files") or 0,
            review_comments=raw.get("review_comments") or 0,
        )

    @property
    def is_completed(self) -> bool:
        return self.state == "closed" or bool(self.merged_at)


@dataclass
class CommitRecord:
    sha: str
    message: str
    author: str | None
    date: str | None
    files_changed: int = 0

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> CommitRecord:
        commit = raw.get("commit") or {}
        author = commit.get("author") or {}
        return cls(
            sha=raw.get("sha") or "",
            message=commit.get("message") or "",
            author=author.get("name"),
            date=author.get("date"),
            files_changed=len(raw.get("files") or []),
        )


@dataclass
class DerivedMetrics:
    """Completion counts for one category. ``avg_duration`` is None when not measured."""

    total: int = 0
    completed: int = 0
    rate: float = 0.0
    avg_duration: float | None = None


@dataclass
class FeatureMetrics:
    features: list[WorkItem] = field(default_factory=list)
    total: int = 0
    completed: int = 0
    completion_rate: float = 0.0
    monthly_completion: dict[str, int] = field(default_factory=dict)
    period: str = DEFAULT_PERIOD


@dataclass
class BugMetrics:
    """Bug resolution counts; ``avg_resolution_time`` is in days."""

    bugs: list[WorkItem] = field(default_factory=list)
    total: int = 0
    resolved: int = 0
    resolution_rate: float = 0.0
    avg_resolution_time: float = 0.0
    period: str = DEFAULT_PERIOD


@dataclass
class PullRequestMetrics:
    """Pull request merge counts; ``avg_review_time`` is in hours."""

    prs: list[WorkItem] = field(default_factory=list)
    total: int = 0
    merged: int = 0
    merge_rate: float = 0.0
    avg_review_time: float = 0.0
    period: str = DEFAULT_PERIOD


@dataclass
class AuthorActivity:
    commits: int = 0
    files: int = 0


@dataclass
class CodeQualityMetrics:
    commits: list[CommitRecord] = field(default_factory=list)
    total_commits: int = 0
    avg_files_changed: float = 0.0
    author_activity: dict[str, AuthorActivity] = field(default_factory=dict)
    period: str = DEFAULT_PERIOD


@dataclass
class StoryPoints:
    total: int = 0
    completed: int = 0
    completion_rate: float = 0.0


@dataclass
class Throughput:
    """Completed items per week."""

    features_per_week: float = 0.0
    bugs_per_week: float = 0.0
    prs_per_week: float = 0.0


@dataclass
class CycleTime:
    """Average days from creation to completion."""

    avg_feature_cycle_time: float = 0.0
    avg_bug_cycle_time: float = 0.0
    avg_pr_cycle_time: float = 0.0


@dataclass
class LeadTime:
    avg_lead_time: float = 0.0


@dataclass
class VelocitySnapshot:
    story_points: StoryPoints = field(default_factory=StoryPoints)
    throughput: Throughput = field(default_factory=Throughput)
    cycle_time: CycleTime = field(default_factory=CycleTime)
    lead_time: LeadTime = field(default_factory=LeadTime)
    period: str = DEFAULT_PERIOD


@dataclass
class Contribution:
    issues: int = 0
    prs: int = 0
    commits: int = 0
    files: int = 0


@dataclass
class Recommendation:
    type: str
    priority: str
    message: str
    action: str


@dataclass
class HealthScore:
    score: int
    band: str


@dataclass
class FeatureTrend:
    completed: int = 0
    total: int = 0


@dataclass
class BugTrend:
    resolved: int = 0
    total: int = 0


@dataclass
class PRTrend:
    merged: int = 0
    total: int = 0


@dataclass
class TrendPoint:
    month: str
    month_name: str
    features: FeatureTrend = field(default_factory=FeatureTrend)
    bugs: BugTrend = field(default_factory=BugTrend)
    prs: PRTrend = field(default_factory=PRTrend)


@dataclass
class TrendReport:
    """Trend series; ``simulated`` flags history synthesized from current data."""

    trends: list[TrendPoint] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    simulated: bool = True


@dataclass
class SummaryTotals:
    total_work: int = 0
    completed_work: int = 0
    completion_rate: float = 0.0
    avg_cycle_time: float = 0.0
    team_size: int = 0
    health_score: int = 100
    health_band: str = "excellent"


@dataclass
class FeatureBreakdown:
    total: int = 0
    completed: int = 0
    rate: float = 0.0


@dataclass
class BugBreakdown:
    total: int = 0
    resolved: int = 0
    rate: float = 0.0
    avg_resolution_time: float = 0.0


@dataclass
class PullRequestBreakdown:
    total: int = 0
    merged: int = 0
    rate: float = 0.0
    avg_review_time: float = 0.0


@dataclass
class CodeQualityBreakdown:
    total_commits: int = 0
    avg_files_changed: float = 0.0


@dataclass
class Breakdown:
    features: FeatureBreakdown = field(default_factory=FeatureBreakdown)
    bugs: BugBreakdown = field(default_factory=BugBreakdown)
    pull_requests: PullRequestBreakdown = field(default_factory=PullRequestBreakdown)
    code_quality: CodeQualityBreakdown = field(default_factory=CodeQualityBreakdown)


@dataclass
class TeamSummary:
    timestamp: str
    period: str
    summary: SummaryTotals = field(default_factory=SummaryTotals)
    velocity: VelocitySnapshot = field(default_factory=VelocitySnapshot)
    breakdown: Breakdown = field(default_factory=Breakdown)
    team_contributions: dict[str, Contribution] = field(default_factory=dict)
    recommendations: list[Recommendation] = field(default_factory=list)
    failed_categories: list[str] = field(default_factory=list)


@dataclass
class MetricsExport:
    timestamp: str
    period: str
    features: FeatureMetrics = field(default_factory=FeatureMetrics)
    bugs: BugMetrics = field(default_factory=BugMetrics)
    pull_requests: PullRequestMetrics = field(default_factory=PullRequestMetrics)
    code_quality: CodeQualityMetrics = field(default_factory=CodeQualityMetrics)

"""Split raw snapshot records into feature, bug and pull request buckets."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any

from .models import (
    CommitRecord,
    PeriodWindow,
    Snapshot,
    WorkItem,
    label_names,
    parse_timestamp,
    resolve_period,
)

FEATURE_LABELS = frozenset({"enhancement", "feature", "epic"})
BUG_LABELS = frozenset({"bug", "defect", "issue"})
BUGFIX_TITLE_WORDS = ("fix", "bug", "patch", "hotfix", "resolve")
FEATURE_TITLE_WORDS = ("feature", "add", "implement")


def subtract_months(moment: datetime, months: int) -> datetime:
    """Step back whole calendar months, clamping the day to the target month."""
    total = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def get_date_range(period: str | None, now: datetime | None = None) -> PeriodWindow:
    """Return the rolling window ending at ``now`` for a period name."""
    until = now or datetime.now(timezone.utc)
    if until.tzinfo is None:
        until = until.replace(tzinfo=timezone.utc)
    period = resolve_period(period)
    if period == "week":
        since = until - timedelta(weeks=1)
    elif period == "quarter":
        since = subtract_months(until, 3)
    else:  # month
        since = subtract_months(until, 1)
    return PeriodWindow(since=since, until=until)


def _updated_after(raw: dict[str, Any], since: datetime) -> bool:
    updated = parse_timestamp(raw.get("updated_at"))
    return updated is not None and updated > since


def _has_label(raw: dict[str, Any], wanted: frozenset[str]) -> bool:
    return any(name.lower() in wanted for name in label_names(raw.get("labels")))


def is_bugfix_title(title: str) -> bool:
    lower = title.lower()
    return any(word in lower for word in BUGFIX_TITLE_WORDS)


def is_feature_title(title: str) -> bool:
    """A title that is not a fix, or explicitly adds something.

    Evaluated independently of :func:`is_bugfix_title`, so "Fix and add
    retries" satisfies both.
    """
    lower = title.lower()
    return "fix" not in lower or any(word in lower for word in FEATURE_TITLE_WORDS)


def classify_features(snapshot: Snapshot, window: PeriodWindow) -> list[WorkItem]:
    """Feature-labelled issues, or feature-looking PRs when there are none."""
    features = [
        WorkItem.from_raw(issue)
        for issue in snapshot.issues
        if _has_label(issue, FEATURE_LABELS) and _updated_after(issue, window.since)
    ]
    if not features:
        features = [
            WorkItem.from_raw(pr)
            for pr in snapshot.pull_requests
            if _updated_after(pr, window.since) and is_feature_title(pr.get("title") or "")
        ]
    return features


def classify_bugs(snapshot: Snapshot, window: PeriodWindow) -> list[WorkItem]:
    """Bug-labelled issues, or bug-fix PRs when there are none.

    The PR fallback does not consult :func:`classify_features`; a PR may be
    counted as both a feature and a bug fix.
    """
    bugs = [
        WorkItem.from_raw(issue)
        for issue in snapshot.issues
        if _has_label(issue, BUG_LABELS) and _updated_after(issue, window.since)
    ]
    if not bugs:
        bugs = [
            WorkItem.from_raw(pr)
            for pr in snapshot.pull_requests
            if _updated_after(pr, window.since) and is_bugfix_title(pr.get("title") or "")
        ]
    return bugs


def filter_pull_requests(snapshot: Snapshot, window: PeriodWindow) -> list[WorkItem]:
    return [
        WorkItem.from_raw(pr)
        for pr in snapshot.pull_requests
        if _updated_after(pr, window.since)
    ]


def filter_commits(snapshot: Snapshot, window: PeriodWindow) -> list[CommitRecord]:
    commits: list[CommitRecord] = []
    for raw in snapshot.commits:
        record = CommitRecord.from_raw(raw)
        date = parse_timestamp(record.date)
        if date is not None and date > window.since:
            commits.append(record)
    return commits


def classify(
    snapshot: Snapshot, period: str | None, now: datetime | None = None
) -> tuple[list[WorkItem], list[WorkItem]]:
    """Return ``(features, bugs)`` for the period ending at ``now``."""
    window = get_date_range(period, now)
    return classify_features(snapshot, window), classify_bugs(snapshot, window)

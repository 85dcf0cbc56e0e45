"""Tests for the classifier module."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from team_velocity.classifier import (
    classify,
    filter_commits,
    filter_pull_requests,
    get_date_range,
    is_bugfix_title,
    is_feature_title,
    subtract_months,
)
from team_velocity.models import Snapshot


def test_date_range_week(now):
    window = get_date_range("week", now)
    assert window.until == now
    assert window.since == now - timedelta(weeks=1)


def test_date_range_month_and_quarter(now):
    assert get_date_range("month", now).since == datetime(2024, 5, 15, 12, tzinfo=timezone.utc)
    assert get_date_range("quarter", now).since == datetime(2024, 3, 15, 12, tzinfo=timezone.utc)


def test_date_range_unknown_period_is_month(now):
    assert get_date_range("decade", now) == get_date_range("month", now)
    assert get_date_range(None, now) == get_date_range("month", now)


@pytest.mark.parametrize("period", ["week", "month", "quarter"])
def test_date_range_since_before_now(period, now):
    window = get_date_range(period, now)
    assert window.since < window.until


def test_narrower_period_starts_later(now):
    week = get_date_range("week", now)
    month = get_date_range("month", now)
    quarter = get_date_range("quarter", now)
    assert week.since >= month.since >= quarter.since


def test_date_range_defaults_to_current_time():
    before = datetime.now(timezone.utc)
    window = get_date_range("week")
    assert window.until >= before


def test_date_range_treats_naive_now_as_utc(now):
    naive = now.replace(tzinfo=None)
    window = get_date_range("month", naive)
    assert window.until.tzinfo is not None
    assert window == get_date_range("month", now)


def test_classify_accepts_naive_now(make_issue, now):
    snapshot = Snapshot(issues=[make_issue(labels=["bug"], updated_days_ago=1)])
    _, bugs = classify(snapshot, "week", now.replace(tzinfo=None))
    assert len(bugs) == 1


def test_subtract_months_clamps_day():
    moment = datetime(2024, 3, 31, tzinfo=timezone.utc)
    assert subtract_months(moment, 1) == datetime(2024, 2, 29, tzinfo=timezone.utc)
    assert subtract_months(moment, 3) == datetime(2023, 12, 31, tzinfo=timezone.utc)


def test_title_heuristics():
    assert is_bugfix_title("Hotfix for crash")
    assert is_bugfix_title("Resolve race")
    assert not is_bugfix_title("Add dashboard")
    assert is_feature_title("Add dashboard")
    assert not is_feature_title("Fix crash")
    # both rules match
    assert is_feature_title("Fix and add retries")
    assert is_bugfix_title("Fix and add retries")


def test_classify_by_labels(make_issue, make_pr, now):
    snapshot = Snapshot(
        issues=[
            make_issue(labels=["Enhancement"]),
            make_issue(labels=["epic", "ui"]),
            make_issue(labels=["BUG"]),
            make_issue(labels=["defect"]),
            make_issue(labels=["question"]),
        ],
        pull_requests=[make_pr(title="Add thing"), make_pr(title="Fix thing")],
    )
    features, bugs = classify(snapshot, "month", now)
    assert [f.labels for f in features] == [["Enhancement"], ["epic", "ui"]]
    assert [b.labels for b in bugs] == [["BUG"], ["defect"]]


def test_classify_filters_by_updated_at(make_issue, now):
    snapshot = Snapshot(
        issues=[
            make_issue(labels=["feature"], updated_days_ago=3),
            make_issue(labels=["feature"], updated_days_ago=20),
            make_issue(labels=["feature"], updated_days_ago=60),
        ]
    )
    assert len(classify(snapshot, "week", now)[0]) == 1
    assert len(classify(snapshot, "month", now)[0]) == 2
    assert len(classify(snapshot, "quarter", now)[0]) == 3


def test_classify_excludes_item_updated_exactly_at_since(make_issue, now):
    issue = make_issue(labels=["feature"])
    issue["updated_at"] = "2024-06-08T12:00:00Z"  # exactly one week before now
    features, _ = classify(Snapshot(issues=[issue]), "week", now)
    assert features == []


def test_classify_skips_missing_updated_at(make_issue, now):
    issue = make_issue(labels=["bug"])
    issue["updated_at"] = None
    _, bugs = classify(Snapshot(issues=[issue]), "month", now)
    assert bugs == []


def test_pr_fallback_when_no_labelled_issues(make_pr, now):
    snapshot = Snapshot(
        pull_requests=[
            make_pr(title="Add dashboard"),
            make_pr(title="Fix crash on start"),
            make_pr(title="Fix bug and add retry"),
            make_pr(title="Bump deps"),
        ]
    )
    features, bugs = classify(snapshot, "month", now)
    assert [f.title for f in features] == [
        "Add dashboard",
        "Fix bug and add retry",
        "Bump deps",
    ]
    assert [b.title for b in bugs] == ["Fix crash on start", "Fix bug and add retry"]


def test_fallback_is_per_category(make_issue, make_pr, now):
    snapshot = Snapshot(
        issues=[make_issue(labels=["feature"])],
        pull_requests=[make_pr(title="Fix crash")],
    )
    features, bugs = classify(snapshot, "month", now)
    assert len(features) == 1 and features[0].labels == ["feature"]
    assert [b.title for b in bugs] == ["Fix crash"]


def test_pr_fallback_respects_period(make_pr, now):
    snapshot = Snapshot(pull_requests=[make_pr(title="Add x", updated_days_ago=40)])
    features, bugs = classify(snapshot, "month", now)
    assert features == []
    assert bugs == []


def test_filter_pull_requests(make_pr, now):
    snapshot = Snapshot(
        pull_requests=[make_pr(updated_days_ago=2), make_pr(updated_days_ago=45)]
    )
    window = get_date_range("month", now)
    assert len(filter_pull_requests(snapshot, window)) == 1


def test_filter_commits(make_commit, now):
    snapshot = Snapshot(
        commits=[
            make_commit(date_days_ago=1),
            make_commit(date_days_ago=10),
            {"sha": "broken", "commit": {"author": {"name": "x"}}},
        ]
    )
    assert len(filter_commits(snapshot, get_date_range("week", now))) == 1
    assert len(filter_commits(snapshot, get_date_range("month", now))) == 2


def test_classify_does_not_mutate_snapshot(make_issue, now):
    issue = make_issue(labels=["bug"])
    original = dict(issue)
    classify(Snapshot(issues=[issue]), "month", now)
    assert issue == original

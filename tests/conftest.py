"""Shared fixtures: a fixed clock and GitHub-shaped record factories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def days_ago(days: float) -> str:
    return iso(NOW - timedelta(days=days))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_issue():
    counter = iter(range(1, 10_000))

    def _make(
        labels=(),
        state="open",
        title="Issue",
        created_days_ago=10,
        closed_days_ago=None,
        updated_days_ago=1,
        assignee=None,
        comments=0,
    ):
        return {
            "number": next(counter),
            "title": title,
            "state": state,
            "labels": [{"name": name} for name in labels],
            "created_at": days_ago(created_days_ago),
            "updated_at": days_ago(updated_days_ago),
            "closed_at": days_ago(closed_days_ago) if closed_days_ago is not None else None,
            "assignee": {"login": assignee} if assignee else None,
            "user": {"login": "reporter"},
            "comments": comments,
        }

    return _make


@pytest.fixture
def make_pr():
    counter = iter(range(1000, 10_000))

    def _make(
        title="Add widget",
        merged_hours_after=None,
        state=None,
        created_days_ago=5,
        updated_days_ago=1,
        user="alice",
    ):
        created = NOW - timedelta(days=created_days_ago)
        merged_at = None
        if merged_hours_after is not None:
            merged_at = iso(created + timedelta(hours=merged_hours_after))
        return {
            "number": next(counter),
            "title": title,
            "state": state or ("closed" if merged_at else "open"),
            "labels": [],
            "created_at": iso(created),
            "updated_at": days_ago(updated_days_ago),
            "closed_at": merged_at,
            "merged_at": merged_at,
            "user": {"login": user},
            "comments": 0,
            "additions": 10,
            "deletions": 2,
            "changed_files": 1,
        }

    return _make


@pytest.fixture
def make_commit():
    def _make(author="Alice", date_days_ago=2, files=1, sha="abc123"):
        return {
            "sha": sha,
            "commit": {
                "message": "feat: change",
                "author": {"name": author, "date": days_ago(date_days_ago)},
            },
            "files": [{"filename": f"f{i}.py"} for i in range(files)],
        }

    return _make

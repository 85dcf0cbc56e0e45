"""Snapshot collection: fetch issues, pull requests and commits for one repo."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from .github.client import GitHubClient
from .models import Snapshot

logger = logging.getLogger(__name__)

# Access errors apply to the whole repo, so one source failing this way fails all.
FATAL_STATUSES = frozenset({401, 403, 404})

SOURCES = ("issues", "pull requests", "commits")


async def collect_snapshot(client: GitHubClient, owner: str, repo: str) -> Snapshot:
    """Fetch all three sources concurrently.

    A single failing source yields an empty list. Authentication and
    not-found errors, or every source failing, raise instead so a stored
    snapshot is never replaced by an empty one.
    """
    issues_task = asyncio.create_task(client.list_issues(owner, repo))
    prs_task = asyncio.create_task(client.list_pull_requests(owner, repo))
    commits_task = asyncio.create_task(client.list_commits(owner, repo))

    results = await asyncio.gather(
        issues_task, prs_task, commits_task, return_exceptions=True
    )

    errors = [r for r in results if isinstance(r, Exception)]
    for error in errors:
        if (
            isinstance(error, httpx.HTTPStatusError)
            and error.response.status_code in FATAL_STATUSES
        ):
            raise error
    if len(errors) == len(results):
        raise errors[0]

    issues, prs, commits = (
        [] if isinstance(result, Exception) else result for result in results
    )
    for name, result in zip(SOURCES, results):
        if isinstance(result, Exception):
            logger.warning("Error fetching %s: %s", name, result)

    return Snapshot(
        timestamp=datetime.now(timezone.utc).isoformat(),
        issues=issues,
        pull_requests=prs,
        commits=commits,
    )

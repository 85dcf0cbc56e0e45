"""GitHub REST API client for snapshot collection."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from .rate_limit import RateLimitMonitor

logger = logging.getLogger(__name__)

BASE_URL = "https://api.github.com"
DEFAULT_COMMIT_DAYS = 30


class GitHubClient:
    """Async GitHub REST client with pagination and rate limit handling."""

    def __init__(
        self,
        token: str,
        concurrency: int = 5,
        base_url: str | None = None,
        verify_ssl: bool = True,
        max_pages: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._client = httpx.AsyncClient(
            base_url=base_url or BASE_URL,
            headers=headers,
            timeout=30.0,
            verify=verify_ssl,
            transport=transport,
        )
        self._rate_limit = RateLimitMonitor()
        self._semaphore = asyncio.Semaphore(concurrency)
        self._max_pages = max_pages

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _get(
        self, url: str, params: dict[str, Any] | None = None
    ) -> httpx.Response:
        async with self._semaphore:
            await self._rate_limit.wait_if_needed()
            response = await self._client.get(url, params=params)
            self._rate_limit.update(response)
            response.raise_for_status()
            return response

    async def _paginate(
        self, url: str, params: dict[str, Any] | None = None
    ) -> list[Any]:
        results: list[Any] = []
        params = dict(params or {})
        params.setdefault("per_page", 100)
        next_url: str | None = url
        pages = 0

        while next_url is not None:
            response = await self._get(next_url, params)
            data = response.json()
            if isinstance(data, list):
                results.extend(data)
            else:
                results.append(data)
            pages += 1
            if self._max_pages is not None and pages >= self._max_pages:
                break

            next_url = None
            link_header = response.headers.get("Link", "")
            for part in link_header.split(","):
                if 'rel="next"' in part:
                    next_url = part.split(";")[0].strip().strip("<>")
                    params = {}  # next link carries the query string
                    break

        return results

    async def list_issues(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List issues of any state, most recently updated first, without PRs."""
        results = await self._paginate(
            f"/repos/{owner}/{repo}/issues",
            params={"state": "all", "sort": "updated", "direction": "desc"},
        )
        # The issues endpoint also returns pull requests
        issues = [i for i in results if "pull_request" not in i]
        logger.info("%s/%s: fetched %d issues", owner, repo, len(issues))
        return issues

    async def list_pull_requests(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List pull requests of any state, most recently updated first."""
        prs = await self._paginate(
            f"/repos/{owner}/{repo}/pulls",
            params={"state": "all", "sort": "updated", "direction": "desc"},
        )
        logger.info("%s/%s: fetched %d pull requests", owner, repo, len(prs))
        return prs

    async def list_commits(
        self, owner: str, repo: str, since: str | None = None
    ) -> list[dict[str, Any]]:
        """List commits since ``since`` (defaults to the last 30 days)."""
        if since is None:
            since_dt = datetime.now(timezone.utc) - timedelta(days=DEFAULT_COMMIT_DAYS)
            since = since_dt.strftime("%Y-%m-%dT%H:%M:%SZ")
        try:
            commits = await self._paginate(
                f"/repos/{owner}/{repo}/commits", params={"since": since}
            )
        except httpx.HTTPStatusError as exc:
            # 409: empty repository
            if exc.response.status_code == 409:
                return []
            raise
        logger.info("%s/%s: fetched %d commits", owner, repo, len(commits))
        return commits

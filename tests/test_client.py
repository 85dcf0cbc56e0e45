"""Tests for the GitHub client module."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from team_velocity.github.client import GitHubClient
from team_velocity.github.rate_limit import RateLimitMonitor


def test_client_instantiation():
    client = GitHubClient(token="test-token")
    assert client._client is not None
    assert "Bearer test-token" in client._client.headers["Authorization"]


def test_client_concurrency():
    client = GitHubClient(token="test-token", concurrency=10)
    assert client._semaphore._value == 10


def test_client_custom_base_url():
    client = GitHubClient(token="t", base_url="https://ghe.example.com/api/v3")
    assert str(client._client.base_url).startswith("https://ghe.example.com/api/v3")


@pytest.mark.asyncio
async def test_client_context_manager():
    async with GitHubClient(token="test-token") as client:
        assert client is not None


def _make_mock_response(
    status_code: int = 200,
    json_data=None,
    headers: dict | None = None,
):
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else []
    resp.headers = headers or {"Link": ""}
    resp.raise_for_status = MagicMock()
    if status_code >= 400:
        resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "error", request=MagicMock(), response=resp
        )
    return resp


def _client_with_responses(*responses, **kwargs) -> GitHubClient:
    client = GitHubClient(token="test-token", **kwargs)
    client._client.get = AsyncMock(side_effect=list(responses))
    client._rate_limit.wait_if_needed = AsyncMock()
    client._rate_limit.update = MagicMock()
    return client


@pytest.mark.asyncio
async def test_get_raises_on_error_status():
    client = _client_with_responses(_make_mock_response(500))
    with pytest.raises(httpx.HTTPStatusError):
        await client._get("/test")


@pytest.mark.asyncio
async def test_paginate_follows_link_header():
    page1 = _make_mock_response(
        200,
        json_data=[{"id": 1}],
        headers={"Link": '<https://api.github.com/next?page=2>; rel="next"'},
    )
    page2 = _make_mock_response(200, json_data=[{"id": 2}])
    client = _client_with_responses(page1, page2)

    results = await client._paginate("/items")

    assert results == [{"id": 1}, {"id": 2}]
    first_call, second_call = client._client.get.call_args_list
    assert first_call.kwargs["params"]["per_page"] == 100
    assert second_call.args[0] == "https://api.github.com/next?page=2"
    assert second_call.kwargs["params"] == {}


@pytest.mark.asyncio
async def test_paginate_respects_max_pages():
    page = _make_mock_response(
        200,
        json_data=[{"id": 1}],
        headers={"Link": '<https://api.github.com/next?page=2>; rel="next"'},
    )
    client = _client_with_responses(page, max_pages=1)

    results = await client._paginate("/items")

    assert results == [{"id": 1}]
    assert client._client.get.call_count == 1


@pytest.mark.asyncio
async def test_list_issues_filters_pull_requests():
    resp = _make_mock_response(
        200,
        json_data=[
            {"number": 1, "title": "Bug"},
            {"number": 2, "title": "PR", "pull_request": {"url": "x"}},
        ],
    )
    client = _client_with_responses(resp)

    issues = await client.list_issues("org", "repo")

    assert [i["number"] for i in issues] == [1]
    call = client._client.get.call_args
    assert call.args[0] == "/repos/org/repo/issues"
    assert call.kwargs["params"]["state"] == "all"
    assert call.kwargs["params"]["sort"] == "updated"


@pytest.mark.asyncio
async def test_list_pull_requests():
    resp = _make_mock_response(200, json_data=[{"number": 5}])
    client = _client_with_responses(resp)

    prs = await client.list_pull_requests("org", "repo")

    assert prs == [{"number": 5}]
    assert client._client.get.call_args.args[0] == "/repos/org/repo/pulls"


@pytest.mark.asyncio
async def test_list_commits_default_since():
    resp = _make_mock_response(200, json_data=[{"sha": "a"}])
    client = _client_with_responses(resp)

    commits = await client.list_commits("org", "repo")

    assert commits == [{"sha": "a"}]
    since = client._client.get.call_args.kwargs["params"]["since"]
    assert since.endswith("Z")


@pytest.mark.asyncio
async def test_list_commits_explicit_since():
    client = _client_with_responses(_make_mock_response(200, json_data=[]))
    await client.list_commits("org", "repo", since="2024-01-01T00:00:00Z")
    assert client._client.get.call_args.kwargs["params"]["since"] == "2024-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_list_commits_empty_repo():
    client = _client_with_responses(_make_mock_response(409))
    assert await client.list_commits("org", "empty") == []


@pytest.mark.asyncio
async def test_list_commits_propagates_other_errors():
    client = _client_with_responses(_make_mock_response(404))
    with pytest.raises(httpx.HTTPStatusError):
        await client.list_commits("org", "missing")


def test_rate_limit_update_from_headers():
    monitor = RateLimitMonitor()
    resp = MagicMock(spec=httpx.Response)
    resp.headers = {"X-RateLimit-Remaining": "42", "X-RateLimit-Reset": "1700000000"}
    monitor.update(resp)
    assert monitor.remaining == 42


def test_rate_limit_no_wait_above_threshold():
    monitor = RateLimitMonitor(threshold=10)
    monitor._remaining = 100
    monitor._reset_at = time.time() + 60
    assert monitor.seconds_until_reset() == 0.0


def test_rate_limit_wait_capped():
    monitor = RateLimitMonitor(threshold=10)
    monitor._remaining = 1
    monitor._reset_at = time.time() + 100_000
    assert monitor.seconds_until_reset() == 3600


@pytest.mark.asyncio
async def test_rate_limit_sleeps_when_low():
    monitor = RateLimitMonitor(threshold=10)
    monitor._remaining = 2
    monitor._reset_at = time.time() + 5
    with patch("team_velocity.github.rate_limit.asyncio.sleep", new=AsyncMock()) as sleep:
        await monitor.wait_if_needed()
    sleep.assert_awaited_once()
    assert 0 < sleep.await_args.args[0] <= 7


@pytest.mark.asyncio
async def test_rate_limit_no_sleep_without_headers():
    monitor = RateLimitMonitor()
    with patch("team_velocity.github.rate_limit.asyncio.sleep", new=AsyncMock()) as sleep:
        await monitor.wait_if_needed()
    sleep.assert_not_awaited()

"""GitHub API rate limit tracking."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)

MAX_WAIT_SECONDS = 3600


class RateLimitMonitor:
    """Tracks ``X-RateLimit-*`` headers and pauses before the quota runs out."""

    def __init__(self, threshold: int = 10) -> None:
        self._remaining: int | None = None
        self._reset_at: float | None = None
        self._threshold = threshold

    @property
    def remaining(self) -> int | None:
        return self._remaining

    def update(self, response: httpx.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset_at = response.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_at is not None:
            self._reset_at = float(reset_at)

    def seconds_until_reset(self) -> float:
        """Seconds to sleep before the next request, 0 when under no pressure."""
        if (
            self._remaining is None
            or self._remaining > self._threshold
            or self._reset_at is None
        ):
            return 0.0
        return min(max(0.0, self._reset_at - time.time()) + 1, MAX_WAIT_SECONDS)

    async def wait_if_needed(self) -> None:
        delay = self.seconds_until_reset()
        if delay > 0:
            logger.info(
                "Rate limit nearly exhausted (%s left), sleeping %.0fs",
                self._remaining,
                delay,
            )
            await asyncio.sleep(delay)

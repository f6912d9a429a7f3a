"""
GitHub API rate limit tracking.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from .logger import logger


EXHAUSTION_THRESHOLD = 10


@dataclass
class RateLimitInfo:
    """Snapshot of the host's rate limit headers."""

    limit: int = 5000
    remaining: int = 5000
    used: int = 0
    reset_time: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining <= EXHAUSTION_THRESHOLD

    @property
    def reset_in_seconds(self) -> float:
        if self.reset_time is None:
            return 0.0
        return max(0.0, (self.reset_time - datetime.now()).total_seconds())


class RateLimiter:
    """
    Spaces out API requests and waits for the rate limit window to reset
    when the remaining budget runs low.
    """

    def __init__(
        self,
        default_delay: float = 0.0,
        max_delay: float = 60.0,
        adaptive: bool = True
    ):
        self.default_delay = default_delay
        self.max_delay = max_delay
        self.adaptive = adaptive
        self.rate_limit_info = RateLimitInfo()
        self._lock = asyncio.Lock()
        self._last_request = 0.0
        self._consecutive_limits = 0

    def _spacing_delay(self, now: float) -> float:
        delay = self.default_delay
        if self.adaptive and self._consecutive_limits:
            delay = delay * (2 ** self._consecutive_limits)
        delay = min(delay, self.max_delay)
        elapsed = now - self._last_request
        return max(0.0, delay - elapsed)

    async def acquire(self) -> None:
        """Wait until the next request may be sent."""

        now = time.time()
        info = self.rate_limit_info

        if info.is_exhausted and info.reset_in_seconds > 0:
            wait = min(info.reset_in_seconds, self.max_delay)
            logger.warning(f"Rate limit nearly exhausted, waiting {wait:.0f}s for reset")
            await asyncio.sleep(wait)

        delay = self._spacing_delay(now)
        if delay > 0:
            await asyncio.sleep(delay)

        self._last_request = time.time()

    async def update_rate_limit_info(self, headers: Mapping[str, str]) -> None:
        """Refresh the snapshot from ``x-ratelimit-*`` response headers."""

        async with self._lock:
            info = self.rate_limit_info
            if "x-ratelimit-limit" in headers:
                info.limit = int(headers["x-ratelimit-limit"])
            if "x-ratelimit-remaining" in headers:
                info.remaining = int(headers["x-ratelimit-remaining"])
            if "x-ratelimit-used" in headers:
                info.used = int(headers["x-ratelimit-used"])
            if "x-ratelimit-reset" in headers:
                info.reset_time = datetime.fromtimestamp(int(headers["x-ratelimit-reset"]))

            if info.is_exhausted:
                self._consecutive_limits += 1
                logger.debug(f"Rate limit low: {info.remaining}/{info.limit} remaining")
            else:
                self._consecutive_limits = 0


__all__ = [
    "RateLimitInfo",
    "RateLimiter",
]

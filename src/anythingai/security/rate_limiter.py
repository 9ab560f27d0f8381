"""Fixed-window request limiter for the HTTP API.

Each client address gets ``max_requests`` per ``window`` seconds.  The window
opens on the client's first request and resets once it has fully elapsed,
so a client never gets more than ``max_requests`` inside one window.

Expired windows are dropped by ``cleanup()``, which the app runs on a timer.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from anythingai.config import Settings

logger = logging.getLogger(__name__)

__all__ = ["RateLimiter", "RateLimitInfo", "limiter_from_settings", "run_periodic_cleanup"]


@dataclass
class _Window:
    started: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitInfo:
    """Outcome of one ``check()``."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the current window ends

    def headers(self) -> dict[str, str]:
        reset = str(max(0, math.ceil(self.reset_after)))
        h = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset,
        }
        if not self.allowed:
            h["Retry-After"] = reset
        return h


class RateLimiter:
    """Counts requests per key inside fixed windows.

    Parameters
    ----------
    max_requests : int
        Requests allowed per key in one window.
    window : float
        Window length in seconds.
    clock : callable, optional
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1 or window <= 0:
            raise ValueError("max_requests must be >= 1 and window > 0")
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitInfo:
        """Count one request for *key* and report whether it may proceed."""
        now = self._clock()
        current = self._windows.get(key)
        if current is None or now - current.started >= self.window:
            current = self._windows[key] = _Window(started=now)

        reset_after = current.started + self.window - now
        if current.count >= self.max_requests:
            return RateLimitInfo(False, self.max_requests, 0, reset_after)

        current.count += 1
        return RateLimitInfo(
            True, self.max_requests, self.max_requests - current.count, reset_after
        )

    def cleanup(self) -> int:
        """Forget keys whose window has ended. Returns how many were dropped."""
        now = self._clock()
        expired = [k for k, w in self._windows.items() if now - w.started >= self.window]
        for key in expired:
            del self._windows[key]
        return len(expired)


def limiter_from_settings(settings: Settings) -> RateLimiter:
    return RateLimiter(
        max_requests=settings.rate_limit_max, window=settings.rate_limit_window_seconds
    )


async def run_periodic_cleanup(limiter: RateLimiter, interval: float) -> None:
    """Call ``limiter.cleanup()`` every *interval* seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        removed = limiter.cleanup()
        if removed:
            logger.debug("Rate limiter dropped %d expired client windows", removed)

"""Pacing and quota tracking for catalog APIs.

Quota is a plain value threaded through the orchestrator: each catalog
response may report how many calls remain, and the latest reported value
wins.  Pacing between companies is an injectable limiter so tests can run
without sleeping.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class IntervalRateLimiter:
    """Enforce a minimum interval between consecutive units of work."""

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def wait(self) -> None:
        """Block until the next unit of work is allowed."""
        if self._last_request_time is not None:
            elapsed = self._clock() - self._last_request_time
            if elapsed < self._min_interval:
                self._sleep(self._min_interval - elapsed)
        self._last_request_time = self._clock()


def observe_rate_limit(current: int | None, reported: int | None) -> int | None:
    """Return the quota to carry forward after a response reported *reported*."""
    return reported if reported is not None else current


def quota_exhausted(remaining: int | None, floor: int) -> bool:
    """True when a known quota has dropped below the safety *floor*."""
    return remaining is not None and remaining < floor


def parse_rate_limit_header(headers, *names: str) -> int | None:
    """Read the first parseable integer among *names* from response headers."""
    for name in names:
        value = headers.get(name)
        if value is None:
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None

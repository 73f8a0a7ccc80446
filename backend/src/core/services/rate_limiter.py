"""Minimum-interval gate for top-level generation requests."""

from __future__ import annotations

import logging
import time
from typing import Callable

from backend.src.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class MinIntervalGate:
    """Rejects a submission that follows the previous one too closely.

    Rejected attempts are not queued and do not reset the interval.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._min_interval = min_interval_seconds
        self._clock = clock
        self._last: dict[str, float] = {}

    @property
    def min_interval_seconds(self) -> float:
        return self._min_interval

    def remaining(self, key: str) -> float:
        last = self._last.get(key)
        if last is None:
            return 0.0
        return max(0.0, self._min_interval - (self._clock() - last))

    def acquire(self, key: str) -> None:
        """Record a submission for *key* or raise :class:`RateLimitError`."""
        wait = self.remaining(key)
        if wait > 0:
            logger.info("Rate limit hit for %s (%.1fs remaining)", key, wait)
            raise RateLimitError(wait)
        self._last[key] = self._clock()

    def reset(self, key: str) -> None:
        self._last.pop(key, None)

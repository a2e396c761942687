"""Blocking rate limiter shared by all metadata providers of a run."""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    """Space consecutive calls at least ``min_interval`` seconds apart.

    The limiter owns the timestamp of the previous call; callers only ever
    ``acquire()`` before going to the network.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def acquire(self) -> float:
        """Block until the next call is allowed; return the seconds waited."""
        now = self._clock()
        waited = 0.0
        if self._last_call is not None:
            remaining = self.min_interval - (now - self._last_call)
            if remaining > 0:
                logger.debug("Rate limiter sleeping %.3fs", remaining)
                self._sleep(remaining)
                waited = remaining
                now = self._clock()
        self._last_call = now
        return waited


__all__ = ["RateLimiter"]

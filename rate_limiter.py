"""In-process rate limiting for outbound calls to one external dependency."""

from __future__ import annotations

import logging
import time
from typing import Callable

LOGGER = logging.getLogger(__name__)


class RateLimiter:
    """Leaky bucket with capacity one: calls are spaced at least ``min_interval`` apart.

    The first call never waits. ``clock`` and ``sleep`` are injectable so tests
    can drive the limiter without real wall-clock delays.
    """

    def __init__(
        self,
        name: str,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.name = name
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    def acquire(self) -> float:
        """Block until the next call is allowed; return the seconds waited."""
        waited = 0.0
        if self._last_call is not None:
            remaining = self.min_interval - (self._clock() - self._last_call)
            if remaining > 0:
                LOGGER.debug("Rate limiter %s: waiting %.2fs", self.name, remaining)
                self._sleep(remaining)
                waited = remaining
        self._last_call = self._clock()
        return waited

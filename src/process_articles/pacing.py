"""Fixed-interval pacing for summarization calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalLimiter:
    """Blocks so that consecutive acquire() calls are at least ``interval_seconds`` apart.

    The first acquire never blocks. Pass ``interval_seconds=0`` to disable pacing.
    """

    def __init__(
        self,
        interval_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self._clock = clock
        self._last: Optional[float] = None

    def acquire(self) -> float:
        """Wait for the next slot. Returns the number of seconds slept."""
        waited = 0.0
        if self._last is not None and self.interval_seconds > 0:
            remaining = self.interval_seconds - (self._clock() - self._last)
            if remaining > 0:
                logger.debug("Pacing: sleeping %.3fs", remaining)
                self._sleep(remaining)
                waited = remaining
        self._last = self._clock()
        return waited

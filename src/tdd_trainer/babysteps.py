"""Babystep timer: a per-phase countdown the engine starts and stops.

The timer never calls back into the engine. Whoever drives the session
polls `expired` and turns it into an ordinary engine call.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class BabystepTimer:
    """Wall-clock countdown for one (phase, exercise) span at a time."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._enabled = False
        self._duration_s: Optional[float] = None
        self._deadline: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def running(self) -> bool:
        return self._deadline is not None

    @property
    def duration_s(self) -> Optional[float]:
        """Budget of the current span, None when not running."""
        return self._duration_s

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False
        self.stop()

    def start(self, duration_s: float) -> None:
        """Start a new span, replacing any running one. No-op while disabled."""
        if not self._enabled:
            return
        self._duration_s = duration_s
        self._deadline = self._clock() + duration_s
        logger.debug("Babystep timer started: %ss", duration_s)

    def stop(self) -> None:
        if self._deadline is not None:
            logger.debug("Babystep timer stopped")
        self._duration_s = None
        self._deadline = None

    def remaining(self) -> Optional[float]:
        """Seconds left in the current span (never negative), None when not running."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

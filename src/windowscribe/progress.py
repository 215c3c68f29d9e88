from __future__ import annotations

import math
import time
from typing import Callable


def clamp_percent(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


class ProgressEstimator:
    """Per-window rate estimate for the remaining part of a job."""

    def __init__(self, total: int, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.total = total
        self.processed = 0
        self._clock = clock
        self._started_at: float | None = None

    def start(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()

    def update(self, processed: int) -> None:
        self.start()
        self.processed = processed

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        return clamp_percent(self.processed / self.total * 100.0)

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def eta_seconds(self) -> int | None:
        """Seconds left, or None until at least one window has completed."""

        if self.processed <= 0 or self.total < self.processed:
            return None
        per_window = self.elapsed_seconds / self.processed
        return math.ceil(per_window * (self.total - self.processed))

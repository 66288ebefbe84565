"""Fixed-window request gate shared by every remote lookup in a session."""
from __future__ import annotations

import time
from typing import Callable

from jobintel.log import get_logger

log = get_logger(__name__)

MAX_PER_WINDOW = 10
WINDOW_DURATION_MS = 60_000


def _now_ms() -> float:
    return time.time() * 1000.0


class RateLimiter:
    """At most ``max_per_window`` recorded requests per window.

    The window resets lazily: only an ``allow()`` call made after expiry moves
    ``window_start``. ``allow()`` never counts; the caller that actually issues
    the remote request calls ``record_request()``.
    """

    def __init__(
        self,
        max_per_window: int = MAX_PER_WINDOW,
        window_duration_ms: int = WINDOW_DURATION_MS,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        if max_per_window <= 0:
            raise ValueError(f"max_per_window must be positive, got {max_per_window}")
        if window_duration_ms <= 0:
            raise ValueError(f"window_duration_ms must be positive, got {window_duration_ms}")
        self.max_per_window = max_per_window
        self.window_duration_ms = window_duration_ms
        self._clock = clock
        self.window_start = clock()
        self.request_count = 0

    def allow(self) -> bool:
        now = self._clock()
        if now - self.window_start > self.window_duration_ms:
            self.request_count = 0
            self.window_start = now
        allowed = self.request_count < self.max_per_window
        if not allowed:
            log.debug("Rate limiter closed: %d/%d, resets in %.0fms",
                      self.request_count, self.max_per_window, self.reset_in_ms())
        return allowed

    def record_request(self) -> None:
        self.request_count += 1

    def remaining(self) -> int:
        if self._clock() - self.window_start > self.window_duration_ms:
            return self.max_per_window
        return max(0, self.max_per_window - self.request_count)

    def reset_in_ms(self) -> float:
        return max(0.0, self.window_start + self.window_duration_ms - self._clock())

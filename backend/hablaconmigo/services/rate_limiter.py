"""Fixed-window per-caller rate limiter, injected into routes as a dependency."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Window:
    started_at: float
    count: int


class RateLimiter:
    """
    Allows ``max_requests`` per caller in each ``window_seconds`` window.

    Expired windows are dropped on every ``allow()`` call, so state only
    holds callers seen within the last window. The clock is injectable for tests.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def _expired(self, window: _Window, now: float) -> bool:
        return now - window.started_at >= self.window_seconds

    def allow(self, caller: str) -> bool:
        now = self._clock()
        with self._lock:
            for key in [k for k, w in self._windows.items() if self._expired(w, now)]:
                del self._windows[key]
            window = self._windows.get(caller)
            if window is None:
                self._windows[caller] = _Window(started_at=now, count=1)
                return True
            if window.count >= self.max_requests:
                return False
            window.count += 1
            return True

    def retry_after(self, caller: str) -> int:
        with self._lock:
            window = self._windows.get(caller)
            if window is None:
                return 0
            remaining = self.window_seconds - (self._clock() - window.started_at)
        return max(0, int(remaining + 0.999))

    def tracked_callers(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

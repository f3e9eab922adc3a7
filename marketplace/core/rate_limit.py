# marketplace/core/rate_limit.py
import threading
import time
from typing import Callable, Optional


class FixedWindowRateLimiter:
    """Per-key request counter over fixed time windows (in-process only)."""

    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def hit(self, key: str) -> bool:
        """Count one request for `key`; False once the window's budget is spent."""

        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count <= self.max_requests

    def _sweep(self, now: float):
        # drop keys whose window has closed
        self._windows = {
            key: window for key, window in self._windows.items() if now - window[0] < self.window_seconds
        }
        self._last_sweep = now

    def retry_after(self, key: str) -> int:
        with self._lock:
            started, _ = self._windows.get(key, (self._clock(), 0))
        return max(0, int(self.window_seconds - (self._clock() - started)))

    def reset(self, key: Optional[str] = None):
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

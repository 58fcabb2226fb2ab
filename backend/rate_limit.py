"""In-process sliding window rate limiter.

Keeps request timestamps per key; anything older than the window is
dropped on the next check for that key, and keys whose window has
emptied are purged at most once per window.
"""

import threading
import time
from collections import deque
from collections.abc import Callable


class SlidingWindowRateLimiter:
    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_purge = clock()

    def check(self, key: str) -> tuple[bool, int, float]:
        """Record an attempt for ``key``.

        Returns:
            (allowed, remaining, retry_after)
            - allowed: whether the attempt is within the limit
            - remaining: attempts left in the current window
            - retry_after: seconds until the oldest attempt leaves the window
        """
        now = self.clock()
        window_start = now - self.window_seconds
        with self._lock:
            if now - self._last_purge >= self.window_seconds:
                self._purge_stale(window_start)
                self._last_purge = now

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()

            if len(hits) >= self.limit:
                retry_after = hits[0] + self.window_seconds - now
                return False, 0, max(retry_after, 0.0)

            hits.append(now)
            remaining = self.limit - len(hits)
            return True, remaining, 0.0

    def _purge_stale(self, window_start: float):
        """Drop keys with no attempt inside the window. Caller must hold self._lock."""
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._hits[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self, key: str | None = None):
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

"""Per-client request limits over a trailing one-minute window."""

import math
import time
from collections import deque
from collections.abc import Callable

WINDOW_SECONDS = 60.0


class SlidingWindowRateLimiter:
    """Keeps a log of admitted request times per key.

    A request is admitted while fewer than ``limit`` earlier requests for the
    same key fall inside the trailing window. Rejected requests are not logged.
    """

    def __init__(self, window: float = WINDOW_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def check(self, key: str, limit: int) -> tuple[bool, dict[str, str]]:
        now = self._clock()
        self._sweep(now)

        hits = self._buckets.setdefault(key, deque())
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

        headers = {"X-RateLimit-Limit": str(limit)}
        if len(hits) >= limit:
            retry_after = max(1, math.ceil(hits[0] + self.window - now)) if hits else 1
            headers["X-RateLimit-Remaining"] = "0"
            headers["Retry-After"] = str(retry_after)
            return False, headers

        hits.append(now)
        headers["X-RateLimit-Remaining"] = str(limit - len(hits))
        return True, headers

    def _sweep(self, now: float) -> None:
        # Drop keys with no request inside the window, at most every few windows
        if now - self._last_sweep < 5 * self.window:
            return
        self._last_sweep = now
        cutoff = now - self.window
        for key in [k for k, hits in self._buckets.items() if not hits or hits[-1] <= cutoff]:
            del self._buckets[key]


rate_limiter = SlidingWindowRateLimiter()

"""Tests for the sliding-window limiter (core/rate_limiter.py) with a fake clock."""

from sosiol.core.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 500.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_admits_up_to_limit():
    limiter = SlidingWindowRateLimiter(clock=FakeClock())
    results = [limiter.check("ip:1.2.3.4", 3)[0] for _ in range(4)]
    assert results == [True, True, True, False]


def test_keys_are_independent():
    limiter = SlidingWindowRateLimiter(clock=FakeClock())
    assert limiter.check("ip:1.2.3.4", 1)[0] is True
    assert limiter.check("ip:1.2.3.4", 1)[0] is False
    assert limiter.check("ip:5.6.7.8", 1)[0] is True


def test_capacity_returns_as_requests_age_out():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(window=60, clock=clock)
    limiter.check("k", 2)
    clock.now += 30
    limiter.check("k", 2)
    assert limiter.check("k", 2)[0] is False

    # First request leaves the window; the second is still inside it
    clock.now += 30.5
    assert limiter.check("k", 2)[0] is True
    assert limiter.check("k", 2)[0] is False


def test_rejection_headers():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(window=60, clock=clock)
    allowed, headers = limiter.check("k", 1)
    assert allowed
    assert headers == {"X-RateLimit-Limit": "1", "X-RateLimit-Remaining": "0"}

    clock.now += 20
    allowed, headers = limiter.check("k", 1)
    assert not allowed
    assert headers["Retry-After"] == "40"
    assert headers["X-RateLimit-Remaining"] == "0"


def test_rejected_requests_do_not_extend_the_window():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(window=60, clock=clock)
    limiter.check("k", 1)
    for _ in range(5):
        clock.now += 10
        limiter.check("k", 1)
    clock.now += 10.5
    assert limiter.check("k", 1)[0] is True


def test_idle_keys_are_swept():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(window=60, clock=clock)
    limiter.check("idle", 5)
    clock.now += 301
    limiter.check("active", 5)
    assert "idle" not in limiter._buckets
    assert "active" in limiter._buckets

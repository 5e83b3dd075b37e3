"""Unit tests for the fixed-window rate limiter."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from t101.config import RateLimitRule
from t101.server.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    def test_allows_up_to_max_then_blocks(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=60_000, max_requests=3), clock=clock)

        results = [limiter.check("key") for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_blocked_result_has_retry_after(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=60_000, max_requests=1), clock=clock)
        limiter.check("key")
        clock.now += 20

        result = limiter.check("key")

        assert not result.allowed
        assert result.retry_after == 40
        assert result.headers()["Retry-After"] == "40"
        assert result.headers()["X-RateLimit-Limit"] == "1"

    def test_allowed_result_has_no_retry_after_header(self) -> None:
        limiter = RateLimiter(RateLimitRule(window_ms=60_000, max_requests=5), clock=FakeClock())

        assert "Retry-After" not in limiter.check("key").headers()

    def test_next_window_resets_count(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=1_000, max_requests=1), clock=clock)
        limiter.check("key")
        assert not limiter.check("key").allowed

        clock.now += 1.001

        assert limiter.check("key").allowed

    def test_window_boundary_still_counts(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=1_000, max_requests=1), clock=clock)
        limiter.check("key")

        clock.now += 1.0

        assert not limiter.check("key").allowed

    def test_keys_are_independent(self) -> None:
        limiter = RateLimiter(RateLimitRule(window_ms=60_000, max_requests=1), clock=FakeClock())

        assert limiter.check("alice").allowed
        assert limiter.check("bob").allowed
        assert not limiter.check("alice").allowed

    def test_purge_drops_expired_entries(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=1_000, max_requests=5), clock=clock)
        limiter.check("old")
        clock.now += 2
        limiter.check("new")

        assert limiter.purge() == 1
        assert len(limiter) == 1

    def test_purge_runs_periodically_during_checks(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(RateLimitRule(window_ms=1_000, max_requests=5), clock=clock)
        limiter.check("stale")
        clock.now += 120

        limiter.check("fresh")

        assert len(limiter) == 1

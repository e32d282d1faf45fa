"""Tests for the fixed-window contact rate limiter."""

import threading

import pytest

from services.rate_limit_service import FixedWindowRateLimiter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(max_requests=3, window_seconds=900, clock=clock)


class TestAdmit:
    """Tests for admission within and across windows."""

    def test_admits_up_to_limit_then_rejects(self, limiter) -> None:
        """Three requests pass, the fourth in the same window is rejected."""
        assert [limiter.admit("1.2.3.4") for _ in range(4)] == [True, True, True, False]

    def test_rejection_does_not_change_count(self, limiter, clock) -> None:
        """Rejected requests neither count nor extend the window."""
        for _ in range(3):
            limiter.admit("1.2.3.4")
        for _ in range(5):
            assert limiter.admit("1.2.3.4") is False

        clock.advance(901)
        assert limiter.admit("1.2.3.4") is True
        assert limiter.remaining("1.2.3.4") == 2

    def test_window_reset_after_elapsed(self, limiter, clock) -> None:
        """After the window fully elapses, the key starts over at count 1."""
        for _ in range(3):
            limiter.admit("1.2.3.4")

        clock.advance(900)
        assert limiter.admit("1.2.3.4") is False  # exactly at the edge: still same window

        clock.advance(1)
        assert limiter.admit("1.2.3.4") is True
        assert limiter.remaining("1.2.3.4") == 2

    def test_keys_are_independent(self, limiter) -> None:
        """One exhausted key does not affect another."""
        for _ in range(3):
            limiter.admit("1.2.3.4")
        assert limiter.admit("5.6.7.8") is True

    def test_boundary_burst_allowed(self, limiter, clock) -> None:
        """Fixed windows allow up to twice the limit across an edge."""
        clock.advance(1)
        limiter.admit("1.2.3.4")  # window starts here
        clock.advance(899)
        assert limiter.admit("1.2.3.4") and limiter.admit("1.2.3.4")
        clock.advance(2)
        assert all(limiter.admit("1.2.3.4") for _ in range(3))

    def test_concurrent_admissions_never_exceed_limit(self) -> None:
        """Parallel admits for one key admit exactly max_requests."""
        limiter = FixedWindowRateLimiter(max_requests=50, window_seconds=900)
        results: list[bool] = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(20):
                admitted = limiter.admit("shared")
                with lock:
                    results.append(admitted)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 50


class TestRemaining:
    """Tests for remaining()."""

    def test_unknown_key_has_full_allowance(self, limiter) -> None:
        """A key never seen has the full limit."""
        assert limiter.remaining("1.2.3.4") == 3

    def test_counts_down(self, limiter) -> None:
        """Each admission reduces the remaining count."""
        limiter.admit("1.2.3.4")
        assert limiter.remaining("1.2.3.4") == 2
        limiter.admit("1.2.3.4")
        limiter.admit("1.2.3.4")
        assert limiter.remaining("1.2.3.4") == 0

    def test_does_not_create_records(self, limiter) -> None:
        """Reading the remaining count has no side effect."""
        limiter.remaining("1.2.3.4")
        assert len(limiter) == 0


class TestSweep:
    """Tests for sweep() and reset()."""

    def test_removes_only_expired_records(self, limiter, clock) -> None:
        """Expired windows are dropped, live ones kept."""
        limiter.admit("old")
        clock.advance(600)
        limiter.admit("new")
        clock.advance(301)

        assert limiter.sweep() == 1
        assert len(limiter) == 1
        assert limiter.remaining("new") == 2

    def test_sweep_does_not_change_admission(self, limiter, clock) -> None:
        """Admission results are the same with or without a sweep."""
        for _ in range(3):
            limiter.admit("1.2.3.4")
        clock.advance(100)
        assert limiter.sweep() == 0
        assert limiter.admit("1.2.3.4") is False

    def test_reset_one_key_or_all(self, limiter) -> None:
        """reset() forgets one key or every key."""
        limiter.admit("a")
        limiter.admit("b")
        limiter.reset("a")
        assert len(limiter) == 1
        limiter.reset()
        assert len(limiter) == 0

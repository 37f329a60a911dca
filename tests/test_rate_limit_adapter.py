"""Unit tests for the in-memory fixed-window rate limiter."""

import threading
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter, InMemoryRateLimitStore


def test_allows_budget_then_rejects_within_window() -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    decisions = [limiter.check_limit("k") for _ in range(4)]

    assert decisions == [True, True, True, False]


def test_allowed_result_metadata() -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    first = limiter.consume("k")
    assert first.allowed is True
    assert first.limit == 3
    assert first.remaining == 2
    assert first.reset_at == 1060
    assert first.retry_after_seconds is None


def test_blocked_result_metadata() -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    limiter.consume("k")
    clock.return_value = 1015.0
    blocked = limiter.consume("k")

    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.reset_at == 1060
    assert blocked.retry_after_seconds == 45


def test_rejected_requests_still_count() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = FixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock, store=store)

    for _ in range(5):
        limiter.consume("k")

    entry = store.get("k")
    assert entry is not None
    assert entry.count == 5


def test_window_starts_on_first_request_and_resets_after_expiry() -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.check_limit("k") is True
    assert limiter.check_limit("k") is False

    clock.return_value = 1009.9
    assert limiter.check_limit("k") is False

    clock.return_value = 1010.0
    assert limiter.check_limit("k") is True


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.check_limit("k1") is True
    assert limiter.check_limit("k1") is False

    assert limiter.check_limit("k2") is True


def test_block_period_applies_from_crossing_request(clock) -> None:
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=10, block_seconds=100, clock=clock)

    assert limiter.check_limit("k") is True

    clock.advance(1)
    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 100

    # Further rejected attempts do not push the block further out
    clock.advance(49)
    again = limiter.consume("k")
    assert again.allowed is False
    assert again.retry_after_seconds == 51

    clock.advance(51)
    assert limiter.check_limit("k") is True


def test_reset_forgets_key() -> None:
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60, clock=Mock(return_value=1000.0))

    assert limiter.check_limit("k") is True
    assert limiter.check_limit("k") is False

    limiter.reset("k")
    assert limiter.check_limit("k") is True


def test_sweep_removes_expired_entries(clock) -> None:
    store = InMemoryRateLimitStore()
    limiter = FixedWindowRateLimiter(limit=5, window_seconds=10, clock=clock, store=store)
    limiter.consume("a")
    limiter.consume("b")

    clock.advance(5)
    assert limiter.sweep() == 0

    clock.advance(6)
    assert limiter.sweep() == 2
    assert len(store) == 0


def test_periodic_sweep_runs_during_consume(clock) -> None:
    store = InMemoryRateLimitStore()
    limiter = FixedWindowRateLimiter(
        limit=5, window_seconds=10, clock=clock, store=store, sweep_interval_seconds=5
    )
    limiter.consume("abandoned")

    clock.advance(20)
    limiter.consume("fresh")

    assert store.get("abandoned") is None
    assert len(store) == 1


def test_store_evicts_least_recently_used() -> None:
    store = InMemoryRateLimitStore(max_entries=2)
    limiter = FixedWindowRateLimiter(
        limit=5, window_seconds=60, clock=Mock(return_value=1000.0), store=store
    )

    limiter.consume("a")
    limiter.consume("b")
    limiter.consume("a")  # "b" becomes least recently used
    limiter.consume("c")

    assert len(store) == 2
    assert store.get("b") is None
    assert store.get("a") is not None
    assert store.evictions == 1


def test_concurrent_consumers_never_exceed_budget() -> None:
    limiter = FixedWindowRateLimiter(limit=50, window_seconds=600)
    allowed: list[bool] = []
    lock = threading.Lock()

    def _worker() -> None:
        decision = limiter.check_limit("shared")
        with lock:
            allowed.append(decision)

    threads = [threading.Thread(target=_worker) for _ in range(120)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert allowed.count(True) == 50
    assert allowed.count(False) == 70


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "block_seconds": -1},
        {"limit": 1, "window_seconds": 60, "sweep_interval_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(**kwargs)


def test_invalid_store_capacity() -> None:
    with pytest.raises(ValueError):
        InMemoryRateLimitStore(max_entries=0)


def test_invalid_consume_args() -> None:
    limiter = FixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.consume("")

    with pytest.raises(ValueError):
        limiter.consume("k", cost=0)

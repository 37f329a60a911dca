"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: the read-increment-compare sequence runs under a lock.
- Memory is bounded by ``max_entries`` on the store (LRU) and by periodic
  sweeps of expired windows.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitEntry,
    RateLimitResult,
)

logger = logging.getLogger(__name__)


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Process-local entry storage with optional LRU bound.

    Attributes:
        max_entries: Maximum number of tracked keys (None for unlimited).
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def evictions(self) -> int:
        return self._evictions

    def get(self, key: str) -> RateLimitEntry | None:
        entry = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)  # mark as recently used
        return entry

    def set(self, key: str, entry: RateLimitEntry) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        self._evict_if_over_capacity()

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def sweep(self, now: float) -> int:
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict_if_over_capacity(self) -> None:
        if self._max_entries is None:
            return

        while len(self._entries) > self._max_entries:
            # popitem(last=False) removes the least recently used entry
            self._entries.popitem(last=False)
            self._evictions += 1


class FixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A key's window opens on its first request and lasts ``window_seconds``.
    Every call inside the window adds to the count, including calls that are
    rejected, so a client hammering past its budget never sneaks extra
    requests through. Once the window lapses the next call starts a fresh one.

    With ``block_seconds`` set, the request that first exceeds the budget
    keeps the key rejected for at least that long from that moment.

    Important:
        The default store is per-process only. If the API runs with multiple
        workers, each worker enforces its own independent limits unless a
        shared store is injected.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        block_seconds: int = 0,
        store: AbstractRateLimitStore | None = None,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: int | None = None,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            block_seconds: Minimum rejection period after the budget is exceeded.
            store: Entry storage; defaults to an unbounded in-memory store.
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Minimum seconds between opportunistic
                sweeps of expired entries during ``consume`` (None disables).

        Raises:
            ValueError: If any numeric argument is out of range.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if block_seconds < 0:
            raise ValueError("block_seconds must be >= 0")
        if sweep_interval_seconds is not None and sweep_interval_seconds < 1:
            raise ValueError("sweep_interval_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._block_seconds = block_seconds
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._last_sweep = clock()
        self._lock = threading.RLock()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"FixedWindowRateLimiter(limit={self._limit}, window_seconds={self._window_seconds}, "
            f"block_seconds={self._block_seconds}, tracked={len(self._store)})"
        )

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def store(self) -> AbstractRateLimitStore:
        return self._store

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Args:
            key: Unique identifier for rate limiting.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            self._maybe_sweep(now)

            entry = self._store.get(key)
            if entry is None or entry.is_expired(now):
                entry = RateLimitEntry(count=0, expires_at=now + self._window_seconds)

            entry.count += cost

            if entry.count <= self._limit:
                self._store.set(key, entry)
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - entry.count,
                    reset_at=int(math.ceil(entry.expires_at)),
                    retry_after_seconds=None,
                )

            # Block only on the request that crosses the budget, not on every retry
            if self._block_seconds and entry.count - cost <= self._limit:
                entry.expires_at = max(entry.expires_at, now + self._block_seconds)
            self._store.set(key, entry)

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=0,
                reset_at=int(math.ceil(entry.expires_at)),
                retry_after_seconds=max(0, int(math.ceil(entry.expires_at - now))),
            )

    def reset(self, key: str) -> None:
        with self._lock:
            self._store.delete(key)

    def sweep(self) -> int:
        """Remove expired entries now; return how many were dropped."""
        with self._lock:
            now = self._clock()
            self._last_sweep = now
            return self._sweep_locked(now)

    def _maybe_sweep(self, now: float) -> None:
        if self._sweep_interval is None or now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        removed = self._store.sweep(now)
        if removed:
            logger.debug(
                "rate_limit.sweep",
                extra={"removed": removed, "tracked": len(self._store)},
            )
        return removed

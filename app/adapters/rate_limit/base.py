"""Rate limiter interfaces.

The HTTP layer depends on ``AbstractRateLimiter`` only. Limiters in turn keep
their per-key state in an ``AbstractRateLimitStore`` so the in-memory mapping
can be replaced by a shared store when the API runs as several processes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max units per window.
        remaining: Remaining units in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


@dataclass
class RateLimitEntry:
    """Mutable per-key window state.

    Attributes:
        count: Units consumed in the current window, rejected ones included.
        expires_at: UNIX epoch seconds at which the count resets.
    """

    count: int
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class AbstractRateLimitStore(ABC):
    """Key -> ``RateLimitEntry`` storage used by limiters.

    Implementations need not be thread-safe; limiters serialize access.
    """

    @abstractmethod
    def get(self, key: str) -> RateLimitEntry | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, entry: RateLimitEntry) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""
        raise NotImplementedError

    @abstractmethod
    def sweep(self, now: float) -> int:
        """Drop entries expired at ``now``; return how many were removed."""
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique identifier (e.g., client IP, operation + e-mail).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget all consumed budget for ``key``."""
        raise NotImplementedError

    def check_limit(self, key: str) -> bool:
        """Consume one unit and answer allow (True) or throttle (False)."""
        return self.consume(key).allowed

"""Rate limiting adapters.

The service starts with a process-local fixed-window limiter; the store and
limiter abstractions let a shared backend replace it without touching the
API layer.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitEntry,
    RateLimitResult,
)
from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter, InMemoryRateLimitStore

__all__ = [
    "AbstractRateLimiter",
    "AbstractRateLimitStore",
    "FixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "RateLimitEntry",
    "RateLimitResult",
]

"""Per-operation throttles for sensitive account actions.

Each operation gets its own fixed-window limiter with a block period, keyed
by ``"{operation}:{identifier}"`` (identifier is usually the e-mail). A
rejection produces a user-facing message and a security log event.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter
from app.core.errors import ValidationAppError
from app.core.logging import SECURITY_LOGGER_NAME, hash_identifier

logger = logging.getLogger(__name__)
security_logger = logging.getLogger(SECURITY_LOGGER_NAME)


@dataclass(frozen=True)
class OperationPolicy:
    """Budget for one operation.

    Attributes:
        label: Human wording used in the rejection message.
        points: Attempts allowed per window.
        window_seconds: Window length.
        block_seconds: Rejection period once the budget is exceeded.
    """

    label: str
    points: int
    window_seconds: int
    block_seconds: int


DEFAULT_POLICIES: Mapping[str, OperationPolicy] = MappingProxyType(
    {
        "login": OperationPolicy("login", points=5, window_seconds=15 * 60, block_seconds=15 * 60),
        "register": OperationPolicy(
            "registration", points=3, window_seconds=60 * 60, block_seconds=60 * 60
        ),
        "password_reset": OperationPolicy(
            "password reset", points=3, window_seconds=60 * 60, block_seconds=60 * 60
        ),
        "password_change": OperationPolicy(
            "password change", points=5, window_seconds=60 * 60, block_seconds=60 * 60
        ),
    }
)


@dataclass(frozen=True)
class OperationLimitResult:
    allowed: bool
    error: str | None = None
    retry_after_ms: int | None = None


class OperationThrottle:
    """Registry of limiters, one per sensitive operation."""

    def __init__(
        self,
        policies: Mapping[str, OperationPolicy] = DEFAULT_POLICIES,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._policies = dict(policies)
        self._limiters: dict[str, AbstractRateLimiter] = {
            name: FixedWindowRateLimiter(
                limit=policy.points,
                window_seconds=policy.window_seconds,
                block_seconds=policy.block_seconds,
                clock=clock,
            )
            for name, policy in self._policies.items()
        }

    @property
    def operations(self) -> tuple[str, ...]:
        return tuple(self._policies)

    def _limiter_for(self, operation: str) -> AbstractRateLimiter:
        try:
            return self._limiters[operation]
        except KeyError:
            raise ValidationAppError(
                code="unknown_operation",
                message=f"No throttle configured for operation {operation!r}",
                details={"operation": operation},
            ) from None

    def check(self, operation: str, identifier: str) -> OperationLimitResult:
        """Consume one attempt of ``operation`` for ``identifier``.

        Raises:
            ValidationAppError: If the operation is not configured.
        """

        limiter = self._limiter_for(operation)
        result = limiter.consume(f"{operation}:{identifier}")
        if result.allowed:
            return OperationLimitResult(allowed=True)

        retry_after_s = result.retry_after_seconds or 0
        minutes = max(1, math.ceil(retry_after_s / 60))
        label = self._policies[operation].label

        security_logger.warning(
            "security.suspicious_activity",
            extra={
                "event": "RATE_LIMITED",
                "operation": operation,
                "identifier_hash": hash_identifier(identifier),
                "retry_after_s": retry_after_s,
                "success": False,
            },
        )

        return OperationLimitResult(
            allowed=False,
            error=f"Too many {label} attempts. Please try again in {minutes} minute(s).",
            retry_after_ms=retry_after_s * 1000,
        )

    def reset(self, operation: str, identifier: str) -> None:
        """Clear the attempts of ``identifier`` (e.g., after a successful login)."""

        self._limiter_for(operation).reset(f"{operation}:{identifier}")
        logger.debug(
            "operation_limit.reset",
            extra={"operation": operation, "identifier_hash": hash_identifier(identifier)},
        )

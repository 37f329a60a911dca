"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

- The limiter is built once by the app factory (``build_rate_limiter``) and
  kept on ``app.state.rate_limiter``; routes reach it through the request.
- Clients are bucketed by IP as reported by the proxy headers. Requests
  without any identifying header all share the ``"unknown"`` bucket.
- A throttled request raises ``RateLimitAppError``, rendered as HTTP 429 by
  the global exception handlers.
"""

from __future__ import annotations

import logging
from typing import Mapping

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import FixedWindowRateLimiter, InMemoryRateLimitStore
from app.core.config import AppSettings, settings
from app.core.errors import RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
FORWARDED_FOR_HEADER = "x-forwarded-for"
REAL_IP_HEADER = "x-real-ip"


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Build the per-client limiter from configuration.

    Args:
        app_settings: Settings to read; defaults to the global settings.

    Returns:
        AbstractRateLimiter: A fresh limiter with its own store.
    """

    cfg = app_settings or settings.app
    return FixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
        block_seconds=cfg.rate_limit_block_seconds,
        store=InMemoryRateLimitStore(max_entries=cfg.rate_limit_max_entries),
        sweep_interval_seconds=cfg.rate_limit_sweep_interval_seconds,
    )


def client_key_from_headers(headers: Mapping[str, str]) -> str:
    """Derive the limiter key for a request from its headers.

    Prefers the first address of ``X-Forwarded-For``, then ``X-Real-IP``.

    Args:
        headers: Request headers. Starlette headers are case-insensitive;
            plain dicts are expected to use lowercase names.

    Returns:
        str: Client identifier, or ``"unknown"`` when neither header is usable.

    Examples:
        >>> client_key_from_headers({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        '203.0.113.7'
        >>> client_key_from_headers({})
        'unknown'
    """

    forwarded = (headers.get(FORWARDED_FOR_HEADER) or "").split(",")[0].strip()
    if forwarded:
        return forwarded

    real_ip = (headers.get(REAL_IP_HEADER) or "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT


def get_app_settings(request: Request) -> AppSettings:
    """Return the settings the running application was built with.

    Apps assembled without the factory fall back to the global settings.
    """

    return getattr(request.app.state, "app_settings", None) or settings.app


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter attached to the running application.

    Falls back to building one on first use when the app was assembled
    without the factory (e.g., a bare FastAPI app in tests).
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        limiter = build_rate_limiter(get_app_settings(request))
        request.app.state.rate_limiter = limiter
    return limiter


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency enforcing the per-client request budget.

    Declared sync so FastAPI runs it in the threadpool; the limiter's lock
    keeps concurrent requests for one client consistent.

    Raises:
        RateLimitAppError: When the client exceeded its budget (HTTP 429).
    """

    cfg = get_app_settings(request)
    if not cfg.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    client_key = client_key_from_headers(request.headers)
    key_hash = hash_identifier(client_key)
    anonymous = client_key == UNKNOWN_CLIENT

    result = limiter.consume(client_key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "anonymous": anonymous,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "anonymous": anonymous,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": cfg.rate_limit_window_seconds,
            "retry_after_s": retry_after,
            "request_path": request.url.path,
        },
    )

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded. Try again later.",
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": retry_after,
        },
    )

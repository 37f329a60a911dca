"""Application factory for the FastAPI app.

Builds long-lived collaborators once (page title resolver, request rate
limiter, operation throttles) and hands them to routes through ``app.state``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes import health_router, navigation_router, operations_router
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter
from app.services.operation_limits import OperationThrottle
from app.services.page_titles import RouteTitleResolver

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build from; defaults to the global settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        RouteTableAppError: If the page tables are misordered and the
            navigation ambiguity policy is ``fail``.
    """
    cfg = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Interview Portal Navigation API",
        description=(
            "Resolves page titles and breadcrumb trails for portal paths and "
            "throttles clients with a per-IP fixed-window rate limit."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.title_resolver = RouteTitleResolver(
        admin_marker=cfg.navigation.admin_marker,
        ambiguity_policy=cfg.navigation.ambiguity_policy,
    )
    app.state.app_settings = cfg.app
    app.state.rate_limiter = build_rate_limiter(cfg.app)
    app.state.operation_throttle = OperationThrottle()

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(navigation_router, prefix="/v1")
    app.include_router(operations_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": cfg.app_env,
            "rate_limit_enabled": cfg.app.rate_limit_enabled,
            "rate_limit_requests": cfg.app.rate_limit_requests,
            "rate_limit_window_s": cfg.app.rate_limit_window_seconds,
        },
    )

    return app

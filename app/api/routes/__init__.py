from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.navigation import router as navigation_router
from app.api.routes.operations import router as operations_router

__all__ = ["health_router", "navigation_router", "operations_router"]

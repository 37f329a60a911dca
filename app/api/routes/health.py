from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str = "ok"


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness probe for load balancers; never rate limited."""

    return HealthResponse()

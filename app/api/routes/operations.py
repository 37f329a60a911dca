from fastapi import APIRouter, Depends, Path, Request

from app.core.errors import RateLimitAppError
from app.core.rate_limit import enforce_rate_limit
from app.schemas.operations import (
    OperationAttemptRequest,
    OperationAttemptResponse,
    OperationResetResponse,
)
from app.services.operation_limits import OperationThrottle

router = APIRouter(tags=["Operations"], dependencies=[Depends(enforce_rate_limit)])

OperationName = Path(..., description="login, register, password_reset or password_change")


def get_operation_throttle(request: Request) -> OperationThrottle:
    """Return the throttle built at startup, building one if absent."""
    throttle = getattr(request.app.state, "operation_throttle", None)
    if throttle is None:
        throttle = OperationThrottle()
        request.app.state.operation_throttle = throttle
    return throttle


@router.post("/operations/{operation}/attempts", response_model=OperationAttemptResponse)
def record_attempt(
    payload: OperationAttemptRequest,
    operation: str = OperationName,
    throttle: OperationThrottle = Depends(get_operation_throttle),
) -> OperationAttemptResponse:
    """Count one attempt of a sensitive operation for an identifier.

    Called before running the operation itself; a 429 means the caller must
    not proceed.
    """
    result = throttle.check(operation, payload.identifier)
    if not result.allowed:
        raise RateLimitAppError(
            code="operation_rate_limited",
            message=result.error or "Too many attempts. Please try again later.",
            details={
                "operation": operation,
                "retry_after": (result.retry_after_ms or 0) // 1000,
            },
        )
    return OperationAttemptResponse(operation=operation)


@router.post("/operations/{operation}/reset", response_model=OperationResetResponse)
def reset_attempts(
    payload: OperationAttemptRequest,
    operation: str = OperationName,
    throttle: OperationThrottle = Depends(get_operation_throttle),
) -> OperationResetResponse:
    """Forget the attempts of an identifier, e.g. after a successful login."""
    throttle.reset(operation, payload.identifier)
    return OperationResetResponse(operation=operation)

"""Pydantic schemas for sensitive-operation attempt tracking."""

from __future__ import annotations

from pydantic import BaseModel, Field


class OperationAttemptRequest(BaseModel):
    identifier: str = Field(
        ...,
        min_length=1,
        max_length=320,
        description="Who is attempting the operation, usually the account e-mail.",
    )


class OperationAttemptResponse(BaseModel):
    operation: str
    allowed: bool = True


class OperationResetResponse(BaseModel):
    operation: str
    reset: bool = True

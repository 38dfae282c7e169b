# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field, field_validator


class BalanceSummaryResponse(BaseModel):
    """Current-year balance breakdown. available = accrued + adjusted - used."""

    user_id: uuid.UUID
    year: int
    accrued: float
    adjusted: float
    used: int
    available: float


class AdjustBalancePayload(BaseModel):
    """Request body for an admin balance adjustment."""

    amount: float = Field(
        allow_inf_nan=False,
        description="Signed number of days: positive to grant, negative to deduct",
    )
    reason: str = Field(min_length=1, max_length=500)

    @field_validator("reason")
    @classmethod
    def _strip_reason(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "Reason is required"
            raise ValueError(msg)
        return value


class BalanceResponse(BaseModel):
    """Stored balance row after an adjustment."""

    user_id: uuid.UUID
    year: int
    adjusted: float

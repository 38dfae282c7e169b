# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from vacationdesk.models.enums import VacationStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateVacationPayload(BaseModel):
    """Request body for a new vacation request. Both dates are inclusive."""

    start_date: date
    end_date: date
    comment: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.start_date > self.end_date:
            msg = "Start date must be before end date"
            raise ValueError(msg)
        return self


class TransitionPayload(BaseModel):
    """Request body for moving a vacation request to a new status."""

    status: VacationStatus
    rejection_reason: str | None = Field(default=None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class VacationResponse(BaseModel):
    """Response schema for a single vacation request."""

    id: uuid.UUID
    user_id: uuid.UUID
    start_date: date
    end_date: date
    days: int
    comment: str | None
    status: VacationStatus
    rejection_reason: str | None
    approved_by_id: uuid.UUID | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class VacationListResponse(BaseModel):
    """List of vacation requests, newest first."""

    items: list[VacationResponse]
    total: int

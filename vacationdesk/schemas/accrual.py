from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class MonthlyAccrualResponse(BaseModel):
    """Response from the monthly accrual trigger."""

    target_date: date
    rollover_ran: bool
    processed: int
    accrued: int
    skipped: int
    errors: int


class RolloverRunResponse(BaseModel):
    """Response from the year rollover trigger."""

    year: int
    processed: int
    carried: int
    skipped: int
    errors: int

# ruff: noqa: B008, TC001, TC003
"""API endpoints for the scheduled accrual job and the explicit year rollover."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from vacationdesk.api.deps import AdminDep, verify_cron_secret
from vacationdesk.db import SessionDep
from vacationdesk.schemas.accrual import MonthlyAccrualResponse, RolloverRunResponse
from vacationdesk.services.accrual import process_monthly_accrual, process_year_rollover

# ---------------------------------------------------------------------------
# Scheduler trigger: POST /cron/monthly-accrual
# ---------------------------------------------------------------------------

cron_router = APIRouter(
    prefix="/cron",
    tags=["accruals"],
    dependencies=[Depends(verify_cron_secret)],
)


@cron_router.post("/monthly-accrual", response_model=MonthlyAccrualResponse)
async def monthly_accrual(
    session: SessionDep,
) -> MonthlyAccrualResponse:
    """Run the monthly accrual (and the January rollover).

    Called by an external scheduler; safe to call more than once a month.
    """
    result = await process_monthly_accrual(session)
    return MonthlyAccrualResponse(
        target_date=result.target_date,
        rollover_ran=result.rollover_ran,
        processed=result.processed,
        accrued=result.accrued,
        skipped=result.skipped,
        errors=result.errors,
    )


# ---------------------------------------------------------------------------
# Admin trigger: POST /accruals/rollover
# ---------------------------------------------------------------------------

accrual_admin_router = APIRouter(
    prefix="/accruals",
    tags=["accruals"],
)


@accrual_admin_router.post("/rollover", response_model=RolloverRunResponse)
async def rollover(
    session: SessionDep,
    auth: AdminDep,
    target_year: int | None = Query(default=None, ge=1900, le=9999),
) -> RolloverRunResponse:
    """Carry unused days into ``target_year`` (admin only). Users already rolled over are skipped."""
    result = await process_year_rollover(session, target_year)
    return RolloverRunResponse(
        year=result.year,
        processed=result.processed,
        carried=result.carried,
        skipped=result.skipped,
        errors=result.errors,
    )

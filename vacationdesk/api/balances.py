# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from vacationdesk.api.deps import AdminDep, AuthDep
from vacationdesk.db import SessionDep
from vacationdesk.schemas.balance import AdjustBalancePayload, BalanceResponse, BalanceSummaryResponse
from vacationdesk.services import accrual as accrual_service
from vacationdesk.services import balance as balance_service

balances_router = APIRouter(
    prefix="/balances",
    tags=["balances"],
)


@balances_router.get("/{user_id}", response_model=BalanceSummaryResponse)
async def get_balance(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceSummaryResponse:
    """Current-year balance for a user (self, their manager, or an admin)."""
    return await accrual_service.get_balance_summary(session, auth, user_id)


@balances_router.patch("/{user_id}", response_model=BalanceResponse)
async def adjust_balance(
    user_id: uuid.UUID,
    payload: AdjustBalancePayload,
    session: SessionDep,
    auth: AdminDep,
) -> BalanceResponse:
    """Apply a signed manual adjustment to the current year (admin only)."""
    return await balance_service.adjust_balance(session, auth, user_id, payload)

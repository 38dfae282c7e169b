# ruff: noqa: TC003
"""Balance store: per-user yearly adjustments and the used-days query."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacationdesk.exceptions import NotFoundError
from vacationdesk.models.balance import VacationBalance
from vacationdesk.models.enums import USED_STATUSES, AuditAction, AuditEntityType
from vacationdesk.models.request import VacationRequest
from vacationdesk.models.user import User
from vacationdesk.schemas.balance import BalanceResponse
from vacationdesk.services.audit import model_to_audit_dict, write_audit_log

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext
    from vacationdesk.schemas.balance import AdjustBalancePayload

logger = logging.getLogger(__name__)

DAY_PRECISION = 6


def round_days(value: float) -> float:
    """Round a day quantity so repeated 20/12 additions compare cleanly."""
    return round(value, DAY_PRECISION)


def _balance_query(user_id: uuid.UUID, year: int, *, for_update: bool = False) -> Select[tuple[VacationBalance]]:
    query = select(VacationBalance).where(
        col(VacationBalance.user_id) == user_id,
        col(VacationBalance.year) == year,
    )
    if for_update:
        query = query.with_for_update()
    return query


async def get_or_create_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    *,
    for_update: bool = False,
) -> VacationBalance:
    """Return the (user, year) balance row, creating it with adjusted=0 if absent.

    The insert runs in a SAVEPOINT. A unique violation means a concurrent
    caller created the row first, so the row is re-read instead of failing.
    """
    result = await session.execute(_balance_query(user_id, year, for_update=for_update))
    balance = result.scalar_one_or_none()
    if balance is not None:
        return balance

    balance = VacationBalance(user_id=user_id, year=year, adjusted=0.0)
    try:
        async with session.begin_nested():
            session.add(balance)
            await session.flush()
    except IntegrityError:
        result = await session.execute(_balance_query(user_id, year, for_update=for_update))
        return result.scalar_one()
    return balance


async def get_adjusted_days(session: AsyncSession, user_id: uuid.UUID, year: int) -> float:
    """Read-only lookup of a year's adjustments (0 when no row exists)."""
    result = await session.execute(
        select(col(VacationBalance.adjusted)).where(
            col(VacationBalance.user_id) == user_id,
            col(VacationBalance.year) == year,
        )
    )
    adjusted = result.scalar_one_or_none()
    return float(adjusted) if adjusted is not None else 0.0


async def increment_adjusted(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    amount: float,
) -> VacationBalance:
    """Add ``amount`` to the year's adjusted total under a row lock."""
    balance = await get_or_create_balance(session, user_id, year, for_update=True)
    balance.adjusted = round_days(balance.adjusted + amount)
    await session.flush()
    return balance


async def used_days_in_year(session: AsyncSession, user_id: uuid.UUID, year: int) -> int:
    """Sum of days of APPROVED and CANCELLATION_REQUESTED requests inside ``year``.

    A request counts only when both its start and end dates fall in the year.
    """
    result = await session.execute(
        select(func.coalesce(func.sum(col(VacationRequest.days)), 0)).where(
            col(VacationRequest.user_id) == user_id,
            col(VacationRequest.status).in_([s.value for s in USED_STATUSES]),
            col(VacationRequest.start_date) >= date(year, 1, 1),
            col(VacationRequest.end_date) <= date(year, 12, 31),
        )
    )
    return int(result.scalar_one())


# ---------------------------------------------------------------------------
# Write path: admin adjustments
# ---------------------------------------------------------------------------


async def adjust_balance(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    payload: AdjustBalancePayload,
    *,
    today: date | None = None,
) -> BalanceResponse:
    """Apply an admin adjustment to the current year's balance.

    The increment and its audit entry commit together.
    """
    year = (today or date.today()).year

    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    try:
        balance = await increment_adjusted(session, user_id, year, payload.amount)
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            target_user_id=user_id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.BALANCE_ADJUSTMENT,
            after_json={
                "reason": payload.reason,
                "amount": payload.amount,
                "new_adjusted": balance.adjusted,
                "balance": model_to_audit_dict(balance),
            },
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Balance adjusted admin=%s user=%s amount=%s reason=%r",
        auth.user_id,
        user_id,
        payload.amount,
        payload.reason,
    )
    return BalanceResponse(user_id=balance.user_id, year=balance.year, adjusted=balance.adjusted)

# ruff: noqa: TC003
"""Accrual engine: monthly accrual ledger, available days and year-end carryover."""

from __future__ import annotations

import logging
import uuid
from calendar import monthrange
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacationdesk.exceptions import AuthorizationError, NotFoundError
from vacationdesk.models.enums import AuditAction, AuditEntityType
from vacationdesk.models.ledger import VacationAccrualLog, VacationRolloverLog
from vacationdesk.models.user import User
from vacationdesk.schemas.balance import BalanceSummaryResponse
from vacationdesk.services.audit import SYSTEM_ACTOR, write_audit_log
from vacationdesk.services.authority import get_authority_check
from vacationdesk.services.balance import get_adjusted_days, increment_adjusted, round_days, used_days_in_year
from vacationdesk.services.user import list_employed_users

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext

logger = logging.getLogger(__name__)

ANNUAL_ALLOWANCE_DAYS = 20
MONTHLY_ACCRUAL_RATE = ANNUAL_ALLOWANCE_DAYS / 12
CARRYOVER_LIMIT_DAYS = 5.0

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass
class RolloverRunResult:
    """Summary of a year rollover run."""

    year: int
    processed: int = 0
    carried: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class MonthlyAccrualResult:
    """Summary of a monthly accrual run."""

    target_date: date
    rollover_ran: bool = False
    processed: int = 0
    accrued: int = 0
    skipped: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def _as_date(value: date | datetime) -> date:
    """Truncate datetimes to their calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_vacation_days(start_date: date | datetime, end_date: date | datetime) -> int:
    """Inclusive calendar day count: the same day twice counts as 1."""
    return (_as_date(end_date) - _as_date(start_date)).days + 1


def _iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """Yield (year, month) from the month of ``start`` through the month of ``end``."""
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        yield year, month
        month += 1
        if month > 12:
            year, month = year + 1, 1


def _clamp_carryover(unused_days: float) -> float:
    return round_days(max(0.0, min(unused_days, CARRYOVER_LIMIT_DAYS)))


def _last_day_of_month(value: date) -> date:
    _, days_in_month = monthrange(value.year, value.month)
    return value.replace(day=days_in_month)


# ---------------------------------------------------------------------------
# Accrual ledger
# ---------------------------------------------------------------------------


async def _get_accrual_log(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    month: int,
) -> VacationAccrualLog | None:
    result = await session.execute(
        select(VacationAccrualLog).where(
            col(VacationAccrualLog.user_id) == user_id,
            col(VacationAccrualLog.year) == year,
            col(VacationAccrualLog.month) == month,
        )
    )
    return result.scalar_one_or_none()


async def _ensure_accrual_log(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    month: int,
) -> tuple[VacationAccrualLog, bool]:
    """Return the month's ledger row and whether this call created it.

    The insert runs in a SAVEPOINT; on a unique violation another caller won
    the race and its row is returned instead.
    """
    existing = await _get_accrual_log(session, user_id, year, month)
    if existing is not None:
        return existing, False

    entry = VacationAccrualLog(user_id=user_id, year=year, month=month, days_accrued=MONTHLY_ACCRUAL_RATE)
    try:
        async with session.begin_nested():
            session.add(entry)
            await session.flush()
    except IntegrityError:
        existing = await _get_accrual_log(session, user_id, year, month)
        if existing is None:
            raise
        return existing, False
    return entry, True


async def calculate_accrued_days(
    session: AsyncSession,
    user_id: uuid.UUID,
    target_date: date | datetime | None = None,
) -> float:
    """Total days accrued from the employment month through the month of ``target_date``.

    Months already in the ledger replay their stored value. Missing months are
    written at the current monthly rate, so this is also a lazy backfill; the
    caller owns the commit. Users without an employment date accrue nothing.
    """
    user = await session.get(User, user_id)
    if user is None or user.employment_date is None:
        return 0.0

    target = _as_date(target_date) if target_date is not None else date.today()
    start = user.employment_date
    if (target.year, target.month) < (start.year, start.month):
        return 0.0

    result = await session.execute(
        select(VacationAccrualLog).where(
            col(VacationAccrualLog.user_id) == user_id,
            col(VacationAccrualLog.year) >= start.year,
            col(VacationAccrualLog.year) <= target.year,
        )
    )
    logged = {(entry.year, entry.month): entry.days_accrued for entry in result.scalars().all()}

    total = 0.0
    for year, month in _iter_months(start, target):
        days = logged.get((year, month))
        if days is None:
            entry, _ = await _ensure_accrual_log(session, user_id, year, month)
            days = entry.days_accrued
        total += days
    return round_days(total)


async def get_available_vacation_days(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    today: date | None = None,
) -> float:
    """accrued(today) + adjusted(this year) - used(this year). May be negative."""
    if today is None:
        today = date.today()
    if await session.get(User, user_id) is None:
        raise NotFoundError("User not found")

    accrued = await calculate_accrued_days(session, user_id, today)
    adjusted = await get_adjusted_days(session, user_id, today.year)
    used = await used_days_in_year(session, user_id, today.year)
    return round_days(accrued + adjusted - used)


async def get_balance_summary(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    *,
    today: date | None = None,
) -> BalanceSummaryResponse:
    """Current-year breakdown for a user visible to the caller."""
    if not await get_authority_check()(session, auth, user_id):
        raise AuthorizationError()
    if await session.get(User, user_id) is None:
        raise NotFoundError("User not found")

    if today is None:
        today = date.today()
    accrued = await calculate_accrued_days(session, user_id, today)
    adjusted = await get_adjusted_days(session, user_id, today.year)
    used = await used_days_in_year(session, user_id, today.year)
    # Persist any ledger rows backfilled while computing.
    await session.commit()

    return BalanceSummaryResponse(
        user_id=user_id,
        year=today.year,
        accrued=accrued,
        adjusted=adjusted,
        used=used,
        available=round_days(accrued + adjusted - used),
    )


# ---------------------------------------------------------------------------
# Year rollover
# ---------------------------------------------------------------------------


async def _rollover_user(session: AsyncSession, user: User, target_year: int) -> float | None:
    """Carry the user's unused previous-year days into ``target_year``.

    Returns the carried amount, or None when the rollover was already applied.
    """
    previous_year = target_year - 1
    marker = await session.execute(
        select(VacationRolloverLog.id).where(
            col(VacationRolloverLog.user_id) == user.id,
            col(VacationRolloverLog.year) == target_year,
        )
    )
    if marker.first() is not None:
        return None

    accrued = await calculate_accrued_days(session, user.id, date(previous_year, 12, 31))
    adjusted = await get_adjusted_days(session, user.id, previous_year)
    used = await used_days_in_year(session, user.id, previous_year)
    unused = round_days(accrued + adjusted - used)
    carried = _clamp_carryover(unused)

    session.add(VacationRolloverLog(user_id=user.id, year=target_year, unused_days=unused, carried_days=carried))
    await session.flush()

    if carried > 0:
        balance = await increment_adjusted(session, user.id, target_year, carried)
        await write_audit_log(
            session,
            actor_id=SYSTEM_ACTOR,
            target_user_id=user.id,
            entity_type=AuditEntityType.BALANCE,
            entity_id=balance.id,
            action=AuditAction.BALANCE_ADJUSTMENT,
            after_json={
                "reason": f"Carryover from {previous_year}",
                "amount": carried,
                "unused": unused,
                "new_adjusted": balance.adjusted,
            },
        )
    return carried


async def process_year_rollover(session: AsyncSession, target_year: int | None = None) -> RolloverRunResult:
    """Carry up to CARRYOVER_LIMIT_DAYS of unused previous-year days into ``target_year``.

    Each user is handled in its own SAVEPOINT together with a rollover marker
    row, so re-running for the same year skips users already rolled over.
    """
    if target_year is None:
        target_year = date.today().year

    result = RolloverRunResult(year=target_year)
    users = await list_employed_users(session)

    for user in users:
        result.processed += 1
        try:
            async with session.begin_nested():
                carried = await _rollover_user(session, user, target_year)
        except IntegrityError:
            # Concurrent run inserted the marker first.
            result.skipped += 1
            continue
        except Exception:
            logger.exception("Error processing rollover for user=%s year=%s", user.id, target_year)
            result.errors += 1
            continue

        if carried:
            result.carried += 1
        else:
            result.skipped += 1

    await session.commit()
    logger.info(
        "Year rollover year=%s processed=%s carried=%s skipped=%s errors=%s",
        result.year,
        result.processed,
        result.carried,
        result.skipped,
        result.errors,
    )
    return result


# ---------------------------------------------------------------------------
# Monthly accrual orchestration
# ---------------------------------------------------------------------------


async def process_monthly_accrual(session: AsyncSession, today: date | None = None) -> MonthlyAccrualResult:
    """Ensure every employed user has a ledger row for the current month.

    In January the year rollover runs first. Idempotent per user and month.
    """
    if today is None:
        today = date.today()

    result = MonthlyAccrualResult(target_date=today)
    if today.month == 1:
        await process_year_rollover(session, today.year)
        result.rollover_ran = True

    users = await list_employed_users(session, employed_on_or_before=_last_day_of_month(today))

    for user in users:
        result.processed += 1
        try:
            async with session.begin_nested():
                _, created = await _ensure_accrual_log(session, user.id, today.year, today.month)
        except Exception:
            logger.exception("Error processing monthly accrual for user=%s", user.id)
            result.errors += 1
            continue

        if created:
            result.accrued += 1
        else:
            result.skipped += 1

    await session.commit()
    logger.info(
        "Monthly accrual date=%s processed=%s accrued=%s skipped=%s errors=%s",
        result.target_date,
        result.processed,
        result.accrued,
        result.skipped,
        result.errors,
    )
    return result

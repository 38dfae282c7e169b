"""Tests for the accrual engine: day counting, the monthly accrual ledger,
available days, idempotent backfill and the scheduled monthly job.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import func, select
from sqlmodel import col

from vacationdesk.exceptions import NotFoundError
from vacationdesk.models.enums import VacationStatus
from vacationdesk.models.ledger import VacationAccrualLog, VacationRolloverLog
from vacationdesk.models.request import VacationRequest
from vacationdesk.services import accrual as accrual_service
from vacationdesk.services.accrual import (
    MONTHLY_ACCRUAL_RATE,
    _iter_months,
    calculate_accrued_days,
    calculate_vacation_days,
    get_available_vacation_days,
    process_monthly_accrual,
)
from vacationdesk.services.balance import increment_adjusted

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.models.user import User


async def _log_count(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(VacationAccrualLog).where(col(VacationAccrualLog.user_id) == user_id)
    )
    return result.scalar_one()


# ===========================================================================
# Pure computation tests (no DB)
# ===========================================================================


class TestCalculateVacationDays:
    """Tests for calculate_vacation_days."""

    def test_single_day(self) -> None:
        assert calculate_vacation_days(date(2024, 6, 3), date(2024, 6, 3)) == 1

    def test_work_week(self) -> None:
        assert calculate_vacation_days(date(2024, 6, 3), date(2024, 6, 7)) == 5

    def test_spans_month_boundary(self) -> None:
        assert calculate_vacation_days(date(2024, 2, 28), date(2024, 3, 1)) == 3

    def test_datetimes_are_truncated_to_dates(self) -> None:
        assert calculate_vacation_days(datetime(2024, 6, 3, 23, 59), datetime(2024, 6, 4, 0, 1)) == 2


class TestIterMonths:
    """Tests for _iter_months."""

    def test_same_month(self) -> None:
        assert list(_iter_months(date(2024, 1, 15), date(2024, 1, 31))) == [(2024, 1)]

    def test_crosses_year(self) -> None:
        assert list(_iter_months(date(2023, 11, 30), date(2024, 2, 1))) == [
            (2023, 11),
            (2023, 12),
            (2024, 1),
            (2024, 2),
        ]

    def test_end_before_start_is_empty(self) -> None:
        assert list(_iter_months(date(2024, 5, 1), date(2024, 4, 30))) == []


# ===========================================================================
# calculate_accrued_days
# ===========================================================================


class TestCalculateAccruedDays:
    """Tests for the ledger-backed accrual computation."""

    async def test_one_month(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=date(2024, 1, 15))
        accrued = await calculate_accrued_days(db_session, user.id, date(2024, 1, 31))
        assert accrued == pytest.approx(20 / 12, abs=1e-5)
        assert accrued == pytest.approx(1.667, abs=1e-3)

    async def test_three_months(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=date(2024, 1, 15))
        await calculate_accrued_days(db_session, user.id, date(2024, 1, 31))
        accrued = await calculate_accrued_days(db_session, user.id, date(2024, 3, 31))
        assert accrued == pytest.approx(5.0, abs=1e-5)

    async def test_full_year_sums_to_allowance(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2024, 1, 1))
        accrued = await calculate_accrued_days(db_session, user.id, date(2024, 12, 31))
        assert accrued == 20.0

    async def test_repeated_calls_are_idempotent(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2024, 1, 15))
        first = await calculate_accrued_days(db_session, user.id, date(2024, 3, 31))
        second = await calculate_accrued_days(db_session, user.id, date(2024, 3, 31))
        third = await calculate_accrued_days(db_session, user.id, date(2024, 3, 31))

        assert first == second == third
        assert await _log_count(db_session, user.id) == 3

    async def test_one_row_per_month(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=date(2023, 11, 20))
        await calculate_accrued_days(db_session, user.id, date(2024, 2, 10))

        result = await db_session.execute(
            select(VacationAccrualLog.year, VacationAccrualLog.month)
            .where(col(VacationAccrualLog.user_id) == user.id)
            .order_by(col(VacationAccrualLog.year), col(VacationAccrualLog.month))
        )
        assert [tuple(row) for row in result.all()] == [(2023, 11), (2023, 12), (2024, 1), (2024, 2)]

    async def test_logged_value_is_replayed(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        """A month already in the ledger keeps its stored value even if it differs from the rate."""
        user = await make_user(employment_date=date(2024, 1, 1))
        db_session.add(VacationAccrualLog(user_id=user.id, year=2024, month=1, days_accrued=2.5))
        await db_session.commit()

        accrued = await calculate_accrued_days(db_session, user.id, date(2024, 2, 15))
        assert accrued == pytest.approx(2.5 + MONTHLY_ACCRUAL_RATE, abs=1e-5)

    async def test_no_employment_date(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=None)
        assert await calculate_accrued_days(db_session, user.id, date(2024, 6, 30)) == 0.0
        assert await _log_count(db_session, user.id) == 0

    async def test_unknown_user(self, db_session: AsyncSession) -> None:
        assert await calculate_accrued_days(db_session, uuid.uuid4(), date(2024, 6, 30)) == 0.0

    async def test_target_before_employment_year(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2024, 3, 10))
        assert await calculate_accrued_days(db_session, user.id, date(2023, 12, 31)) == 0.0
        assert await _log_count(db_session, user.id) == 0

    async def test_target_before_employment_month_same_year(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2024, 3, 10))
        assert await calculate_accrued_days(db_session, user.id, date(2024, 2, 29)) == 0.0
        assert await _log_count(db_session, user.id) == 0

    async def test_lost_insert_race_rereads_existing_row(
        self,
        db_session: AsyncSession,
        make_user: Callable[..., Awaitable[User]],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """If a concurrent caller inserts the month first, its row is used rather than a duplicate."""
        user = await make_user(employment_date=date(2024, 1, 1))
        db_session.add(VacationAccrualLog(user_id=user.id, year=2024, month=1, days_accrued=1.5))
        await db_session.commit()

        real_lookup = accrual_service._get_accrual_log
        calls = {"n": 0}

        async def _stale_first_lookup(session: AsyncSession, user_id: uuid.UUID, year: int, month: int):  # type: ignore[no-untyped-def]
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await real_lookup(session, user_id, year, month)

        monkeypatch.setattr(accrual_service, "_get_accrual_log", _stale_first_lookup)

        entry, created = await accrual_service._ensure_accrual_log(db_session, user.id, 2024, 1)
        assert created is False
        assert entry.days_accrued == 1.5
        assert await _log_count(db_session, user.id) == 1


# ===========================================================================
# get_available_vacation_days
# ===========================================================================


class TestAvailableVacationDays:
    """accrued + adjusted - used for the current year."""

    async def test_combines_accrual_adjustment_and_usage(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2024, 1, 1))
        await increment_adjusted(db_session, user.id, 2024, 2.0)
        db_session.add(
            VacationRequest(
                user_id=user.id,
                start_date=date(2024, 2, 5),
                end_date=date(2024, 2, 7),
                days=3,
                status=VacationStatus.APPROVED.value,
            )
        )
        await db_session.commit()

        available = await get_available_vacation_days(db_session, user.id, today=date(2024, 6, 15))
        assert available == pytest.approx(10.0 + 2.0 - 3, abs=1e-5)

    async def test_cancellation_requested_still_counts_as_used(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=None)
        await increment_adjusted(db_session, user.id, 2024, 5.0)
        for status in (VacationStatus.CANCELLATION_REQUESTED, VacationStatus.PENDING, VacationStatus.CANCELLED):
            db_session.add(
                VacationRequest(
                    user_id=user.id,
                    start_date=date(2024, 3, 4),
                    end_date=date(2024, 3, 5),
                    days=2,
                    status=status.value,
                )
            )
        await db_session.commit()

        assert await get_available_vacation_days(db_session, user.id, today=date(2024, 6, 1)) == 3.0

    async def test_other_years_do_not_count(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=None)
        await increment_adjusted(db_session, user.id, 2024, 4.0)
        await increment_adjusted(db_session, user.id, 2023, 10.0)
        db_session.add(
            VacationRequest(
                user_id=user.id,
                start_date=date(2023, 12, 30),
                end_date=date(2024, 1, 2),
                days=4,
                status=VacationStatus.APPROVED.value,
            )
        )
        await db_session.commit()

        assert await get_available_vacation_days(db_session, user.id, today=date(2024, 6, 1)) == 4.0

    async def test_may_be_negative(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=None)
        await increment_adjusted(db_session, user.id, 2024, -1.5)
        await db_session.commit()

        assert await get_available_vacation_days(db_session, user.id, today=date(2024, 6, 1)) == -1.5

    async def test_unknown_user_raises(self, db_session: AsyncSession) -> None:
        with pytest.raises(NotFoundError):
            await get_available_vacation_days(db_session, uuid.uuid4(), today=date(2024, 6, 1))


# ===========================================================================
# process_monthly_accrual
# ===========================================================================


class TestMonthlyAccrual:
    """Tests for the scheduled monthly job."""

    async def test_accrues_employed_users_only(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        early = await make_user(employment_date=date(2024, 1, 15))
        end_of_month = await make_user(employment_date=date(2024, 3, 31))
        future = await make_user(employment_date=date(2024, 4, 1))
        unemployed = await make_user(employment_date=None)

        result = await process_monthly_accrual(db_session, today=date(2024, 3, 15))

        assert result.rollover_ran is False
        assert result.processed == 2
        assert result.accrued == 2
        assert result.errors == 0
        for user in (early, end_of_month):
            log = await db_session.execute(
                select(VacationAccrualLog).where(
                    col(VacationAccrualLog.user_id) == user.id,
                    col(VacationAccrualLog.year) == 2024,
                    col(VacationAccrualLog.month) == 3,
                )
            )
            assert log.scalar_one().days_accrued == pytest.approx(MONTHLY_ACCRUAL_RATE)
        assert await _log_count(db_session, future.id) == 0
        assert await _log_count(db_session, unemployed.id) == 0

    async def test_rerun_is_idempotent(self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]) -> None:
        user = await make_user(employment_date=date(2024, 1, 15))

        await process_monthly_accrual(db_session, today=date(2024, 3, 1))
        second = await process_monthly_accrual(db_session, today=date(2024, 3, 28))

        assert second.accrued == 0
        assert second.skipped == 1
        assert await _log_count(db_session, user.id) == 1

    async def test_converges_with_lazy_backfill(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        """The scheduled job and calculate_accrued_days share one row per month."""
        user = await make_user(employment_date=date(2024, 1, 15))
        await process_monthly_accrual(db_session, today=date(2024, 3, 1))

        accrued = await calculate_accrued_days(db_session, user.id, date(2024, 3, 31))

        assert accrued == pytest.approx(5.0, abs=1e-5)
        assert await _log_count(db_session, user.id) == 3

    async def test_january_runs_rollover_first(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user(employment_date=date(2023, 1, 1))

        result = await process_monthly_accrual(db_session, today=date(2024, 1, 5))

        assert result.rollover_ran is True
        marker = await db_session.execute(
            select(VacationRolloverLog).where(
                col(VacationRolloverLog.user_id) == user.id,
                col(VacationRolloverLog.year) == 2024,
            )
        )
        assert marker.scalar_one().carried_days == 5.0
        assert result.accrued == 1

    async def test_failure_for_one_user_is_counted(
        self,
        db_session: AsyncSession,
        make_user: Callable[..., Awaitable[User]],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        broken = await make_user(employment_date=date(2024, 1, 1), name="Broken")
        healthy = await make_user(employment_date=date(2024, 1, 1), name="Healthy")
        real_ensure = accrual_service._ensure_accrual_log

        async def _ensure(session: AsyncSession, user_id: uuid.UUID, year: int, month: int):  # type: ignore[no-untyped-def]
            if user_id == broken.id:
                raise RuntimeError("boom")
            return await real_ensure(session, user_id, year, month)

        monkeypatch.setattr(accrual_service, "_ensure_accrual_log", _ensure)

        result = await process_monthly_accrual(db_session, today=date(2024, 2, 1))

        assert result.processed == 2
        assert result.errors == 1
        assert result.accrued == 1
        assert await _log_count(db_session, healthy.id) == 1

    async def test_failed_user_leaves_no_partial_rows(
        self,
        db_session: AsyncSession,
        make_user: Callable[..., Awaitable[User]],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        broken = await make_user(employment_date=date(2024, 1, 1), name="Broken")
        healthy = await make_user(employment_date=date(2024, 1, 1), name="Healthy")
        real_ensure = accrual_service._ensure_accrual_log

        async def _ensure(session: AsyncSession, user_id: uuid.UUID, year: int, month: int):  # type: ignore[no-untyped-def]
            entry = await real_ensure(session, user_id, year, month)
            if user_id == broken.id:
                raise RuntimeError("failed after insert")
            return entry

        monkeypatch.setattr(accrual_service, "_ensure_accrual_log", _ensure)

        result = await process_monthly_accrual(db_session, today=date(2024, 2, 1))

        assert result.errors == 1
        assert result.accrued == 1
        # The broken user's insert is rolled back with its savepoint.
        assert await _log_count(db_session, broken.id) == 0
        assert await _log_count(db_session, healthy.id) == 1

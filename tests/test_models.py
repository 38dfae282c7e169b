from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import IntegrityError

from vacationdesk.models import (
    AuditLog,
    SQLModel,
    VacationAccrualLog,
    VacationBalance,
    VacationRequest,
    VacationRolloverLog,
)
from vacationdesk.models.enums import ACTIVE_STATUSES, USED_STATUSES, VacationStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.models.user import User

EXPECTED_TABLES = {
    "app_user",
    "audit_log",
    "country",
    "manager_employee",
    "public_holiday",
    "vacation_accrual_log",
    "vacation_balance",
    "vacation_request",
    "vacation_rollover_log",
}


def test_all_tables_registered() -> None:
    assert set(SQLModel.metadata.tables.keys()) == EXPECTED_TABLES


def test_vacation_request_defaults() -> None:
    request = VacationRequest(
        user_id=uuid.uuid4(),
        start_date=date(2024, 7, 1),
        end_date=date(2024, 7, 5),
        days=5,
    )
    assert request.status == VacationStatus.PENDING
    assert request.rejection_reason is None
    assert request.approved_by_id is None
    assert request.id is not None


def test_balance_defaults_to_zero_adjustment() -> None:
    balance = VacationBalance(user_id=uuid.uuid4(), year=2024)
    assert balance.adjusted == 0.0


def test_audit_log_instantiation() -> None:
    entry = AuditLog(
        actor_id=uuid.uuid4(),
        entity_type="VACATION_REQUEST",
        entity_id=uuid.uuid4(),
        action="CREATE",
        after_json={"status": "PENDING"},
    )
    assert entry.before_json is None
    assert entry.created_at is not None


def test_status_groups() -> None:
    assert VacationStatus.CANCELLATION_REQUESTED in ACTIVE_STATUSES
    assert VacationStatus.CANCELLATION_REQUESTED in USED_STATUSES
    assert VacationStatus.PENDING in ACTIVE_STATUSES
    assert VacationStatus.PENDING not in USED_STATUSES
    assert VacationStatus.REJECTED not in ACTIVE_STATUSES
    assert VacationStatus.CANCELLED not in ACTIVE_STATUSES


class TestUniqueConstraints:
    """The idempotency keys are enforced by the database."""

    async def test_one_accrual_row_per_month(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user()
        db_session.add(VacationAccrualLog(user_id=user.id, year=2024, month=3, days_accrued=1.0))
        await db_session.commit()

        db_session.add(VacationAccrualLog(user_id=user.id, year=2024, month=3, days_accrued=1.0))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_one_rollover_marker_per_year(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user()
        db_session.add(VacationRolloverLog(user_id=user.id, year=2024, unused_days=1.0, carried_days=1.0))
        await db_session.commit()

        db_session.add(VacationRolloverLog(user_id=user.id, year=2024, unused_days=2.0, carried_days=2.0))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_one_balance_row_per_year(
        self, db_session: AsyncSession, make_user: Callable[..., Awaitable[User]]
    ) -> None:
        user = await make_user()
        db_session.add(VacationBalance(user_id=user.id, year=2024))
        await db_session.commit()

        db_session.add(VacationBalance(user_id=user.id, year=2024))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

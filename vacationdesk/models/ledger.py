# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacationdesk.models.base import UUIDBase


def _now_utc() -> datetime:
    return datetime.now(UTC)


class VacationAccrualLog(UUIDBase, table=True):
    """Append-only record of the days granted for one employment month.

    The (user_id, year, month) constraint is the idempotency key: once a month
    is logged its value is replayed forever, even if the accrual rate changes.
    """

    __tablename__ = "vacation_accrual_log"
    __table_args__ = (sa.UniqueConstraint("user_id", "year", "month", name="uq_accrual_user_year_month"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    year: int
    month: int
    days_accrued: float = Field(sa_type=sa.Float)
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )


class VacationRolloverLog(UUIDBase, table=True):
    """Marker that year-end carryover into ``year`` was applied for a user."""

    __tablename__ = "vacation_rollover_log"
    __table_args__ = (sa.UniqueConstraint("user_id", "year", name="uq_rollover_user_year"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    year: int
    unused_days: float = Field(sa_type=sa.Float)
    carried_days: float = Field(sa_type=sa.Float)
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )

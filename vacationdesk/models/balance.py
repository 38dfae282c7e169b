# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacationdesk.models.base import UUIDBase


def _now_utc() -> datetime:
    return datetime.now(UTC)


class VacationBalance(UUIDBase, table=True):
    """Per-user, per-year manual state of a balance.

    Only ``adjusted`` is stored: the running total of admin adjustments and
    year-end carryover. Accrued and used days are always recomputed from the
    accrual log and the request table and never persisted here.
    """

    __tablename__ = "vacation_balance"
    __table_args__ = (sa.UniqueConstraint("user_id", "year", name="uq_balance_user_year"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    year: int
    adjusted: float = Field(default=0.0, sa_type=sa.Float, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": _now_utc},
    )

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacationdesk.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from vacationdesk.models.enums import VacationStatus


class VacationRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An employee's vacation request with approval workflow state.

    Dates are inclusive calendar dates. Rows are never deleted, only moved
    through the status state machine.
    """

    __tablename__ = "vacation_request"
    __table_args__ = (sa.Index("ix_vacation_request_user_dates", "user_id", "start_date", "end_date"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    days: int
    comment: str | None = Field(default=None, max_length=1000)
    status: str = Field(
        default=VacationStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    rejection_reason: str | None = Field(default=None, max_length=500)
    approved_by_id: uuid.UUID | None = None
    approved_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

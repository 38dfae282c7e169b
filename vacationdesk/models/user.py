# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from vacationdesk.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from vacationdesk.models.enums import Role


class User(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An application user. Accrual starts at employment_date; no date means no accrual."""

    __tablename__ = "app_user"

    name: str = Field(max_length=200)
    email: str = Field(max_length=255, unique=True, index=True)
    role: str = Field(default=Role.EMPLOYEE, max_length=50, sa_column_kwargs={"server_default": "EMPLOYEE"})
    employment_date: date | None = None
    country_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("country.id", ondelete="SET NULL"), nullable=True),
    )


class ManagerEmployee(UUIDBase, TimestampMixin, table=True):
    """Org-structure edge: manager_id has authority over employee_id."""

    __tablename__ = "manager_employee"
    __table_args__ = (sa.UniqueConstraint("manager_id", "employee_id", name="uq_manager_employee"),)

    manager_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )

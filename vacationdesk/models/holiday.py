# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from vacationdesk.models.base import TimestampMixin, UUIDBase


class Country(UUIDBase, TimestampMixin, table=True):
    """A country whose public holidays apply to the users living in it."""

    __tablename__ = "country"

    name: str = Field(max_length=100)
    code: str = Field(max_length=2, unique=True)


class PublicHoliday(UUIDBase, table=True):
    """A public holiday observed in one country."""

    __tablename__ = "public_holiday"
    __table_args__ = (sa.UniqueConstraint("country_id", "date", name="uq_holiday_country_date"),)

    country_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("country.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    date: datetime.date
    name: str = Field(max_length=255)

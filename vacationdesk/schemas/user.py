# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from vacationdesk.models.enums import Role

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _not_in_future(value: date | None) -> date | None:
    if value is not None and value > date.today():
        msg = "Employment date cannot be in the future"
        raise ValueError(msg)
    return value


class CreateUserPayload(BaseModel):
    """Request body for creating a user (admin only)."""

    email: str = Field(min_length=1, max_length=255, pattern=_EMAIL_PATTERN)
    name: str = Field(min_length=1, max_length=200)
    role: Role = Role.EMPLOYEE
    employment_date: date | None = None
    country_id: uuid.UUID | None = None
    initial_balance: float | None = Field(default=None, allow_inf_nan=False)

    @field_validator("employment_date")
    @classmethod
    def _check_employment_date(cls, value: date | None) -> date | None:
        return _not_in_future(value)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()


class UpdateUserPayload(BaseModel):
    """Partial update of a user. Omitted fields are left unchanged; explicit nulls clear them."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    role: Role | None = None
    employment_date: date | None = None
    manager_id: uuid.UUID | None = None
    country_id: uuid.UUID | None = None

    @field_validator("employment_date")
    @classmethod
    def _check_employment_date(cls, value: date | None) -> date | None:
        return _not_in_future(value)


class UserResponse(BaseModel):
    """Response schema for a user."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    employment_date: date | None
    country_id: uuid.UUID | None
    created_at: datetime


class UserListResponse(BaseModel):
    """List of users."""

    items: list[UserResponse]
    total: int


class ManagerResponse(BaseModel):
    """A user's manager, if any."""

    manager_id: uuid.UUID | None
    manager: UserResponse | None

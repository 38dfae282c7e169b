# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field, field_validator


class CreateCountryRequest(BaseModel):
    """Request body for creating a country."""

    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=2, max_length=2)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.upper()


class CountryResponse(BaseModel):
    id: uuid.UUID
    name: str
    code: str


class CountryListResponse(BaseModel):
    items: list[CountryResponse]
    total: int


class CreateHolidayRequest(BaseModel):
    """Request body for creating a public holiday."""

    date: date
    name: str = Field(min_length=1, max_length=255)


class HolidayResponse(BaseModel):
    """Response schema for a public holiday."""

    id: uuid.UUID
    country_id: uuid.UUID
    date: date
    name: str


class HolidayListResponse(BaseModel):
    """List of public holidays ordered by date."""

    items: list[HolidayResponse]
    total: int

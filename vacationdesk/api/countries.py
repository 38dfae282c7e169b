# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from vacationdesk.api.deps import AdminDep, AuthDep
from vacationdesk.db import SessionDep
from vacationdesk.schemas.holiday import (
    CountryListResponse,
    CountryResponse,
    CreateCountryRequest,
    CreateHolidayRequest,
    HolidayListResponse,
    HolidayResponse,
)
from vacationdesk.services import holiday as holiday_service

countries_router = APIRouter(
    prefix="/countries",
    tags=["holidays"],
)


@countries_router.post("", response_model=CountryResponse, status_code=status.HTTP_201_CREATED)
async def create_country(
    payload: CreateCountryRequest,
    session: SessionDep,
    auth: AdminDep,
) -> CountryResponse:
    """Create a country (admin only)."""
    return await holiday_service.create_country(session, auth, payload)


@countries_router.get("", response_model=CountryListResponse)
async def list_countries(
    session: SessionDep,
    auth: AdminDep,
) -> CountryListResponse:
    return await holiday_service.list_countries(session)


@countries_router.delete("/{country_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_country(
    country_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a country and its holidays (admin only)."""
    await holiday_service.delete_country(session, auth, country_id)


@countries_router.post(
    "/{country_id}/holidays",
    response_model=HolidayResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_holiday(
    country_id: uuid.UUID,
    payload: CreateHolidayRequest,
    session: SessionDep,
    auth: AdminDep,
) -> HolidayResponse:
    """Create a public holiday (admin only)."""
    return await holiday_service.create_holiday(session, auth, country_id, payload)


@countries_router.get("/{country_id}/holidays", response_model=HolidayListResponse)
async def list_holidays(
    country_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
) -> HolidayListResponse:
    """List a country's public holidays with optional year filter."""
    return await holiday_service.list_holidays(session, country_id, year)


@countries_router.delete("/{country_id}/holidays/{holiday_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_holiday(
    country_id: uuid.UUID,
    holiday_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> None:
    """Delete a public holiday (admin only)."""
    await holiday_service.delete_holiday(session, auth, country_id, holiday_id)

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacationdesk.exceptions import AuthorizationError, ConflictError, NotFoundError
from vacationdesk.models.enums import AuditAction, AuditEntityType
from vacationdesk.models.holiday import Country, PublicHoliday
from vacationdesk.models.user import User
from vacationdesk.schemas.holiday import (
    CountryListResponse,
    CountryResponse,
    HolidayListResponse,
    HolidayResponse,
)
from vacationdesk.services.audit import model_to_audit_dict, write_audit_log
from vacationdesk.services.authority import get_authority_check

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext
    from vacationdesk.schemas.holiday import CreateCountryRequest, CreateHolidayRequest


def _build_country_response(country: Country) -> CountryResponse:
    return CountryResponse(id=country.id, name=country.name, code=country.code)


def _build_holiday_response(holiday: PublicHoliday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        country_id=holiday.country_id,
        date=holiday.date,
        name=holiday.name,
    )


# ---------------------------------------------------------------------------
# Countries
# ---------------------------------------------------------------------------


async def get_country(session: AsyncSession, country_id: uuid.UUID) -> Country:
    """Get a single country or raise 404."""
    country = await session.get(Country, country_id)
    if country is None:
        raise NotFoundError("Country not found")
    return country


async def create_country(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateCountryRequest,
) -> CountryResponse:
    """Create a country (codes are unique)."""
    country = Country(name=payload.name, code=payload.code)

    try:
        async with session.begin_nested():
            session.add(country)
            await session.flush()
    except IntegrityError:
        raise ConflictError("Country with this code already exists", context={"code": payload.code}) from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COUNTRY,
        entity_id=country.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(country),
    )

    await session.commit()
    return _build_country_response(country)


async def list_countries(session: AsyncSession) -> CountryListResponse:
    """List countries ordered by name."""
    result = await session.execute(select(Country).order_by(col(Country.name)))
    countries = list(result.scalars().all())
    return CountryListResponse(items=[_build_country_response(c) for c in countries], total=len(countries))


async def delete_country(
    session: AsyncSession,
    auth: AuthContext,
    country_id: uuid.UUID,
) -> None:
    """Delete a country. Its holidays go with it; users keep no country."""
    country = await get_country(session, country_id)

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.COUNTRY,
        entity_id=country.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(country),
    )

    await session.delete(country)
    await session.commit()


# ---------------------------------------------------------------------------
# Public holidays
# ---------------------------------------------------------------------------


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    country_id: uuid.UUID,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create a public holiday for a country."""
    await get_country(session, country_id)

    holiday = PublicHoliday(country_id=country_id, date=payload.date, name=payload.name)

    try:
        async with session.begin_nested():
            session.add(holiday)
            await session.flush()
    except IntegrityError:
        raise ConflictError(
            "This holiday already exists for this country",
            context={"date": payload.date.isoformat()},
        ) from None

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(holiday),
    )

    await session.commit()
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    country_id: uuid.UUID,
    year: int | None = None,
) -> HolidayListResponse:
    """List a country's holidays with optional year filter."""
    await get_country(session, country_id)

    base_filter = [col(PublicHoliday.country_id) == country_id]
    if year is not None:
        base_filter.append(extract("year", col(PublicHoliday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(PublicHoliday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(select(PublicHoliday).where(*base_filter).order_by(col(PublicHoliday.date)))
    holidays = list(result.scalars().all())

    return HolidayListResponse(items=[_build_holiday_response(h) for h in holidays], total=total)


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    country_id: uuid.UUID,
    holiday_id: uuid.UUID,
) -> None:
    """Delete a public holiday."""
    result = await session.execute(
        select(PublicHoliday).where(
            col(PublicHoliday.id) == holiday_id,
            col(PublicHoliday.country_id) == country_id,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFoundError("Holiday not found")

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.HOLIDAY,
        entity_id=holiday.id,
        action=AuditAction.DELETE,
        before_json=model_to_audit_dict(holiday),
    )

    await session.delete(holiday)
    await session.commit()


async def list_user_holidays(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    year: int | None = None,
) -> HolidayListResponse:
    """Holidays of the user's country for ``year`` (default: current year).

    Empty when the user has no country.
    """
    if not await get_authority_check()(session, auth, user_id):
        raise AuthorizationError()

    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.country_id is None:
        return HolidayListResponse(items=[], total=0)

    return await list_holidays(session, user.country_id, year if year is not None else date.today().year)

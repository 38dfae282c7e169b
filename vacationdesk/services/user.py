# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacationdesk.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from vacationdesk.models.enums import AuditAction, AuditEntityType, Role
from vacationdesk.models.holiday import Country
from vacationdesk.models.user import ManagerEmployee, User
from vacationdesk.schemas.user import ManagerResponse, UserListResponse, UserResponse
from vacationdesk.services.audit import model_to_audit_dict, write_audit_log
from vacationdesk.services.authority import get_authority_check, is_manager_of, team_member_ids
from vacationdesk.services.balance import increment_adjusted

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext
    from vacationdesk.schemas.user import CreateUserPayload, UpdateUserPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_user_response(user: User) -> UserResponse:
    """Map a user model to its response schema."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=Role(user.role),
        employment_date=user.employment_date,
        country_id=user.country_id,
        created_at=user.created_at,
    )


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID, *, for_update: bool = False) -> User:
    """Fetch a user by ID. ``for_update`` takes a row lock, serializing per-user writes."""
    query = select(User).where(col(User.id) == user_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def _ensure_country_exists(session: AsyncSession, country_id: uuid.UUID) -> None:
    if await session.get(Country, country_id) is None:
        raise NotFoundError("Country not found")


async def _assign_manager(
    session: AsyncSession,
    auth: AuthContext,
    user: User,
    manager_id: uuid.UUID | None,
) -> None:
    """Replace the user's manager; ``None`` removes the assignment."""
    if manager_id is None:
        await session.execute(delete(ManagerEmployee).where(col(ManagerEmployee.employee_id) == user.id))
        return

    if manager_id == user.id:
        raise ValidationError("User cannot be assigned as their own manager")
    if await is_manager_of(session, user.id, manager_id):
        raise ValidationError("Circular manager assignment detected. Cannot assign this manager.")

    manager = await session.get(User, manager_id)
    if manager is None:
        raise NotFoundError("Manager not found")
    if manager.role not in (Role.MANAGER, Role.ADMIN):
        raise ValidationError("Manager must have MANAGER or ADMIN role")

    await session.execute(delete(ManagerEmployee).where(col(ManagerEmployee.employee_id) == user.id))
    session.add(ManagerEmployee(manager_id=manager_id, employee_id=user.id))
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        target_user_id=user.id,
        entity_type=AuditEntityType.USER,
        entity_id=user.id,
        action=AuditAction.MANAGER_ASSIGNED,
        after_json={"manager_id": str(manager_id)},
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_user(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateUserPayload,
    *,
    today: date | None = None,
) -> UserResponse:
    """Create a user, optionally seeding the current year's balance.

    User row, initial adjustment and audit entries commit together.
    """
    if payload.country_id is not None:
        await _ensure_country_exists(session, payload.country_id)

    user = User(
        email=payload.email,
        name=payload.name,
        role=payload.role.value,
        employment_date=payload.employment_date,
        country_id=payload.country_id,
    )

    try:
        async with session.begin_nested():
            session.add(user)
            await session.flush()
    except IntegrityError:
        raise ConflictError("A user with this email already exists") from None

    try:
        if payload.initial_balance is not None:
            year = (today or date.today()).year
            balance = await increment_adjusted(session, user.id, year, payload.initial_balance)
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                target_user_id=user.id,
                entity_type=AuditEntityType.BALANCE,
                entity_id=balance.id,
                action=AuditAction.BALANCE_ADJUSTMENT,
                after_json={"reason": "Initial balance", "amount": payload.initial_balance},
            )

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            target_user_id=user.id,
            entity_type=AuditEntityType.USER,
            entity_id=user.id,
            action=AuditAction.USER_CREATED,
            after_json=model_to_audit_dict(user),
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("User created admin=%s user=%s email=%s", auth.user_id, user.id, user.email)
    return build_user_response(user)


async def update_user(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
) -> UserResponse:
    """Apply a partial update. Only fields present in the payload are touched."""
    user = await get_user_or_404(session, user_id, for_update=True)
    fields = payload.model_fields_set
    before = model_to_audit_dict(user)
    old_role = user.role

    try:
        if "name" in fields and payload.name is not None:
            user.name = payload.name.strip()
        if "role" in fields and payload.role is not None:
            user.role = payload.role.value
        if "employment_date" in fields:
            user.employment_date = payload.employment_date
        if "country_id" in fields:
            if payload.country_id is not None:
                await _ensure_country_exists(session, payload.country_id)
            user.country_id = payload.country_id
        await session.flush()

        if "manager_id" in fields:
            await _assign_manager(session, auth, user, payload.manager_id)

        if user.role != old_role:
            await write_audit_log(
                session,
                actor_id=auth.user_id,
                target_user_id=user.id,
                entity_type=AuditEntityType.USER,
                entity_id=user.id,
                action=AuditAction.ROLE_CHANGED,
                after_json={"old_role": old_role, "new_role": user.role},
            )

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            target_user_id=user.id,
            entity_type=AuditEntityType.USER,
            entity_id=user.id,
            action=AuditAction.USER_UPDATED,
            before_json=before,
            after_json=model_to_audit_dict(user),
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info("User updated admin=%s user=%s fields=%s", auth.user_id, user_id, sorted(fields))
    return build_user_response(user)


async def get_user(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> UserResponse:
    """Get a user visible to the caller (self, their manager, or an admin)."""
    if not await get_authority_check()(session, auth, user_id):
        raise AuthorizationError()
    return build_user_response(await get_user_or_404(session, user_id))


async def list_users(session: AsyncSession, auth: AuthContext) -> UserListResponse:
    """ADMIN sees everyone; a MANAGER sees their team and themselves."""
    query = select(User).order_by(col(User.name))
    if auth.role == Role.MANAGER:
        ids = [*await team_member_ids(session, auth.user_id), auth.user_id]
        query = query.where(col(User.id).in_(ids))
    elif auth.role != Role.ADMIN:
        raise AuthorizationError()

    result = await session.execute(query)
    users = list(result.scalars().all())
    return UserListResponse(items=[build_user_response(u) for u in users], total=len(users))


async def get_manager(session: AsyncSession, auth: AuthContext, user_id: uuid.UUID) -> ManagerResponse:
    """Return the manager assigned to ``user_id`` (ADMIN and MANAGER only)."""
    if auth.role not in (Role.ADMIN, Role.MANAGER):
        raise AuthorizationError()

    result = await session.execute(
        select(User)
        .join(ManagerEmployee, col(ManagerEmployee.manager_id) == col(User.id))
        .where(col(ManagerEmployee.employee_id) == user_id)
        .limit(1)
    )
    manager = result.scalar_one_or_none()
    if manager is None:
        return ManagerResponse(manager_id=None, manager=None)
    return ManagerResponse(manager_id=manager.id, manager=build_user_response(manager))


async def list_employed_users(session: AsyncSession, *, employed_on_or_before: date | None = None) -> list[User]:
    """Users with an employment date, optionally only those employed by a given date."""
    filters = [col(User.employment_date).is_not(None)]
    if employed_on_or_before is not None:
        filters.append(col(User.employment_date) <= employed_on_or_before)
    result = await session.execute(select(User).where(*filters).order_by(col(User.created_at)))
    return list(result.scalars().all())

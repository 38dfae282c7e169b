# ruff: noqa: TC003
"""Authority over a user: who may act on another user's requests and balance."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import select
from sqlmodel import col

from vacationdesk.models.enums import Role
from vacationdesk.models.user import ManagerEmployee

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext


@runtime_checkable
class AuthorityCheck(Protocol):
    """Predicate deciding whether ``actor`` may act on ``target_user_id``'s data."""

    async def __call__(self, session: AsyncSession, actor: AuthContext, target_user_id: uuid.UUID) -> bool: ...


async def is_manager_of(session: AsyncSession, manager_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
    """Return True if a manager-employee relationship row exists."""
    result = await session.execute(
        select(ManagerEmployee.id).where(
            col(ManagerEmployee.manager_id) == manager_id,
            col(ManagerEmployee.employee_id) == employee_id,
        )
    )
    return result.first() is not None


async def has_authority_over(session: AsyncSession, actor: AuthContext, target_user_id: uuid.UUID) -> bool:
    """ADMIN always; the target user themselves; a MANAGER of the target."""
    if actor.role == Role.ADMIN:
        return True
    if actor.user_id == target_user_id:
        return True
    if actor.role == Role.MANAGER:
        return await is_manager_of(session, actor.user_id, target_user_id)
    return False


async def team_member_ids(session: AsyncSession, manager_id: uuid.UUID) -> list[uuid.UUID]:
    """IDs of the employees reporting to ``manager_id``."""
    result = await session.execute(
        select(col(ManagerEmployee.employee_id)).where(col(ManagerEmployee.manager_id) == manager_id)
    )
    return [row[0] for row in result.all()]


_authority_check: AuthorityCheck = has_authority_over


def get_authority_check() -> AuthorityCheck:
    """Return the active authority predicate."""
    return _authority_check


def set_authority_check(check: AuthorityCheck) -> None:
    """Override the predicate (for testing or an external org-structure service)."""
    global _authority_check
    _authority_check = check

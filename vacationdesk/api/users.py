# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from vacationdesk.api.deps import AdminDep, AuthDep
from vacationdesk.db import SessionDep
from vacationdesk.schemas.holiday import HolidayListResponse
from vacationdesk.schemas.user import (
    CreateUserPayload,
    ManagerResponse,
    UpdateUserPayload,
    UserListResponse,
    UserResponse,
)
from vacationdesk.services import holiday as holiday_service
from vacationdesk.services import user as user_service

users_router = APIRouter(
    prefix="/users",
    tags=["users"],
)


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: CreateUserPayload,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Create a user (admin only)."""
    return await user_service.create_user(session, auth, payload)


@users_router.get("", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    auth: AuthDep,
) -> UserListResponse:
    """List users: everyone for admins, the team for managers."""
    return await user_service.list_users(session, auth)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> UserResponse:
    return await user_service.get_user(session, auth, user_id)


@users_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
    session: SessionDep,
    auth: AdminDep,
) -> UserResponse:
    """Update name, role, employment date, manager or country (admin only)."""
    return await user_service.update_user(session, auth, user_id, payload)


@users_router.get("/{user_id}/manager", response_model=ManagerResponse)
async def get_manager(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> ManagerResponse:
    return await user_service.get_manager(session, auth, user_id)


@users_router.get("/{user_id}/holidays", response_model=HolidayListResponse)
async def get_user_holidays(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None),
) -> HolidayListResponse:
    """Public holidays of the user's country (current year by default)."""
    return await holiday_service.list_user_holidays(session, auth, user_id, year)

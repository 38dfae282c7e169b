# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from vacationdesk.api.deps import AuthDep
from vacationdesk.db import SessionDep
from vacationdesk.models.enums import VacationStatus
from vacationdesk.schemas.request import (
    CreateVacationPayload,
    TransitionPayload,
    VacationListResponse,
    VacationResponse,
)
from vacationdesk.services import request as request_service

vacations_router = APIRouter(
    prefix="/vacations",
    tags=["vacations"],
)


@vacations_router.post("", response_model=VacationResponse, status_code=status.HTTP_201_CREATED)
async def create_vacation(
    payload: CreateVacationPayload,
    session: SessionDep,
    auth: AuthDep,
) -> VacationResponse:
    """Submit a new vacation request for the caller."""
    return await request_service.create_vacation_request(session, auth, payload)


@vacations_router.get("", response_model=VacationListResponse)
async def list_vacations(
    session: SessionDep,
    auth: AuthDep,
    user_id: uuid.UUID | None = Query(default=None),
    status_filter: VacationStatus | None = Query(default=None, alias="status"),
) -> VacationListResponse:
    """List vacation requests visible to the caller."""
    return await request_service.list_vacation_requests(session, auth, user_id, status_filter)


@vacations_router.get("/{request_id}", response_model=VacationResponse)
async def get_vacation(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> VacationResponse:
    """Get a single vacation request."""
    return await request_service.get_vacation_request(session, auth, request_id)


@vacations_router.patch("/{request_id}", response_model=VacationResponse)
async def update_vacation(
    request_id: uuid.UUID,
    payload: TransitionPayload,
    session: SessionDep,
    auth: AuthDep,
) -> VacationResponse:
    """Approve, reject, cancel, or request/decide a cancellation."""
    return await request_service.transition_vacation_request(session, auth, request_id, payload)

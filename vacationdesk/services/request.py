# ruff: noqa: TC003
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacationdesk.exceptions import (
    AuthorizationError,
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from vacationdesk.models.enums import ACTIVE_STATUSES, AuditAction, AuditEntityType, Role, VacationStatus
from vacationdesk.models.request import VacationRequest
from vacationdesk.schemas.request import VacationListResponse, VacationResponse
from vacationdesk.services.accrual import calculate_vacation_days, get_available_vacation_days
from vacationdesk.services.audit import model_to_audit_dict, write_audit_log
from vacationdesk.services.authority import get_authority_check, team_member_ids
from vacationdesk.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from vacationdesk.schemas.auth import AuthContext
    from vacationdesk.schemas.request import CreateVacationPayload, TransitionPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class TransitionActor(enum.StrEnum):
    """Who may perform a transition."""

    REQUESTER = "REQUESTER"
    # The requester, their manager, or an admin.
    AUTHORITY = "AUTHORITY"


@dataclass(frozen=True)
class Transition:
    """One allowed edge of the vacation request state machine."""

    source: VacationStatus
    target: VacationStatus
    actor: TransitionActor
    action: AuditAction
    records_decision: bool = False
    checks_balance: bool = False
    requires_reason: bool = False


_S = VacationStatus

TRANSITIONS: dict[tuple[VacationStatus, VacationStatus], Transition] = {
    (t.source, t.target): t
    for t in (
        Transition(
            _S.PENDING,
            _S.APPROVED,
            TransitionActor.AUTHORITY,
            AuditAction.APPROVE,
            records_decision=True,
            checks_balance=True,
        ),
        Transition(
            _S.PENDING,
            _S.REJECTED,
            TransitionActor.AUTHORITY,
            AuditAction.REJECT,
            records_decision=True,
            requires_reason=True,
        ),
        Transition(_S.PENDING, _S.CANCELLED, TransitionActor.REQUESTER, AuditAction.CANCEL),
        Transition(_S.APPROVED, _S.CANCELLATION_REQUESTED, TransitionActor.REQUESTER, AuditAction.REQUEST_CANCELLATION),
        Transition(
            _S.CANCELLATION_REQUESTED,
            _S.CANCELLED,
            TransitionActor.AUTHORITY,
            AuditAction.CONFIRM_CANCELLATION,
            records_decision=True,
        ),
        Transition(
            _S.CANCELLATION_REQUESTED,
            _S.APPROVED,
            TransitionActor.AUTHORITY,
            AuditAction.DECLINE_CANCELLATION,
        ),
    )
}


def get_transition(source: VacationStatus, target: VacationStatus) -> Transition:
    """Look up the (source, target) edge, raising ValidationError if it does not exist."""
    transition = TRANSITIONS.get((source, target))
    if transition is not None:
        return transition

    context = {"from": source.value, "to": target.value}
    if target == VacationStatus.PENDING:
        raise ValidationError("A vacation request cannot be moved back to pending", context=context)
    if source in (VacationStatus.REJECTED, VacationStatus.CANCELLED):
        raise ValidationError(f"A {source.lower()} vacation request cannot be changed", context=context)
    if target == VacationStatus.CANCELLATION_REQUESTED:
        raise ValidationError("Only approved vacations can be requested for cancellation", context=context)
    raise ValidationError(
        f"Cannot change a {source.lower().replace('_', ' ')} vacation request to {target.lower().replace('_', ' ')}",
        context=context,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_vacation_response(request: VacationRequest) -> VacationResponse:
    """Map a request model to its response schema."""
    return VacationResponse(
        id=request.id,
        user_id=request.user_id,
        start_date=request.start_date,
        end_date=request.end_date,
        days=request.days,
        comment=request.comment,
        status=VacationStatus(request.status),
        rejection_reason=request.rejection_reason,
        approved_by_id=request.approved_by_id,
        approved_at=request.approved_at,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(session: AsyncSession, request_id: uuid.UUID) -> VacationRequest:
    result = await session.execute(select(VacationRequest).where(col(VacationRequest.id) == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Vacation request not found")
    return request


async def _check_overlap(
    session: AsyncSession,
    user_id: uuid.UUID,
    start_date: date,
    end_date: date,
) -> None:
    """Raise 409 if an active request intersects the inclusive [start_date, end_date] range."""
    result = await session.execute(
        select(VacationRequest)
        .where(
            col(VacationRequest.user_id) == user_id,
            col(VacationRequest.status).in_([s.value for s in ACTIVE_STATUSES]),
            col(VacationRequest.start_date) <= end_date,
            col(VacationRequest.end_date) >= start_date,
        )
        .order_by(col(VacationRequest.start_date))
        .limit(1)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        raise ConflictError(
            f"You already have a vacation request overlapping these dates (status: {existing.status.lower()})",
            context={"status": existing.status, "request_id": str(existing.id)},
        )


async def _check_balance(session: AsyncSession, user_id: uuid.UUID, days: int, today: date) -> None:
    available = await get_available_vacation_days(session, user_id, today=today)
    if available < days:
        raise InsufficientBalanceError(available=available, required=days)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_vacation_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateVacationPayload,
    *,
    today: date | None = None,
) -> VacationResponse:
    """Create a PENDING request for the caller.

    The caller's user row is locked for the duration of the overlap and
    balance checks so concurrent creates for the same user serialize.
    """
    if today is None:
        today = date.today()
    if payload.start_date < today:
        raise ValidationError("Cannot request vacation in the past")

    days = calculate_vacation_days(payload.start_date, payload.end_date)

    try:
        await get_user_or_404(session, auth.user_id, for_update=True)
        await _check_overlap(session, auth.user_id, payload.start_date, payload.end_date)
        await _check_balance(session, auth.user_id, days, today)

        request = VacationRequest(
            user_id=auth.user_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days=days,
            comment=payload.comment,
            status=VacationStatus.PENDING.value,
        )
        session.add(request)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            target_user_id=auth.user_id,
            entity_type=AuditEntityType.VACATION_REQUEST,
            entity_id=request.id,
            action=AuditAction.CREATE,
            after_json=model_to_audit_dict(request),
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Vacation request created user=%s request=%s start=%s end=%s days=%s",
        auth.user_id,
        request.id,
        request.start_date,
        request.end_date,
        request.days,
    )
    return _build_vacation_response(request)


async def transition_vacation_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: TransitionPayload,
    *,
    today: date | None = None,
) -> VacationResponse:
    """Move a request along one edge of the state machine.

    Every transition takes the requester's row lock and re-reads the request
    under it, so the edge is validated against the committed status. Guards
    (authority, edge validity, rejection reason, balance on approval) all run
    before the request row is modified.
    """
    if today is None:
        today = date.today()

    request = await _get_request_or_404(session, request_id)
    check = get_authority_check()
    if not await check(session, auth, request.user_id):
        raise AuthorizationError()

    reason = payload.rejection_reason.strip() if payload.rejection_reason else None

    try:
        await get_user_or_404(session, request.user_id, for_update=True)
        await session.refresh(request, with_for_update=True)

        source = VacationStatus(request.status)
        transition = get_transition(source, payload.status)

        if transition.actor == TransitionActor.REQUESTER and auth.user_id != request.user_id:
            raise AuthorizationError()
        if transition.requires_reason and not reason:
            raise ValidationError("Rejection reason is required")

        if transition.checks_balance:
            await _check_balance(session, request.user_id, request.days, today)

        before = model_to_audit_dict(request)

        request.status = transition.target.value
        request.rejection_reason = reason if transition.target == VacationStatus.REJECTED else None
        if transition.records_decision:
            request.approved_by_id = auth.user_id
            request.approved_at = datetime.now(UTC)
        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            target_user_id=request.user_id,
            entity_type=AuditEntityType.VACATION_REQUEST,
            entity_id=request.id,
            action=transition.action,
            before_json=before,
            after_json=model_to_audit_dict(request),
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(request)
    logger.info(
        "Vacation request updated actor=%s request=%s old_status=%s new_status=%s",
        auth.user_id,
        request.id,
        source,
        request.status,
    )
    return _build_vacation_response(request)


async def get_vacation_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> VacationResponse:
    """Get a single request visible to the caller."""
    request = await _get_request_or_404(session, request_id)
    if not await get_authority_check()(session, auth, request.user_id):
        raise AuthorizationError()
    return _build_vacation_response(request)


async def list_vacation_requests(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID | None = None,
    status: VacationStatus | None = None,
) -> VacationListResponse:
    """List requests newest first, scoped by the caller's role.

    ADMIN sees everything, a MANAGER their team and themselves, anyone else
    only their own requests.
    """
    query = select(VacationRequest)

    if auth.role == Role.ADMIN:
        if user_id is not None:
            query = query.where(col(VacationRequest.user_id) == user_id)
    elif auth.role == Role.MANAGER:
        visible = {*await team_member_ids(session, auth.user_id), auth.user_id}
        if user_id is not None:
            if user_id not in visible:
                raise AuthorizationError()
            query = query.where(col(VacationRequest.user_id) == user_id)
        else:
            query = query.where(col(VacationRequest.user_id).in_(visible))
    else:
        query = query.where(col(VacationRequest.user_id) == auth.user_id)

    if status is not None:
        query = query.where(col(VacationRequest.status) == status.value)

    result = await session.execute(query.order_by(col(VacationRequest.created_at).desc()))
    requests = list(result.scalars().all())

    return VacationListResponse(
        items=[_build_vacation_response(r) for r in requests],
        total=len(requests),
    )

# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Query

from vacationdesk.api.deps import AdminDep
from vacationdesk.db import SessionDep
from vacationdesk.schemas.audit import AuditLogListResponse
from vacationdesk.services.audit import list_audit_logs

audit_logs_router = APIRouter(
    prefix="/audit-logs",
    tags=["audit"],
)


@audit_logs_router.get("", response_model=AuditLogListResponse)
async def get_audit_logs(
    session: SessionDep,
    auth: AdminDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """List audit entries, newest first (admin only)."""
    return await list_audit_logs(session, offset, limit)

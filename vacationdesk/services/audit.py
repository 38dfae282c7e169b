from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from vacationdesk.models.audit import AuditLog
from vacationdesk.schemas.audit import AuditLogListResponse, AuditLogResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from vacationdesk.models.enums import AuditAction, AuditEntityType

# Actor recorded for scheduler-driven changes (accrual, rollover).
SYSTEM_ACTOR = uuid.UUID(int=0)


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel instance to a JSON-safe dict for audit logging."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        else:
            data[key] = value
    return data


async def write_audit_log(
    session: AsyncSession,
    *,
    actor_id: uuid.UUID,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    target_user_id: uuid.UUID | None = None,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Write an immutable audit log entry within the caller's transaction."""
    entry = AuditLog(
        actor_id=actor_id,
        target_user_id=target_user_id,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry


async def list_audit_logs(
    session: AsyncSession,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """List audit entries, newest first."""
    count_result = await session.execute(select(func.count()).select_from(AuditLog))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(e, from_attributes=True) for e in entries],
        total=total,
        offset=offset,
        limit=limit,
    )

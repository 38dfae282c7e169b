from sqlmodel import SQLModel

from vacationdesk.models.audit import AuditLog
from vacationdesk.models.balance import VacationBalance
from vacationdesk.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from vacationdesk.models.enums import (
    ACTIVE_STATUSES,
    USED_STATUSES,
    AuditAction,
    AuditEntityType,
    Role,
    VacationStatus,
)
from vacationdesk.models.holiday import Country, PublicHoliday
from vacationdesk.models.ledger import VacationAccrualLog, VacationRolloverLog
from vacationdesk.models.request import VacationRequest
from vacationdesk.models.user import ManagerEmployee, User

__all__ = [
    "ACTIVE_STATUSES",
    "USED_STATUSES",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Country",
    "ManagerEmployee",
    "PublicHoliday",
    "Role",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UpdatedAtMixin",
    "User",
    "VacationAccrualLog",
    "VacationBalance",
    "VacationRequest",
    "VacationRolloverLog",
    "VacationStatus",
]

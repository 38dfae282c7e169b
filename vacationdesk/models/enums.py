from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Role of an application user."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class VacationStatus(enum.StrEnum):
    """State machine for vacation requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    CANCELLATION_REQUESTED = "CANCELLATION_REQUESTED"


# Requests in these states block overlapping requests.
ACTIVE_STATUSES = frozenset(
    {VacationStatus.PENDING, VacationStatus.APPROVED, VacationStatus.CANCELLATION_REQUESTED}
)

# Requests in these states consume balance until a cancellation is confirmed.
USED_STATUSES = frozenset({VacationStatus.APPROVED, VacationStatus.CANCELLATION_REQUESTED})


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    VACATION_REQUEST = "VACATION_REQUEST"
    BALANCE = "BALANCE"
    USER = "USER"
    COUNTRY = "COUNTRY"
    HOLIDAY = "HOLIDAY"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    REQUEST_CANCELLATION = "REQUEST_CANCELLATION"
    CONFIRM_CANCELLATION = "CONFIRM_CANCELLATION"
    DECLINE_CANCELLATION = "DECLINE_CANCELLATION"
    BALANCE_ADJUSTMENT = "BALANCE_ADJUSTMENT"
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    MANAGER_ASSIGNED = "MANAGER_ASSIGNED"
    ROLE_CHANGED = "ROLE_CHANGED"

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from vacationdesk.models.enums import Role


class AuthContext(BaseModel):
    """Identity of the caller, as asserted by the identity provider."""

    user_id: uuid.UUID
    role: Role = Role.EMPLOYEE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

# ruff: noqa: B008, TC003
from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import Depends, Header, status

from vacationdesk.config import get_settings
from vacationdesk.exceptions import AppError, AuthorizationError
from vacationdesk.models.enums import Role
from vacationdesk.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: Role = Header(default=Role.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def require_admin(
    auth: AuthDep,
) -> AuthContext:
    """Require admin role for the request."""
    if not auth.is_admin:
        raise AuthorizationError("Admin access required")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]


async def verify_cron_secret(
    authorization: str | None = Header(default=None),
) -> None:
    """Check the scheduler's bearer token when CRON_SECRET is configured."""
    secret = get_settings().cron_secret
    if not secret:
        logger.warning("CRON_SECRET is not set; scheduled job endpoint is unprotected")
        return
    if authorization != f"Bearer {secret}":
        raise AppError("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)

# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, Header

from shiftpay.exceptions import AuthenticationError, AuthorizationError, ValidationError
from shiftpay.models.enums import Role
from shiftpay.schemas.auth import Actor


async def get_actor(
    x_user_id: uuid.UUID | None = Header(default=None),
    x_role: str = Header(default=Role.EMPLOYEE.value),
    x_company_id: uuid.UUID | None = Header(default=None),
) -> Actor:
    """Extract dev auth identity from request headers."""
    if x_user_id is None:
        raise AuthenticationError("X-User-Id header is required")
    try:
        role = Role(x_role.upper())
    except ValueError:
        raise ValidationError(f"Unknown role: {x_role}") from None
    return Actor(id=x_user_id, role=role, company_id=x_company_id)


ActorDep = Annotated[Actor, Depends(get_actor)]


def get_now() -> datetime:
    """Reference instant for the request. Overridden in tests."""
    return datetime.now(UTC)


NowDep = Annotated[datetime, Depends(get_now)]


async def require_admin(actor: ActorDep) -> Actor:
    """Require the DEVELOPER or ADMIN role for the request."""
    if actor.role not in (Role.DEVELOPER, Role.ADMIN):
        raise AuthorizationError("Admin access required")
    return actor


AdminDep = Annotated[Actor, Depends(require_admin)]

# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from shiftpay.models.enums import Role


class Actor(BaseModel):
    """Caller identity resolved by the identity layer before the core runs."""

    id: uuid.UUID
    role: Role = Role.EMPLOYEE
    company_id: uuid.UUID | None = None

    @property
    def is_privileged(self) -> bool:
        return self.role in (Role.DEVELOPER, Role.ADMIN, Role.MANAGER)

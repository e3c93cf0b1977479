# ruff: noqa: TC003
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from shiftpay.exceptions import AuthorizationError, NotFoundError
from shiftpay.models.enums import Role
from shiftpay.services.workers import WorkerInfo, get_worker_service

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement

    from shiftpay.schemas.auth import Actor


@dataclass(frozen=True)
class AccessScope:
    """Which owners' records an actor may see and act on.

    ``company_id`` restricts to one company, ``owner_id`` to one worker.
    A scope with neither is unrestricted.
    """

    actor: Actor
    company_id: uuid.UUID | None = None
    owner_id: uuid.UUID | None = None

    @property
    def unrestricted(self) -> bool:
        return self.company_id is None and self.owner_id is None

    def permits(self, owner_id: uuid.UUID, company_id: uuid.UUID | None) -> bool:
        """Whether a record owned by owner_id in company_id is visible."""
        if self.owner_id is not None and owner_id != self.owner_id:
            return False
        return not (self.company_id is not None and company_id != self.company_id)

    def can_review(self, owner_id: uuid.UUID, company_id: uuid.UUID | None) -> bool:
        """Whether the actor may approve or reject a record of this owner."""
        if owner_id == self.actor.id:
            return False
        if self.actor.role == Role.DEVELOPER:
            return True
        if self.actor.role in (Role.ADMIN, Role.MANAGER):
            return company_id is not None and company_id == self.actor.company_id
        return False

    def conditions(
        self,
        owner_column: Any,
        company_column: Any,
        *,
        include_own: bool = True,
    ) -> list[ColumnElement[bool]]:
        """SQL conditions restricting a query to this scope.

        With ``include_own=False`` a MANAGER's own records are left out.
        """
        filters: list[ColumnElement[bool]] = []
        if self.owner_id is not None:
            filters.append(owner_column == self.owner_id)
        if self.company_id is not None:
            filters.append(company_column == self.company_id)
        if not include_own and self.actor.role == Role.MANAGER:
            filters.append(owner_column != self.actor.id)
        return filters

    async def resolve_owner(self, owner_id: uuid.UUID) -> WorkerInfo | None:
        """Check that an explicitly requested owner lies within this scope.

        Employees may only name themselves. Admins and managers may name any
        worker of their company; an unknown worker is a 404. Developers may
        name anyone.
        """
        if self.owner_id is not None:
            if owner_id != self.owner_id:
                raise AuthorizationError("Employees may only access their own records")
            return await get_worker_service().get_worker(owner_id)

        worker = await get_worker_service().get_worker(owner_id)
        if self.company_id is None:
            return worker
        if worker is None:
            raise NotFoundError("Worker not found")
        if worker.company_id != self.company_id:
            raise AuthorizationError("Worker belongs to another company")
        return worker


def scope_for(actor: Actor) -> AccessScope:
    """Build the access scope for an actor's role and company."""
    if actor.role == Role.DEVELOPER:
        return AccessScope(actor=actor)
    if actor.role in (Role.ADMIN, Role.MANAGER):
        if actor.company_id is None:
            raise AuthorizationError("A company is required for this role")
        return AccessScope(actor=actor, company_id=actor.company_id)
    return AccessScope(actor=actor, owner_id=actor.id)

"""Tests for role-based access scopes."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select
from sqlmodel import col

from shiftpay.exceptions import AuthorizationError, NotFoundError
from shiftpay.models.enums import Role
from shiftpay.models.interval import WorkInterval
from shiftpay.schemas.auth import Actor
from shiftpay.services.scope import scope_for
from shiftpay.services.workers import InMemoryWorkerService, WorkerInfo

COMPANY_X = uuid.uuid4()
COMPANY_Y = uuid.uuid4()
WORKER_X = uuid.uuid4()
WORKER_Y = uuid.uuid4()


def _actor(role: Role, company_id: uuid.UUID | None = COMPANY_X) -> Actor:
    return Actor(id=uuid.uuid4(), role=role, company_id=company_id)


@pytest.fixture(autouse=True)
def _seed_workers(worker_service: InMemoryWorkerService) -> None:
    worker_service.seed(WorkerInfo(id=WORKER_X, company_id=COMPANY_X, name="X", email="x@example.com"))
    worker_service.seed(WorkerInfo(id=WORKER_Y, company_id=COMPANY_Y, name="Y", email="y@example.com"))


# ---------------------------------------------------------------------------
# scope_for / permits
# ---------------------------------------------------------------------------


def test_developer_is_unrestricted() -> None:
    scope = scope_for(_actor(Role.DEVELOPER, company_id=None))
    assert scope.unrestricted
    assert scope.permits(WORKER_Y, COMPANY_Y)


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER])
def test_company_roles_see_only_their_company(role: Role) -> None:
    scope = scope_for(_actor(role))
    assert scope.permits(WORKER_X, COMPANY_X)
    assert not scope.permits(WORKER_Y, COMPANY_Y)
    assert not scope.permits(WORKER_X, None)


def test_company_role_without_company_is_refused() -> None:
    with pytest.raises(AuthorizationError):
        scope_for(_actor(Role.MANAGER, company_id=None))


def test_employee_sees_only_own_records() -> None:
    actor = _actor(Role.EMPLOYEE)
    scope = scope_for(actor)
    assert scope.permits(actor.id, COMPANY_X)
    assert scope.permits(actor.id, None)
    assert not scope.permits(WORKER_X, COMPANY_X)


# ---------------------------------------------------------------------------
# can_review
# ---------------------------------------------------------------------------


def test_nobody_reviews_their_own_interval() -> None:
    for role in (Role.DEVELOPER, Role.ADMIN, Role.MANAGER):
        actor = _actor(role)
        assert not scope_for(actor).can_review(actor.id, COMPANY_X)


def test_manager_reviews_only_own_company() -> None:
    scope = scope_for(_actor(Role.MANAGER))
    assert scope.can_review(WORKER_X, COMPANY_X)
    assert not scope.can_review(WORKER_Y, COMPANY_Y)


def test_developer_reviews_any_company() -> None:
    assert scope_for(_actor(Role.DEVELOPER)).can_review(WORKER_Y, COMPANY_Y)


def test_employee_never_reviews() -> None:
    assert not scope_for(_actor(Role.EMPLOYEE)).can_review(WORKER_X, COMPANY_X)


# ---------------------------------------------------------------------------
# resolve_owner
# ---------------------------------------------------------------------------


async def test_employee_naming_another_owner_is_forbidden() -> None:
    with pytest.raises(AuthorizationError):
        await scope_for(_actor(Role.EMPLOYEE)).resolve_owner(WORKER_X)


async def test_employee_naming_self_is_allowed() -> None:
    actor = Actor(id=WORKER_X, role=Role.EMPLOYEE, company_id=COMPANY_X)
    worker = await scope_for(actor).resolve_owner(WORKER_X)
    assert worker is not None
    assert worker.id == WORKER_X


async def test_admin_naming_worker_of_other_company_is_forbidden() -> None:
    with pytest.raises(AuthorizationError):
        await scope_for(_actor(Role.ADMIN)).resolve_owner(WORKER_Y)


async def test_admin_naming_unknown_worker_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        await scope_for(_actor(Role.ADMIN)).resolve_owner(uuid.uuid4())


async def test_developer_may_name_unknown_worker() -> None:
    assert await scope_for(_actor(Role.DEVELOPER)).resolve_owner(uuid.uuid4()) is None


# ---------------------------------------------------------------------------
# conditions
# ---------------------------------------------------------------------------


def _compiled(conditions: list) -> str:
    query = select(WorkInterval).where(*conditions)
    return str(query.compile(compile_kwargs={"literal_binds": False}))


def test_manager_list_all_excludes_own_records_by_default() -> None:
    scope = scope_for(_actor(Role.MANAGER))
    owner, company = col(WorkInterval.owner_id), col(WorkInterval.company_id)
    assert len(scope.conditions(owner, company, include_own=False)) == 2
    assert len(scope.conditions(owner, company, include_own=True)) == 1


def test_admin_list_all_keeps_own_records() -> None:
    scope = scope_for(_actor(Role.ADMIN))
    owner, company = col(WorkInterval.owner_id), col(WorkInterval.company_id)
    assert len(scope.conditions(owner, company, include_own=False)) == 1


def test_developer_has_no_conditions() -> None:
    scope = scope_for(_actor(Role.DEVELOPER))
    assert scope.conditions(col(WorkInterval.owner_id), col(WorkInterval.company_id)) == []


def test_employee_conditions_filter_by_owner() -> None:
    scope = scope_for(_actor(Role.EMPLOYEE))
    sql = _compiled(scope.conditions(col(WorkInterval.owner_id), col(WorkInterval.company_id)))
    assert "work_interval.owner_id = " in sql
    assert "company_id =" not in sql

"""Tests for the worker directory endpoints."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpx import AsyncClient

    from shiftpay.services.workers import InMemoryWorkerService

COMPANY_ID = uuid.uuid4()
OTHER_COMPANY_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
WORKER_ID = uuid.uuid4()

URL = "/workers"


def _headers(user_id: uuid.UUID, role: str = "EMPLOYEE", company_id: uuid.UUID = COMPANY_ID) -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role, "X-Company-Id": str(company_id)}


ADMIN_HEADERS = _headers(ADMIN_ID, "ADMIN")
WORKER_BODY = {"name": "Maria", "email": "maria@example.com", "hourly_rate": "20.00"}


async def test_admin_registers_worker(async_client: AsyncClient, worker_service: InMemoryWorkerService) -> None:
    resp = await async_client.put(f"{URL}/{WORKER_ID}", json=WORKER_BODY, headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["company_id"] == str(COMPANY_ID)
    assert data["role"] == "EMPLOYEE"
    assert Decimal(data["hourly_rate"]) == Decimal("20.00")

    stored = await worker_service.get_worker(WORKER_ID)
    assert stored is not None
    assert stored.name == "Maria"


async def test_upsert_updates_rate(async_client: AsyncClient) -> None:
    await async_client.put(f"{URL}/{WORKER_ID}", json=WORKER_BODY, headers=ADMIN_HEADERS)
    resp = await async_client.put(
        f"{URL}/{WORKER_ID}", json={**WORKER_BODY, "hourly_rate": "25.50"}, headers=ADMIN_HEADERS
    )
    assert Decimal(resp.json()["hourly_rate"]) == Decimal("25.50")


async def test_admin_cannot_register_into_other_company(async_client: AsyncClient) -> None:
    body = {**WORKER_BODY, "company_id": str(OTHER_COMPANY_ID)}
    resp = await async_client.put(f"{URL}/{WORKER_ID}", json=body, headers=ADMIN_HEADERS)
    assert resp.status_code == 403


async def test_developer_registers_into_any_company(async_client: AsyncClient) -> None:
    body = {**WORKER_BODY, "company_id": str(OTHER_COMPANY_ID)}
    resp = await async_client.put(f"{URL}/{WORKER_ID}", json=body, headers=_headers(uuid.uuid4(), "DEVELOPER"))
    assert resp.status_code == 200
    assert resp.json()["company_id"] == str(OTHER_COMPANY_ID)


async def test_non_admins_cannot_register(async_client: AsyncClient) -> None:
    for role in ("MANAGER", "EMPLOYEE"):
        resp = await async_client.put(f"{URL}/{WORKER_ID}", json=WORKER_BODY, headers=_headers(uuid.uuid4(), role))
        assert resp.status_code == 403


async def test_negative_rate_is_rejected(async_client: AsyncClient) -> None:
    resp = await async_client.put(
        f"{URL}/{WORKER_ID}", json={**WORKER_BODY, "hourly_rate": "-1.00"}, headers=ADMIN_HEADERS
    )
    assert resp.status_code == 422


async def test_get_worker_scope(async_client: AsyncClient) -> None:
    await async_client.put(f"{URL}/{WORKER_ID}", json=WORKER_BODY, headers=ADMIN_HEADERS)

    resp = await async_client.get(f"{URL}/{WORKER_ID}", headers=_headers(WORKER_ID))
    assert resp.status_code == 200
    assert resp.json()["name"] == "Maria"

    resp = await async_client.get(f"{URL}/{WORKER_ID}", headers=_headers(uuid.uuid4(), "MANAGER"))
    assert resp.status_code == 200

    resp = await async_client.get(f"{URL}/{WORKER_ID}", headers=_headers(uuid.uuid4()))
    assert resp.status_code == 403

    resp = await async_client.get(f"{URL}/{WORKER_ID}", headers=_headers(uuid.uuid4(), "MANAGER", OTHER_COMPANY_ID))
    assert resp.status_code == 403


async def test_get_unknown_worker(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"{URL}/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    assert resp.status_code == 404

    resp = await async_client.get(f"{URL}/{uuid.uuid4()}", headers=_headers(uuid.uuid4(), "DEVELOPER"))
    assert resp.status_code == 404

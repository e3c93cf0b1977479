"""Tests for the worker balance: approved hours, amount due, amount paid."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pytest

from shiftpay.services.workers import InMemoryWorkerService, WorkerInfo

if TYPE_CHECKING:
    from httpx import AsyncClient

COMPANY_ID = uuid.uuid4()
OTHER_COMPANY_ID = uuid.uuid4()
WORKER_ID = uuid.uuid4()
COWORKER_ID = uuid.uuid4()
NO_RATE_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()


def _headers(user_id: uuid.UUID, role: str = "EMPLOYEE", company_id: uuid.UUID = COMPANY_ID) -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role, "X-Company-Id": str(company_id)}


WORKER_HEADERS = _headers(WORKER_ID)
MANAGER_HEADERS = _headers(MANAGER_ID, "MANAGER")
ADMIN_HEADERS = _headers(ADMIN_ID, "ADMIN")


@pytest.fixture(autouse=True)
def _seed_workers(worker_service: InMemoryWorkerService) -> None:
    worker_service.seed(
        WorkerInfo(id=WORKER_ID, company_id=COMPANY_ID, name="W", email="w@example.com", hourly_rate=Decimal("20.00"))
    )
    worker_service.seed(WorkerInfo(id=COWORKER_ID, company_id=COMPANY_ID, name="C", email="c@example.com"))
    worker_service.seed(WorkerInfo(id=NO_RATE_ID, company_id=COMPANY_ID, name="N", email="n@example.com"))


async def _interval(
    client: AsyncClient,
    start: str,
    end: str,
    day: str = "2024-03-01",
    review: str | None = "approve",
    headers: dict[str, str] = WORKER_HEADERS,
) -> str:
    resp = await client.post("/intervals", json={"date": day, "start": start, "end": end}, headers=headers)
    assert resp.status_code == 201, resp.text
    interval_id: str = resp.json()["id"]
    if review == "approve":
        resp = await client.post(f"/intervals/{interval_id}/approve", headers=MANAGER_HEADERS)
        assert resp.status_code == 200, resp.text
    elif review == "reject":
        resp = await client.post(
            f"/intervals/{interval_id}/reject", json={"reason": "Not scheduled"}, headers=MANAGER_HEADERS
        )
        assert resp.status_code == 200, resp.text
    return interval_id


async def _pay(client: AsyncClient, interval_ids: list[str]) -> str:
    resp = await client.post(
        "/payments",
        json={
            "payee_id": str(WORKER_ID),
            "interval_ids": interval_ids,
            "payment_method": "PIX",
            "period_start": "2024-03-01",
            "period_end": "2024-03-31",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    payment_id: str = resp.json()["id"]
    return payment_id


async def _balance(client: AsyncClient, headers: dict[str, str] = WORKER_HEADERS, **params: Any) -> dict[str, Any]:
    resp = await client.get(f"/workers/{WORKER_ID}/balance", params=params, headers=headers)
    assert resp.status_code == 200, resp.text
    result: dict[str, Any] = resp.json()
    return result


async def test_empty_balance(async_client: AsyncClient) -> None:
    data = await _balance(async_client)

    assert data["worker_id"] == str(WORKER_ID)
    assert data["total_approved_hours"] == 0
    assert Decimal(data["total_amount_due"]) == 0
    assert Decimal(data["total_paid"]) == 0
    assert Decimal(data["balance"]) == 0
    assert data["unpaid_intervals"] == []


async def test_balance_counts_only_approved_hours(async_client: AsyncClient) -> None:
    first = await _interval(async_client, "09:00", "11:00")
    second = await _interval(async_client, "13:00", "16:00")
    await _interval(async_client, "17:00", "18:00", review=None)
    await _interval(async_client, "19:00", "20:00", review="reject")

    data = await _balance(async_client)

    assert data["total_approved_hours"] == 5.0
    assert Decimal(data["hourly_rate"]) == Decimal("20.00")
    assert Decimal(data["total_amount_due"]) == Decimal("100.00")
    assert data["unpaid_hours"] == 5.0
    assert data["paid_hours"] == 0
    assert [i["id"] for i in data["unpaid_intervals"]] == [first, second]
    assert [Decimal(i["estimated_amount"]) for i in data["unpaid_intervals"]] == [Decimal("40.00"), Decimal("60.00")]


async def test_pending_payment_is_not_counted_as_paid(async_client: AsyncClient) -> None:
    first = await _interval(async_client, "09:00", "11:00")
    second = await _interval(async_client, "13:00", "16:00")
    await _pay(async_client, [first])

    data = await _balance(async_client)

    assert Decimal(data["total_paid"]) == 0
    assert Decimal(data["balance"]) == Decimal("100.00")
    assert data["paid_hours"] == 2.0
    assert data["unpaid_hours"] == 3.0
    assert [i["id"] for i in data["unpaid_intervals"]] == [second]


async def test_completed_payment_reduces_balance(async_client: AsyncClient) -> None:
    first = await _interval(async_client, "09:00", "11:00")
    await _interval(async_client, "13:00", "16:00")
    payment_id = await _pay(async_client, [first])
    resp = await async_client.patch(f"/payments/{payment_id}", json={"status": "COMPLETED"}, headers=WORKER_HEADERS)
    assert resp.status_code == 200

    data = await _balance(async_client)

    assert Decimal(data["total_paid"]) == Decimal("40.00")
    assert Decimal(data["balance"]) == Decimal("60.00")


async def test_balance_date_range(async_client: AsyncClient) -> None:
    await _interval(async_client, "09:00", "11:00", day="2024-03-01")
    later = await _interval(async_client, "09:00", "12:00", day="2024-03-02")

    data = await _balance(async_client, start_date="2024-03-02", end_date="2024-03-31")

    assert data["start_date"] == "2024-03-02"
    assert data["total_approved_hours"] == 3.0
    assert Decimal(data["total_amount_due"]) == Decimal("60.00")
    assert [i["id"] for i in data["unpaid_intervals"]] == [later]


async def test_worker_without_rate_owes_nothing(async_client: AsyncClient) -> None:
    await _interval(async_client, "09:00", "11:00", headers=_headers(NO_RATE_ID))

    resp = await async_client.get(f"/workers/{NO_RATE_ID}/balance", headers=MANAGER_HEADERS)
    data = resp.json()

    assert data["hourly_rate"] is None
    assert data["total_approved_hours"] == 2.0
    assert Decimal(data["total_amount_due"]) == 0
    assert Decimal(data["unpaid_intervals"][0]["estimated_amount"]) == 0


async def test_balance_scope(async_client: AsyncClient) -> None:
    await _balance(async_client, headers=MANAGER_HEADERS)
    await _balance(async_client, headers=_headers(uuid.uuid4(), "DEVELOPER"))

    resp = await async_client.get(f"/workers/{WORKER_ID}/balance", headers=_headers(COWORKER_ID))
    assert resp.status_code == 403

    foreign = _headers(uuid.uuid4(), "MANAGER", OTHER_COMPANY_ID)
    resp = await async_client.get(f"/workers/{WORKER_ID}/balance", headers=foreign)
    assert resp.status_code == 403

    resp = await async_client.get(f"/workers/{uuid.uuid4()}/balance", headers=ADMIN_HEADERS)
    assert resp.status_code == 404

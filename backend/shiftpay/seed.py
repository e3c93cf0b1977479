"""Seed script for development data.

Run with:  python -m shiftpay.seed
Against another host:  SHIFTPAY_URL=http://api:8000 python -m shiftpay.seed
"""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import date, timedelta

import httpx

BASE_URL = os.environ.get("SHIFTPAY_URL", "http://localhost:8000")
COMPANY_ID = "00000000-0000-0000-0000-000000000001"
ADMIN_ID = "00000000-0000-0000-0000-000000000001"

# Well-known worker UUIDs
MARIA_ID = "00000000-0000-0000-0000-000000000002"
JOAO_ID = "00000000-0000-0000-0000-000000000003"
MANAGER_ID = "00000000-0000-0000-0000-000000000004"

WORKERS = [
    {"id": ADMIN_ID, "name": "Ana Admin", "email": "ana@example.com", "role": "ADMIN", "hourly_rate": None},
    {"id": MARIA_ID, "name": "Maria Souza", "email": "maria@example.com", "role": "EMPLOYEE", "hourly_rate": "20.00"},
    {"id": JOAO_ID, "name": "Joao Lima", "email": "joao@example.com", "role": "EMPLOYEE", "hourly_rate": "32.50"},
    {"id": MANAGER_ID, "name": "Marcos Gerente", "email": "marcos@example.com", "role": "MANAGER", "hourly_rate": None},
]


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-Company-Id": COMPANY_ID,
        "X-User-Id": user_id,
        "X-Role": role,
    }


ADMIN_HEADERS = _headers(ADMIN_ID, "ADMIN")


async def _safe_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: dict[str, str],
    json: dict | None,
    label: str,
) -> dict | None:
    """Send a request, treating 409 as already-seeded."""
    resp = await client.request(method, url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_workers(client: httpx.AsyncClient) -> None:
    """Register workers in the directory via PUT (upsert)."""
    print("\n--- Seeding workers ---")
    for worker in WORKERS:
        body = {k: v for k, v in worker.items() if k != "id"}
        await _safe_request(client, "PUT", f"{BASE_URL}/workers/{worker['id']}", ADMIN_HEADERS, body, worker["name"])


def _last_weekdays(today: date, count: int) -> list[date]:
    days: list[date] = []
    candidate = today - timedelta(days=1)
    while len(days) < count:
        if candidate.weekday() < 5:
            days.append(candidate)
        candidate -= timedelta(days=1)
    return sorted(days)


async def seed_intervals(client: httpx.AsyncClient, today: date) -> dict[str, list[str]]:
    """Submit a week of intervals for each employee and review them."""
    print("\n--- Seeding intervals ---")
    created: dict[str, list[str]] = {MARIA_ID: [], JOAO_ID: []}
    for worker_id in created:
        headers = _headers(worker_id, "EMPLOYEE")
        for day in _last_weekdays(today, 5):
            for start, end, project in (("09:00", "12:00", "onboarding"), ("13:00", "17:30", "support")):
                result = await _safe_request(
                    client,
                    "POST",
                    f"{BASE_URL}/intervals",
                    headers,
                    {"date": day.isoformat(), "start": start, "end": end, "project": project},
                    f"Interval {worker_id[-1]} {day} {start}-{end}",
                )
                if result:
                    created[worker_id].append(result["id"])

    print("\n--- Reviewing intervals ---")
    manager_headers = _headers(MANAGER_ID, "MANAGER")
    for worker_id, interval_ids in created.items():
        for index, interval_id in enumerate(interval_ids):
            if worker_id == JOAO_ID and index == len(interval_ids) - 1:
                await _safe_request(
                    client,
                    "POST",
                    f"{BASE_URL}/intervals/{interval_id}/reject",
                    manager_headers,
                    {"reason": "Afternoon not on the schedule"},
                    f"Reject {interval_id}",
                )
                continue
            await _safe_request(
                client, "POST", f"{BASE_URL}/intervals/{interval_id}/approve", manager_headers, None, f"Approve {interval_id}"
            )
    return created


async def seed_payment(client: httpx.AsyncClient, today: date, interval_ids: list[str]) -> None:
    """Pay Maria for her approved intervals."""
    print("\n--- Seeding payment ---")
    if not interval_ids:
        print("  [SKIP] no new intervals to pay")
        return
    days = _last_weekdays(today, 5)
    await _safe_request(
        client,
        "POST",
        f"{BASE_URL}/payments",
        ADMIN_HEADERS,
        {
            "payee_id": MARIA_ID,
            "interval_ids": interval_ids,
            "payment_method": "PIX",
            "reference": "seed-week-1",
            "period_start": days[0].isoformat(),
            "period_end": days[-1].isoformat(),
        },
        "Payment: Maria, last week",
    )


async def main() -> None:
    print("=" * 60)
    print("  ShiftPay — Development Seed Script")
    print("=" * 60)

    today = date.today()
    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        await seed_workers(client)
        created = await seed_intervals(client, today)
        await seed_payment(client, today, created[MARIA_ID])

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())

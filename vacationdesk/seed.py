"""Seed script for development data.

Run with:  python -m vacationdesk.seed
Talks to a running API over HTTP, so every write goes through the same
validation and audit path as real traffic. Re-running skips existing rows.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta
from typing import Any

import httpx

BASE_URL = "http://localhost:8000"
BOOTSTRAP_ADMIN_ID = "00000000-0000-0000-0000-000000000001"

COUNTRY = {"name": "United States", "code": "US"}

HOLIDAYS = [
    {"date": "2026-01-01", "name": "New Year's Day"},
    {"date": "2026-05-25", "name": "Memorial Day"},
    {"date": "2026-07-03", "name": "Independence Day (Observed)"},
    {"date": "2026-09-07", "name": "Labor Day"},
    {"date": "2026-11-26", "name": "Thanksgiving Day"},
    {"date": "2026-12-25", "name": "Christmas Day"},
]

USERS = [
    {"email": "admin@example.com", "name": "Ada Admin", "role": "ADMIN", "employment_date": "2022-01-10"},
    {"email": "maria@example.com", "name": "Maria Manager", "role": "MANAGER", "employment_date": "2023-02-01"},
    {
        "email": "alice@example.com",
        "name": "Alice Johnson",
        "role": "EMPLOYEE",
        "employment_date": "2023-01-15",
        "initial_balance": 3,
    },
    {"email": "bob@example.com", "name": "Bob Smith", "role": "EMPLOYEE", "employment_date": "2024-06-01"},
]


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "X-User-Id": user_id, "X-Role": role}


ADMIN_HEADERS = _headers(BOOTSTRAP_ADMIN_ID, "ADMIN")


async def _safe_post(
    client: httpx.AsyncClient,
    url: str,
    json: dict[str, Any],
    label: str,
    headers: dict[str, str] = ADMIN_HEADERS,
) -> dict[str, Any] | None:
    resp = await client.post(url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_country(client: httpx.AsyncClient) -> str | None:
    print("\n--- Seeding country and holidays ---")
    result = await _safe_post(client, f"{BASE_URL}/countries", COUNTRY, f"Country: {COUNTRY['code']}")
    country_id = result["id"] if result else None
    if country_id is None:
        resp = await client.get(f"{BASE_URL}/countries", headers=ADMIN_HEADERS)
        if resp.status_code == 200:
            for item in resp.json().get("items", []):
                if item["code"] == COUNTRY["code"]:
                    country_id = item["id"]
    if country_id is None:
        return None

    for holiday in HOLIDAYS:
        await _safe_post(
            client,
            f"{BASE_URL}/countries/{country_id}/holidays",
            holiday,
            f"Holiday: {holiday['name']}",
        )
    return country_id


async def seed_users(client: httpx.AsyncClient, country_id: str | None) -> dict[str, str]:
    print("\n--- Seeding users ---")
    for user in USERS:
        body = {**user, "country_id": country_id}
        await _safe_post(client, f"{BASE_URL}/users", body, f"User: {user['email']}")

    resp = await client.get(f"{BASE_URL}/users", headers=ADMIN_HEADERS)
    resp.raise_for_status()
    return {item["email"]: item["id"] for item in resp.json()["items"]}


async def seed_team(client: httpx.AsyncClient, user_ids: dict[str, str]) -> None:
    print("\n--- Seeding team ---")
    manager_id = user_ids["maria@example.com"]
    for email in ("alice@example.com", "bob@example.com"):
        resp = await client.patch(
            f"{BASE_URL}/users/{user_ids[email]}",
            json={"manager_id": manager_id},
            headers=ADMIN_HEADERS,
        )
        status = "OK" if resp.status_code == 200 else f"ERROR {resp.status_code}"
        print(f"  [{status}] {email} -> maria@example.com")


async def seed_vacations(client: httpx.AsyncClient, user_ids: dict[str, str]) -> None:
    print("\n--- Seeding vacation requests ---")
    alice_id = user_ids["alice@example.com"]
    manager_headers = _headers(user_ids["maria@example.com"], "MANAGER")
    start = date.today() + timedelta(days=30)

    created = await _safe_post(
        client,
        f"{BASE_URL}/vacations",
        {
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=2)).isoformat(),
            "comment": "Long weekend",
        },
        "Alice: 3-day request",
        headers=_headers(alice_id, "EMPLOYEE"),
    )
    if created is None:
        return

    resp = await client.patch(
        f"{BASE_URL}/vacations/{created['id']}",
        json={"status": "APPROVED"},
        headers=manager_headers,
    )
    status = "OK" if resp.status_code == 200 else f"ERROR {resp.status_code} {resp.text[:200]}"
    print(f"  [{status}] Maria approves Alice's request")


async def main() -> None:
    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            print(f"API is not reachable at {BASE_URL}: {exc}")
            sys.exit(1)

        country_id = await seed_country(client)
        user_ids = await seed_users(client, country_id)
        await seed_team(client, user_ids)
        await seed_vacations(client, user_ids)

    print("\nSeed complete.")


if __name__ == "__main__":
    asyncio.run(main())

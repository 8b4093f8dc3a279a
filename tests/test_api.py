import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tuition_ledger.core.config import Settings
from tuition_ledger.main import create_app

from support import ADMIN, ONE_UNIT, SEMESTER, STUDENT_1, STUDENT_2, UNIVERSITY, auth_headers


def future_deadline() -> int:
    return int(time.time()) + 30 * 86400


@asynccontextmanager
async def running_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


async def setup_semester(client: AsyncClient, admin: dict, base_amount: int = ONE_UNIT) -> None:
    response = await client.post(
        "/api/v1/fees/schedules",
        json={"semester": SEMESTER, "base_amount": base_amount, "deadline": future_deadline()},
        headers=admin,
    )
    assert response.status_code == 201
    response = await client.post(
        "/api/v1/students",
        json={"wallet": STUDENT_1, "student_id": "SV001"},
        headers=admin,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/finance/summary")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client: AsyncClient) -> None:
    response = await client.get(
        "/api/v1/finance/summary",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_student_cannot_run_admin_writes(client: AsyncClient, app_settings: Settings) -> None:
    student = auth_headers(STUDENT_1, app_settings)

    response = await client.post(
        "/api/v1/students",
        json={"wallet": STUDENT_1, "student_id": "SV001"},
        headers=student,
    )
    assert response.status_code == 403

    response = await client.post(
        "/api/v1/fees/schedules",
        json={"semester": SEMESTER, "base_amount": ONE_UNIT, "deadline": future_deadline()},
        headers=student,
    )
    assert response.status_code == 403

    response = await client.post("/api/v1/payments/1/refund", headers=student)
    assert response.status_code == 403

    response = await client.post(
        "/api/v1/payments/restore",
        json={"wallet": STUDENT_1, "semester": SEMESTER, "amount": 1, "timestamp": 1},
        headers=student,
    )
    assert response.status_code == 403

    response = await client.get("/api/v1/snapshot", headers=student)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_payment_flow(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    student = auth_headers(STUDENT_1, app_settings)
    await setup_semester(client, admin)

    response = await client.get(
        "/api/v1/fees/calculate",
        params={"wallet": STUDENT_1, "semester": SEMESTER},
        headers=student,
    )
    assert response.status_code == 200
    assert response.json()["fee"] == ONE_UNIT

    response = await client.post(
        "/api/v1/payments/pay",
        json={"semester": SEMESTER, "amount": ONE_UNIT},
        headers=student,
    )
    assert response.status_code == 201
    payment = response.json()
    assert payment["payment_id"] == 1
    assert payment["wallet"] == STUDENT_1
    assert payment["remaining"] == ONE_UNIT

    response = await client.post(
        f"/api/v1/students/{STUDENT_1}/scholarship",
        json={"percent": 30},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json() == {"wallet": STUDENT_1, "percent": 30, "total_refund": 3 * 10**17}

    response = await client.post("/api/v1/payments/1/refund", headers=admin)
    assert response.status_code == 200
    assert response.json() == {"payment_id": 1, "amount": 7 * 10**17}

    response = await client.get("/api/v1/finance/summary", headers=student)
    assert response.status_code == 200
    assert response.json() == {
        "available_balance": 0,
        "total_collected": ONE_UNIT,
        "total_refunded": ONE_UNIT,
        "settlement_mode": "hold_funds",
    }

    response = await client.get(
        "/api/v1/payments/status",
        params={"wallet": STUDENT_1, "semester": SEMESTER},
        headers=student,
    )
    assert response.json()["paid"] is False


@pytest.mark.asyncio
async def test_domain_errors_carry_code_and_category(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    student = auth_headers(STUDENT_1, app_settings)
    await setup_semester(client, admin)

    body = {"semester": SEMESTER, "amount": ONE_UNIT}
    assert (await client.post("/api/v1/payments/pay", json=body, headers=student)).status_code == 201

    response = await client.post("/api/v1/payments/pay", json=body, headers=student)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "AlreadyPaid"
    assert response.json()["detail"]["category"] == "conflict"

    response = await client.get(
        "/api/v1/payments/history",
        params={"start_id": 0, "count": 5},
        headers=admin,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "InvalidRange"

    response = await client.post(
        "/api/v1/payments/pay",
        json=body,
        headers=auth_headers(STUDENT_2, app_settings),
    )
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "NotRegistered"

    response = await client.post("/api/v1/payments/99/refund", headers=admin)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "NotFound"


@pytest.mark.asyncio
async def test_students_read_only_their_own_records(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    await setup_semester(client, admin)

    response = await client.get(f"/api/v1/students/{STUDENT_1}", headers=auth_headers(STUDENT_1, app_settings))
    assert response.status_code == 200
    assert response.json()["student_id"] == "SV001"

    response = await client.get(f"/api/v1/students/{STUDENT_1}", headers=auth_headers(STUDENT_2, app_settings))
    assert response.status_code == 403

    response = await client.get(f"/api/v1/students/{STUDENT_2}", headers=admin)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_registration_request_flow(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    student = auth_headers(STUDENT_2, app_settings)

    response = await client.post("/api/v1/registration-requests", json={"student_id": "SV002"}, headers=student)
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    response = await client.post("/api/v1/registration-requests", json={"student_id": "SV002"}, headers=student)
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "DuplicateRequest"

    response = await client.get("/api/v1/registration-requests/pending", headers=admin)
    assert [r["wallet"] for r in response.json()] == [STUDENT_2]

    response = await client.post(f"/api/v1/registration-requests/{STUDENT_2}/approve", headers=admin)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_at"] is not None

    response = await client.get("/api/v1/students/count", headers=student)
    assert response.json() == {"count": 1}

    response = await client.post(f"/api/v1/registration-requests/{STUDENT_2}/approve", headers=admin)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "RequestNotFound"


@pytest.mark.asyncio
async def test_restart_restores_from_snapshot(app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    student = auth_headers(STUDENT_1, app_settings)

    async with running_client(create_app(app_settings)) as client:
        await setup_semester(client, admin)
        await client.post("/api/v1/payments/pay", json={"semester": SEMESTER, "amount": ONE_UNIT}, headers=student)
        await client.post(f"/api/v1/students/{STUDENT_1}/scholarship", json={"percent": 30}, headers=admin)
        before = (await client.get("/api/v1/finance/summary", headers=admin)).json()

    async with running_client(create_app(app_settings)) as client:
        response = await client.get("/api/v1/snapshot/restore-report", headers=admin)
        report = response.json()
        assert report["failed"] == 0
        assert report["restored"] == 4

        response = await client.get("/api/v1/payments/1", headers=student)
        assert response.status_code == 200
        assert response.json()["remaining"] == 7 * 10**17

        response = await client.get(f"/api/v1/students/{STUDENT_1}", headers=student)
        assert response.json()["scholarship_percent"] == 30

        assert (await client.get("/api/v1/finance/summary", headers=admin)).json() == before

        response = await client.post(
            "/api/v1/payments/pay",
            json={"semester": SEMESTER, "amount": ONE_UNIT},
            headers=student,
        )
        assert response.status_code == 409


@pytest.mark.asyncio
async def test_snapshot_endpoint_returns_document(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    await setup_semester(client, admin)

    response = await client.get("/api/v1/snapshot", headers=admin)
    assert response.status_code == 200
    document = response.json()
    assert document["students"][0]["studentId"] == "SV001"
    assert document["feeSchedules"][0]["amount"] == str(ONE_UNIT)
    assert document["lastUpdated"] is not None

    student = auth_headers(STUDENT_1, app_settings)
    await client.post("/api/v1/payments/pay", json={"semester": SEMESTER, "amount": ONE_UNIT}, headers=student)

    response = await client.get(f"/api/v1/snapshot/payments/{STUDENT_1}", headers=student)
    assert response.status_code == 200
    assert response.json() == [
        {
            "payment_id": 1,
            "wallet": STUDENT_1,
            "semester": SEMESTER,
            "amount": ONE_UNIT,
            "remaining": ONE_UNIT,
            "refunded": False,
            "timestamp": response.json()[0]["timestamp"],
        }
    ]

    response = await client.get(f"/api/v1/snapshot/payments/{STUDENT_1}", headers=auth_headers(STUDENT_2, app_settings))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_restore_payment_endpoint(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)
    await setup_semester(client, admin)

    response = await client.post(
        "/api/v1/payments/restore",
        json={"wallet": STUDENT_1, "semester": SEMESTER, "amount": ONE_UNIT, "timestamp": 1_600_000_000},
        headers=admin,
    )
    assert response.status_code == 201
    assert response.json()["timestamp"] == 1_600_000_000

    response = await client.get("/api/v1/payments/counter", headers=admin)
    assert response.json() == {"payment_counter": 1}


@pytest.mark.asyncio
async def test_university_wallet_and_deposit(client: AsyncClient, app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)

    response = await client.get("/api/v1/finance/university-wallet", headers=admin)
    assert response.json() == {"wallet": UNIVERSITY}

    response = await client.put(
        "/api/v1/finance/university-wallet",
        json={"wallet": "0x" + "B" * 40},
        headers=admin,
    )
    assert response.status_code == 200
    assert response.json() == {"wallet": "0x" + "b" * 40}

    response = await client.put(
        "/api/v1/finance/university-wallet",
        json={"wallet": "nope"},
        headers=admin,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "InvalidAddress"

    response = await client.post("/api/v1/finance/deposit", json={"amount": 500}, headers=admin)
    assert response.status_code == 200
    assert response.json() == {"available_balance": 500}


@pytest.mark.asyncio
async def test_admin_restored_payment_survives_restart(app_settings: Settings) -> None:
    admin = auth_headers(ADMIN, app_settings)

    async with running_client(create_app(app_settings)) as client:
        await setup_semester(client, admin)
        response = await client.post(
            "/api/v1/payments/restore",
            json={
                "wallet": STUDENT_1,
                "semester": SEMESTER,
                "amount": ONE_UNIT,
                "timestamp": 1_600_000_000,
                "remaining": 0,
                "refunded": True,
            },
            headers=admin,
        )
        assert response.status_code == 201

    async with running_client(create_app(app_settings)) as client:
        response = await client.get("/api/v1/payments/1", headers=admin)
        assert response.status_code == 200
        assert response.json()["refunded"] is True
        assert response.json()["timestamp"] == 1_600_000_000

        response = await client.get("/api/v1/finance/summary", headers=admin)
        assert response.json()["total_collected"] == ONE_UNIT
        assert response.json()["total_refunded"] == ONE_UNIT

import os
from typing import AsyncGenerator

# Settings are read at import time; the env must be populated first.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_WALLET", "0x" + "a" * 40)
os.environ.setdefault("UNIVERSITY_WALLET", "0x" + "f" * 40)

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from tuition_ledger.core.config import Settings
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.ledger.settlement import HoldFundsSettlement, InMemoryTransferGateway
from tuition_ledger.main import create_app
from tuition_ledger.snapshot.store import SnapshotStore

from support import ADMIN, NOW, UNIVERSITY, EventRecorder


@pytest.fixture()
def gateway() -> InMemoryTransferGateway:
    return InMemoryTransferGateway()


@pytest.fixture()
def ledger(gateway: InMemoryTransferGateway) -> TuitionLedger:
    """Hold-funds ledger with a fixed clock."""
    return TuitionLedger(HoldFundsSettlement(gateway, UNIVERSITY), clock=lambda: NOW)


@pytest.fixture()
def recorder(ledger: TuitionLedger) -> EventRecorder:
    rec = EventRecorder()
    ledger.events.subscribe(rec)
    return rec


@pytest.fixture()
def store(tmp_path) -> SnapshotStore:
    return SnapshotStore(tmp_path / "state.json")


@pytest.fixture()
def app_settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret_key="test-secret-key",
        admin_wallet=ADMIN,
        university_wallet=UNIVERSITY,
        snapshot_path=tmp_path / "state.json",
        restore_on_startup=True,
    )


@pytest.fixture()
def app(app_settings: Settings) -> FastAPI:
    return create_app(app_settings)


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app, with the lifespan running."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

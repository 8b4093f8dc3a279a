"""Shared constants and helpers for the test suite."""

import asyncio
from typing import Dict, List, Optional

from tuition_ledger.auth.security import create_access_token
from tuition_ledger.core.config import Settings
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.ledger.events import LedgerEvent
from tuition_ledger.ledger.settlement import (
    HoldFundsSettlement,
    InMemoryTransferGateway,
    PassThroughSettlement,
    TransferGateway,
)

ADMIN = "0x" + "a" * 40
UNIVERSITY = "0x" + "f" * 40
STUDENT_1 = "0x" + "1" * 40
STUDENT_2 = "0x" + "2" * 40
STUDENT_3 = "0x" + "3" * 40

NOW = 1_700_000_000
DEADLINE = NOW + 86400 * 30
SEMESTER = "2024-1"
ONE_UNIT = 10**18


class SlowGateway(InMemoryTransferGateway):
    """Gateway whose transfers take `delay` seconds."""

    def __init__(self, delay: float) -> None:
        super().__init__()
        self.delay = delay

    async def send(self, to_wallet: str, amount: int) -> str:
        await asyncio.sleep(self.delay)
        return await super().send(to_wallet, amount)


class FailingGateway(InMemoryTransferGateway):
    async def send(self, to_wallet: str, amount: int) -> str:
        raise RuntimeError("settlement node unreachable")


class EventRecorder:
    def __init__(self) -> None:
        self.events: List[LedgerEvent] = []

    def __call__(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def types(self) -> List[str]:
        return [e.event_type.value for e in self.events]


def make_ledger(
    gateway: Optional[TransferGateway] = None,
    pass_through: bool = False,
    timeout: float = 10.0,
) -> TuitionLedger:
    gateway = gateway or InMemoryTransferGateway()
    strategy_cls = PassThroughSettlement if pass_through else HoldFundsSettlement
    return TuitionLedger(strategy_cls(gateway, UNIVERSITY, timeout), clock=lambda: NOW)


async def seed(ledger: TuitionLedger, base_amount: int = ONE_UNIT) -> None:
    """One fee schedule and one student (STUDENT_1 / SV001)."""
    await ledger.set_fee_schedule(SEMESTER, base_amount, DEADLINE)
    await ledger.register_student(STUDENT_1, "SV001")


def assert_payment_invariants(ledger: TuitionLedger) -> None:
    if ledger.payment_counter == 0:
        return
    payments = ledger.get_payment_history(1, ledger.payment_counter)
    for p in payments:
        assert 0 <= p.remaining <= p.amount
        if p.refunded:
            assert p.remaining == 0
    summary = ledger.get_financial_summary()
    assert summary.total_collected == sum(p.amount for p in payments)
    assert summary.total_refunded == sum(p.amount - p.remaining for p in payments)


def auth_headers(wallet: str, app_settings: Settings) -> Dict[str, str]:
    token = create_access_token(wallet, app_settings=app_settings)
    return {"Authorization": f"Bearer {token}"}

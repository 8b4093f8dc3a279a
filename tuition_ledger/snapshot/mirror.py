"""Keeps the snapshot document in step with the ledger by consuming its domain events."""

import asyncio
import logging

from tuition_ledger.core.enums import LedgerEventType
from tuition_ledger.ledger.events import LedgerEvent
from tuition_ledger.snapshot.store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotMirror:
    """Async subscriber; file I/O runs in a worker thread so the event loop keeps serving."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    async def __call__(self, event: LedgerEvent) -> None:
        await asyncio.to_thread(self.apply, event)

    def apply(self, event: LedgerEvent) -> None:
        p = event.payload
        kind = event.event_type
        if kind == LedgerEventType.STUDENT_REGISTERED:
            self.store.add_student(p["wallet"], p["student_id"])
        elif kind == LedgerEventType.SCHOLARSHIP_APPLIED:
            self.store.set_scholarship(p["wallet"], p["percent"])
        elif kind == LedgerEventType.FEE_SCHEDULE_CREATED:
            self.store.add_fee_schedule(p["semester"], p["base_amount"], p["deadline"])
        elif kind == LedgerEventType.FEE_SCHEDULE_CLOSED:
            self.store.close_fee_schedule(p["semester"])
        elif kind == LedgerEventType.PAYMENT_RECEIVED:
            self.store.add_payment(
                p["wallet"],
                p["semester"],
                p["amount"],
                p["timestamp"],
                payment_id=p["payment_id"],
            )
        elif kind == LedgerEventType.PAYMENT_RESTORED:
            self.store.add_payment(
                p["wallet"],
                p["semester"],
                p["amount"],
                p["timestamp"],
                payment_id=p["payment_id"],
                remaining=p["remaining"],
                refunded=p["refunded"],
            )
        elif kind == LedgerEventType.SCHOLARSHIP_REFUND:
            self.store.update_payment(p["wallet"], p["semester"], p["remaining"])
        elif kind == LedgerEventType.REFUND_PROCESSED:
            self.store.update_payment(p["wallet"], p["semester"], 0, refunded=True)
        else:
            logger.debug("Snapshot mirror ignores %s", kind.value)

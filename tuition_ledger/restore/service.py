"""
Restore: replay a snapshot document into a freshly created ledger.

Order is fixed: fee schedules, students, scholarships, payments. Payments
depend on fee schedules and students; scholarships are replayed before any
payment exists so they never trigger refund transfers. Payments go through
the privileged restore path, which does not move funds again.

A failing record is logged and reported; it never stops the replay.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tuition_ledger.core.addresses import short_wallet
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.snapshot.store import SnapshotStore, decode_amount

logger = logging.getLogger(__name__)

# Expired deadlines are pushed out so the schedule can be replayed.
EXPIRED_DEADLINE_EXTENSION = 365 * 24 * 60 * 60

_REPLAY_ERRORS = (ServiceError, KeyError, ValueError, TypeError)


@dataclass
class RestoreItem:
    collection: str
    key: str
    ok: bool
    error: Optional[str] = None

    def __str__(self) -> str:
        mark = "✓" if self.ok else "✗"
        suffix = f": {self.error}" if self.error else ""
        return f"{mark} {self.collection} {self.key}{suffix}"


@dataclass
class RestoreReport:
    items: List[RestoreItem] = field(default_factory=list)

    @property
    def restored(self) -> int:
        return sum(1 for i in self.items if i.ok)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if not i.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def record(self, collection: str, key: str, error: Optional[BaseException] = None) -> None:
        if error is None:
            item = RestoreItem(collection, key, True)
            logger.info("  %s", item)
        else:
            message = error.message if isinstance(error, ServiceError) else f"{type(error).__name__}: {error}"
            item = RestoreItem(collection, key, False, message)
            logger.warning("  %s", item)
        self.items.append(item)


def _payment_sort_key(indexed):
    # Replay in persisted id order so each record can keep its id; records
    # without one go last and take the next free id.
    index, record = indexed
    payment_id = record.get("paymentId")
    return (payment_id is None, payment_id if payment_id is not None else 0, index)


async def restore_ledger(
    ledger: TuitionLedger,
    document: Dict[str, Any],
    now: Optional[int] = None,
) -> RestoreReport:
    report = RestoreReport()
    fee_schedules = document.get("feeSchedules") or []
    students = document.get("students") or []
    scholarships = document.get("scholarships") or []
    payments = document.get("payments") or []

    if not (fee_schedules or students or scholarships or payments):
        logger.info("No saved data to restore")
        return report

    now = int(time.time()) if now is None else now
    logger.info("Restoring saved data...")

    if fee_schedules:
        logger.info("Restoring %s fee schedules...", len(fee_schedules))
    for fee in fee_schedules:
        semester = str(fee.get("semester"))
        try:
            deadline = int(fee["deadline"])
            if deadline <= now:
                deadline = now + EXPIRED_DEADLINE_EXTENSION
            await ledger.set_fee_schedule(semester, decode_amount(fee["amount"]), deadline, now=now)
            if fee.get("isActive") is False:
                await ledger.close_fee_schedule(semester)
        except _REPLAY_ERRORS as exc:
            report.record("feeSchedule", semester, exc)
        else:
            report.record("feeSchedule", semester)

    if students:
        logger.info("Restoring %s students...", len(students))
    for student in students:
        key = f"{student.get('studentId')} ({short_wallet(str(student.get('wallet')))})"
        try:
            await ledger.register_student(student["wallet"], student["studentId"])
        except _REPLAY_ERRORS as exc:
            report.record("student", key, exc)
        else:
            report.record("student", key)

    if scholarships:
        logger.info("Restoring %s scholarships...", len(scholarships))
    for scholarship in scholarships:
        key = f"{short_wallet(str(scholarship.get('wallet')))} = {scholarship.get('percent')}%"
        try:
            await ledger.apply_scholarship(scholarship["wallet"], int(scholarship["percent"]))
        except _REPLAY_ERRORS as exc:
            report.record("scholarship", key, exc)
        else:
            report.record("scholarship", key)

    if payments:
        logger.info("Restoring %s payments...", len(payments))
    for _, payment in sorted(enumerate(payments), key=_payment_sort_key):
        key = f"{short_wallet(str(payment.get('wallet')))} - {payment.get('semester')}"
        try:
            remaining = payment.get("remaining")
            payment_id = payment.get("paymentId")
            await ledger.restore_payment(
                payment["wallet"],
                payment["semester"],
                decode_amount(payment["amount"]),
                int(payment.get("timestamp") or 0),
                remaining=decode_amount(remaining) if remaining is not None else None,
                refunded=bool(payment.get("refunded", False)),
                payment_id=int(payment_id) if payment_id is not None else None,
            )
        except _REPLAY_ERRORS as exc:
            report.record("payment", key, exc)
        else:
            report.record("payment", key)

    logger.info("Data restoration complete: %s restored, %s failed", report.restored, report.failed)
    return report


async def restore_from_store(
    ledger: TuitionLedger,
    store: SnapshotStore,
    now: Optional[int] = None,
) -> RestoreReport:
    document = await asyncio.to_thread(store.load)
    return await restore_ledger(ledger, document, now=now)

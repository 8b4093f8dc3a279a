from typing import List, Optional

from tuition_ledger.core.addresses import normalize_wallet
from tuition_ledger.restore.service import RestoreReport
from tuition_ledger.snapshot.store import SnapshotStore, decode_amount

from .schemas import RestoreItemResponse, RestoreReportResponse, SnapshotDocument, SnapshotPayment


def get_snapshot(store: SnapshotStore) -> SnapshotDocument:
    return SnapshotDocument(**store.load())


def get_snapshot_payments(store: SnapshotStore, wallet: str) -> List[SnapshotPayment]:
    wallet = normalize_wallet(wallet)
    payments = []
    for p in store.student_payments(wallet):
        remaining = p.get("remaining")
        payments.append(
            SnapshotPayment(
                payment_id=p.get("paymentId"),
                wallet=p["wallet"],
                semester=p["semester"],
                amount=decode_amount(p["amount"]),
                remaining=decode_amount(remaining) if remaining is not None else decode_amount(p["amount"]),
                refunded=bool(p.get("refunded", False)),
                timestamp=int(p.get("timestamp") or 0),
            )
        )
    return payments


def restore_report_to_response(report: Optional[RestoreReport]) -> RestoreReportResponse:
    if report is None:
        return RestoreReportResponse(restored=0, failed=0, items=[])
    return RestoreReportResponse(
        restored=report.restored,
        failed=report.failed,
        items=[
            RestoreItemResponse(collection=i.collection, key=i.key, ok=i.ok, error=i.error)
            for i in report.items
        ],
    )

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from tuition_ledger.auth.rbac import require_admin, require_self_or_admin
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import LedgerRuntime, get_runtime

from .schemas import RestoreReportResponse, SnapshotDocument, SnapshotPayment
from . import service

router = APIRouter(prefix="/api/v1/snapshot", tags=["snapshot"])


@router.get(
    "",
    response_model=SnapshotDocument,
    dependencies=[Depends(require_admin)],
)
def get_snapshot(
    runtime: LedgerRuntime = Depends(get_runtime),
) -> SnapshotDocument:
    return service.get_snapshot(runtime.store)


@router.get(
    "/payments/{wallet}",
    response_model=List[SnapshotPayment],
    dependencies=[Depends(require_self_or_admin)],
)
def get_snapshot_payments(
    wallet: str,
    runtime: LedgerRuntime = Depends(get_runtime),
) -> List[SnapshotPayment]:
    """Payments recorded for a wallet in the persisted snapshot."""
    try:
        return service.get_snapshot_payments(runtime.store, wallet)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/restore-report",
    response_model=RestoreReportResponse,
    dependencies=[Depends(require_admin)],
)
async def get_restore_report(
    runtime: LedgerRuntime = Depends(get_runtime),
) -> RestoreReportResponse:
    """Itemized outcome of the startup replay."""
    return service.restore_report_to_response(runtime.restore_report)

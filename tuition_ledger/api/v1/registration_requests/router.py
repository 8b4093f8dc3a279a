from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.rbac import require_admin
from tuition_ledger.auth.schemas import CurrentUser
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import get_ledger, get_store
from tuition_ledger.ledger.core import TuitionLedger
from tuition_ledger.snapshot.store import SnapshotStore

from .schemas import RegistrationRequestCreate, RegistrationRequestResponse
from . import service

router = APIRouter(prefix="/api/v1/registration-requests", tags=["registration-requests"])


@router.post(
    "",
    response_model=RegistrationRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_registration_request(
    payload: RegistrationRequestCreate,
    ledger: TuitionLedger = Depends(get_ledger),
    store: SnapshotStore = Depends(get_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> RegistrationRequestResponse:
    """Ask the admin to register the caller's wallet under a student id."""
    try:
        return service.submit_registration_request(ledger, store, current_user.wallet, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/pending",
    response_model=List[RegistrationRequestResponse],
    dependencies=[Depends(require_admin)],
)
def list_pending_requests(
    store: SnapshotStore = Depends(get_store),
) -> List[RegistrationRequestResponse]:
    return service.list_pending_requests(store)


@router.post(
    "/{wallet}/approve",
    response_model=RegistrationRequestResponse,
    dependencies=[Depends(require_admin)],
)
async def approve_request(
    wallet: str,
    ledger: TuitionLedger = Depends(get_ledger),
    store: SnapshotStore = Depends(get_store),
) -> RegistrationRequestResponse:
    """pending -> approved; registers the student in the ledger."""
    try:
        return await service.approve_request(ledger, store, wallet)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/{wallet}/reject",
    response_model=RegistrationRequestResponse,
    dependencies=[Depends(require_admin)],
)
def reject_request(
    wallet: str,
    store: SnapshotStore = Depends(get_store),
) -> RegistrationRequestResponse:
    try:
        return service.reject_request(store, wallet)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

"""Payments router: pay, history, status, refunds and the admin restore path."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.rbac import require_admin
from tuition_ledger.auth.schemas import CurrentUser
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import get_ledger
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import (
    PaymentCounterResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentRestore,
    PaymentStatusResponse,
    RefundResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "/pay",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def pay_tuition(
    payload: PaymentCreate,
    ledger: TuitionLedger = Depends(get_ledger),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    """Pay tuition for a semester from the caller's own wallet."""
    try:
        return await service.pay_tuition(ledger, current_user.wallet, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/history",
    response_model=List[PaymentResponse],
    dependencies=[Depends(require_admin)],
)
async def get_payment_history(
    start_id: int = Query(1, description="First payment id (1-based)"),
    count: int = Query(10, description="Number of payments"),
    ledger: TuitionLedger = Depends(get_ledger),
) -> List[PaymentResponse]:
    try:
        return service.get_payment_history(ledger, start_id, count)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/counter",
    response_model=PaymentCounterResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_payment_counter(
    ledger: TuitionLedger = Depends(get_ledger),
) -> PaymentCounterResponse:
    return PaymentCounterResponse(payment_counter=ledger.payment_counter)


@router.get(
    "/status",
    response_model=PaymentStatusResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_payment_status(
    wallet: str = Query(...),
    semester: str = Query(...),
    ledger: TuitionLedger = Depends(get_ledger),
) -> PaymentStatusResponse:
    try:
        return service.get_payment_status(ledger, wallet, semester)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/restore",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def restore_payment(
    payload: PaymentRestore,
    ledger: TuitionLedger = Depends(get_ledger),
) -> PaymentResponse:
    """Recreate a payment from a snapshot without moving funds."""
    try:
        return await service.restore_payment(ledger, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/{payment_id}",
    response_model=PaymentResponse,
)
async def get_payment(
    payment_id: int,
    ledger: TuitionLedger = Depends(get_ledger),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResponse:
    try:
        payment = service.get_payment(ledger, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    if not current_user.is_admin and payment.wallet != current_user.wallet:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return payment


@router.post(
    "/{payment_id}/refund",
    response_model=RefundResponse,
    dependencies=[Depends(require_admin)],
)
async def process_refund(
    payment_id: int,
    ledger: TuitionLedger = Depends(get_ledger),
) -> RefundResponse:
    try:
        return await service.process_refund(ledger, payment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

"""Fees router: per-semester fee schedules and net fee calculation."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.rbac import require_admin
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import get_ledger
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import FeeCalculationResponse, FeeScheduleCreate, FeeScheduleResponse
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


@router.post(
    "/schedules",
    response_model=FeeScheduleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def set_fee_schedule(
    payload: FeeScheduleCreate,
    ledger: TuitionLedger = Depends(get_ledger),
) -> FeeScheduleResponse:
    try:
        return await service.set_fee_schedule(ledger, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/schedules",
    response_model=List[FeeScheduleResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_fee_schedules(
    ledger: TuitionLedger = Depends(get_ledger),
) -> List[FeeScheduleResponse]:
    return service.list_fee_schedules(ledger)


@router.get(
    "/semesters",
    response_model=List[str],
    dependencies=[Depends(get_current_user)],
)
async def get_active_semesters(
    ledger: TuitionLedger = Depends(get_ledger),
) -> List[str]:
    return ledger.get_active_semesters()


@router.get(
    "/schedules/{semester}",
    response_model=FeeScheduleResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_fee_schedule(
    semester: str,
    ledger: TuitionLedger = Depends(get_ledger),
) -> FeeScheduleResponse:
    try:
        return service.get_fee_schedule(ledger, semester)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "/schedules/{semester}/close",
    response_model=FeeScheduleResponse,
    dependencies=[Depends(require_admin)],
)
async def close_fee_schedule(
    semester: str,
    ledger: TuitionLedger = Depends(get_ledger),
) -> FeeScheduleResponse:
    try:
        return await service.close_fee_schedule(ledger, semester)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/calculate",
    response_model=FeeCalculationResponse,
    dependencies=[Depends(get_current_user)],
)
async def calculate_fee(
    wallet: str = Query(..., description="Wallet to price; unregistered wallets pay the base fee"),
    semester: str = Query(...),
    ledger: TuitionLedger = Depends(get_ledger),
) -> FeeCalculationResponse:
    try:
        return service.calculate_fee(ledger, wallet, semester)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

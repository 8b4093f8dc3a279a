from fastapi import APIRouter, Depends, HTTPException

from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.rbac import require_admin
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import get_ledger
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import (
    DepositCreate,
    DepositResponse,
    FinancialSummaryResponse,
    UniversityWalletResponse,
    UniversityWalletUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/finance", tags=["finance"])


@router.get(
    "/summary",
    response_model=FinancialSummaryResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_financial_summary(
    ledger: TuitionLedger = Depends(get_ledger),
) -> FinancialSummaryResponse:
    return service.get_financial_summary(ledger)


@router.post(
    "/deposit",
    response_model=DepositResponse,
    dependencies=[Depends(require_admin)],
)
async def deposit_for_refund(
    payload: DepositCreate,
    ledger: TuitionLedger = Depends(get_ledger),
) -> DepositResponse:
    try:
        return await service.deposit_for_refund(ledger, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/university-wallet",
    response_model=UniversityWalletResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_university_wallet(
    ledger: TuitionLedger = Depends(get_ledger),
) -> UniversityWalletResponse:
    return service.get_university_wallet(ledger)


@router.put(
    "/university-wallet",
    response_model=UniversityWalletResponse,
    dependencies=[Depends(require_admin)],
)
async def set_university_wallet(
    payload: UniversityWalletUpdate,
    ledger: TuitionLedger = Depends(get_ledger),
) -> UniversityWalletResponse:
    try:
        return await service.set_university_wallet(ledger, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

"""Students router: registration, lookups, scholarships."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from tuition_ledger.api.v1.payments.schemas import PaymentResponse
from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.rbac import require_admin, require_self_or_admin
from tuition_ledger.core.exceptions import ServiceError
from tuition_ledger.core.runtime import get_ledger
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import (
    ScholarshipApply,
    ScholarshipResponse,
    StudentCountResponse,
    StudentCreate,
    StudentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def register_student(
    payload: StudentCreate,
    ledger: TuitionLedger = Depends(get_ledger),
) -> StudentResponse:
    try:
        return await service.register_student(ledger, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "",
    response_model=List[StudentResponse],
    dependencies=[Depends(require_admin)],
)
async def list_students(
    ledger: TuitionLedger = Depends(get_ledger),
) -> List[StudentResponse]:
    return service.list_students(ledger)


@router.get(
    "/count",
    response_model=StudentCountResponse,
    dependencies=[Depends(get_current_user)],
)
async def get_registered_students_count(
    ledger: TuitionLedger = Depends(get_ledger),
) -> StudentCountResponse:
    return StudentCountResponse(count=ledger.get_registered_students_count())


@router.get(
    "/{wallet}",
    response_model=StudentResponse,
    dependencies=[Depends(require_self_or_admin)],
)
async def get_student(
    wallet: str,
    ledger: TuitionLedger = Depends(get_ledger),
) -> StudentResponse:
    try:
        return service.get_student(ledger, wallet)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/{wallet}/payments",
    response_model=List[PaymentResponse],
    dependencies=[Depends(require_self_or_admin)],
)
async def get_student_payments(
    wallet: str,
    ledger: TuitionLedger = Depends(get_ledger),
) -> List[PaymentResponse]:
    try:
        return service.get_student_payments(ledger, wallet)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


# --- Scholarship ---
@router.post(
    "/{wallet}/scholarship",
    response_model=ScholarshipResponse,
    dependencies=[Depends(require_admin)],
)
async def apply_scholarship(
    wallet: str,
    payload: ScholarshipApply,
    ledger: TuitionLedger = Depends(get_ledger),
) -> ScholarshipResponse:
    """Set the scholarship percent; raising it refunds the difference on existing payments."""
    try:
        return await service.apply_scholarship(ledger, wallet, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

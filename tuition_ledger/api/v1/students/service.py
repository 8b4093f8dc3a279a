"""Student service: registration, lookups and scholarships on top of the ledger."""

from typing import List

from tuition_ledger.core.exceptions import NotFoundError
from tuition_ledger.core.models import Student
from tuition_ledger.ledger.core import TuitionLedger

from tuition_ledger.api.v1.payments.service import payment_to_response
from tuition_ledger.api.v1.payments.schemas import PaymentResponse

from .schemas import (
    ScholarshipApply,
    ScholarshipResponse,
    StudentCreate,
    StudentResponse,
)


def student_to_response(s: Student) -> StudentResponse:
    return StudentResponse(
        student_id=s.student_id,
        wallet=s.wallet,
        scholarship_percent=s.scholarship_percent,
        is_registered=s.is_registered,
        created_at=s.created_at,
    )


async def register_student(ledger: TuitionLedger, payload: StudentCreate) -> StudentResponse:
    student = await ledger.register_student(payload.wallet, payload.student_id)
    return student_to_response(student)


def list_students(ledger: TuitionLedger) -> List[StudentResponse]:
    return [student_to_response(s) for s in ledger.get_all_students()]


def get_student(ledger: TuitionLedger, wallet: str) -> StudentResponse:
    student = ledger.get_student(wallet)
    if student is None:
        raise NotFoundError("Student not found")
    return student_to_response(student)


def get_student_payments(ledger: TuitionLedger, wallet: str) -> List[PaymentResponse]:
    return [payment_to_response(p) for p in ledger.get_student_payments(wallet)]


async def apply_scholarship(
    ledger: TuitionLedger,
    wallet: str,
    payload: ScholarshipApply,
) -> ScholarshipResponse:
    total_refund = await ledger.apply_scholarship(wallet, payload.percent)
    student = ledger.get_student(wallet)
    return ScholarshipResponse(
        wallet=student.wallet,
        percent=student.scholarship_percent,
        total_refund=total_refund,
    )

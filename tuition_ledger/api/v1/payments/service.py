"""Payments service: tuition payments, history, refunds and the restore path."""

from typing import List

from tuition_ledger.core.models import Payment
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import (
    PaymentCreate,
    PaymentResponse,
    PaymentRestore,
    PaymentStatusResponse,
    RefundResponse,
)


def payment_to_response(p: Payment) -> PaymentResponse:
    return PaymentResponse(
        payment_id=p.payment_id,
        wallet=p.wallet,
        student_id=p.student_id,
        semester=p.semester,
        amount=p.amount,
        remaining=p.remaining,
        timestamp=p.timestamp,
        paid=p.paid,
        refunded=p.refunded,
    )


async def pay_tuition(ledger: TuitionLedger, wallet: str, payload: PaymentCreate) -> PaymentResponse:
    payment = await ledger.pay_tuition(wallet, payload.semester, payload.amount)
    return payment_to_response(payment)


def get_payment(ledger: TuitionLedger, payment_id: int) -> PaymentResponse:
    return payment_to_response(ledger.get_payment(payment_id))


def get_payment_history(ledger: TuitionLedger, start_id: int, count: int) -> List[PaymentResponse]:
    return [payment_to_response(p) for p in ledger.get_payment_history(start_id, count)]


def get_payment_status(ledger: TuitionLedger, wallet: str, semester: str) -> PaymentStatusResponse:
    return PaymentStatusResponse(
        wallet=wallet.lower(),
        semester=semester,
        paid=ledger.has_student_paid(wallet, semester),
    )


async def process_refund(ledger: TuitionLedger, payment_id: int) -> RefundResponse:
    amount = await ledger.process_refund(payment_id)
    return RefundResponse(payment_id=payment_id, amount=amount)


async def restore_payment(ledger: TuitionLedger, payload: PaymentRestore) -> PaymentResponse:
    payment = await ledger.restore_payment(
        payload.wallet,
        payload.semester,
        payload.amount,
        payload.timestamp,
        remaining=payload.remaining,
        refunded=payload.refunded,
        payment_id=payload.payment_id,
    )
    return payment_to_response(payment)

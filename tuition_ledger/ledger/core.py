"""
Ledger core: the authoritative tuition state machine.

All mutations run under a single asyncio lock. A mutation validates first,
then performs its settlement call, and only then commits the staged changes,
so a failed or timed-out transfer leaves no partial state behind. Domain
events are staged during the mutation and flushed after commit.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from tuition_ledger.core.addresses import normalize_wallet, short_wallet
from tuition_ledger.core.enums import LedgerEventType
from tuition_ledger.core.exceptions import (
    AlreadyPaidError,
    AlreadyRefundedError,
    AlreadyRegisteredError,
    DuplicateIdError,
    InactiveSemesterError,
    InsufficientAmountError,
    InvalidAmountError,
    InvalidDeadlineError,
    InvalidPercentageError,
    InvalidRangeError,
    InvalidSemesterError,
    InvalidStudentIdError,
    NotFoundError,
    NothingToRefundError,
    NotRegisteredError,
    UnknownSemesterError,
)
from tuition_ledger.core.models import FeeSchedule, FinancialSummary, Payment, Student
from tuition_ledger.ledger.events import EventQueue
from tuition_ledger.ledger.settlement import SettlementStrategy

logger = logging.getLogger(__name__)


def net_fee(base_amount: int, scholarship_percent: int) -> int:
    """Fee after scholarship: base - floor(base * percent / 100)."""
    return base_amount - (base_amount * scholarship_percent) // 100


def _require_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(f"{name} must be an integer, got {value!r}")
    return value


def _clean_semester(semester: str) -> str:
    semester = (semester or "").strip()
    if not semester:
        raise InvalidSemesterError("Semester must not be empty")
    return semester


class TuitionLedger:
    def __init__(
        self,
        settlement: SettlementStrategy,
        events: Optional[EventQueue] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settlement = settlement
        self.events = events or EventQueue()
        self._clock = clock
        self._lock = asyncio.Lock()

        self._students: Dict[str, Student] = {}
        self._wallet_by_student_id: Dict[str, str] = {}
        self._student_wallets: List[str] = []

        self._fee_schedules: Dict[str, FeeSchedule] = {}
        self._active_semesters: List[str] = []

        self._payments: Dict[int, Payment] = {}
        self._payment_by_key: Dict[Tuple[str, str], int] = {}
        self._payment_ids_by_wallet: Dict[str, List[int]] = {}
        self._payment_counter = 0

        self._total_collected = 0
        self._total_refunded = 0

    def _now(self) -> int:
        return int(self._clock())

    @asynccontextmanager
    async def _mutation(self) -> AsyncIterator[None]:
        async with self._lock:
            try:
                yield
            except BaseException:
                self.events.discard()
                raise
            await self.events.flush()

    def _registered(self, wallet: str) -> Student:
        student = self._students.get(wallet)
        if student is None or not student.is_registered:
            raise NotRegisteredError(f"Wallet {wallet} is not a registered student")
        return student

    # --- Students ---
    async def register_student(self, wallet: str, student_id: str) -> Student:
        wallet = normalize_wallet(wallet)
        student_id = (student_id or "").strip()
        if not student_id:
            raise InvalidStudentIdError("Student id must not be empty")
        async with self._mutation():
            if wallet in self._students:
                raise AlreadyRegisteredError("Student already registered")
            if student_id in self._wallet_by_student_id:
                raise DuplicateIdError(f"Student id {student_id} is already bound to another wallet")
            student = Student(student_id=student_id, wallet=wallet)
            self._students[wallet] = student
            self._wallet_by_student_id[student_id] = wallet
            self._student_wallets.append(wallet)
            self.events.stage(
                LedgerEventType.STUDENT_REGISTERED,
                wallet=wallet,
                student_id=student_id,
            )
            logger.info("Registered student %s (%s)", student_id, short_wallet(wallet))
            return replace(student)

    async def apply_scholarship(self, wallet: str, percent: int) -> int:
        """
        Set the scholarship percent and refund the difference on payments already made.

        Raising the percent refunds, per non-refunded payment, what the student
        overpaid relative to the new percent, capped by what remains on that
        payment. Lowering it never charges the student again. Returns the total
        refunded by this call.
        """
        wallet = normalize_wallet(wallet)
        if isinstance(percent, bool) or not isinstance(percent, int) or not 0 <= percent <= 100:
            raise InvalidPercentageError("Scholarship percent must be an integer between 0 and 100")
        async with self._mutation():
            student = self._registered(wallet)
            old_percent = student.scholarship_percent

            staged: List[Tuple[Payment, int]] = []
            total_refund = 0
            if percent > old_percent:
                for payment_id in self._payment_ids_by_wallet.get(wallet, []):
                    payment = self._payments[payment_id]
                    if payment.refunded or payment.remaining <= 0:
                        continue
                    schedule = self._fee_schedules.get(payment.semester)
                    if schedule is None:
                        continue
                    should_pay = net_fee(schedule.base_amount, percent)
                    previously_should_pay = net_fee(schedule.base_amount, old_percent)
                    delta = max(0, min(previously_should_pay - should_pay, payment.remaining))
                    if delta == 0:
                        continue
                    staged.append((payment, delta))
                    total_refund += delta

            if total_refund > 0:
                await self.settlement.refund(wallet, total_refund)

            student.scholarship_percent = percent
            for payment, delta in staged:
                payment.remaining -= delta
                self.events.stage(
                    LedgerEventType.SCHOLARSHIP_REFUND,
                    payment_id=payment.payment_id,
                    wallet=wallet,
                    semester=payment.semester,
                    amount=delta,
                    remaining=payment.remaining,
                )
            self._total_refunded += total_refund
            self.events.stage(
                LedgerEventType.SCHOLARSHIP_APPLIED,
                wallet=wallet,
                percent=percent,
                total_refund=total_refund,
            )
            logger.info(
                "Scholarship for %s: %s%% -> %s%%, refunded %s",
                short_wallet(wallet), old_percent, percent, total_refund,
            )
            return total_refund

    # --- Fee schedules ---
    async def set_fee_schedule(
        self,
        semester: str,
        base_amount: int,
        deadline: int,
        now: Optional[int] = None,
    ) -> FeeSchedule:
        semester = _clean_semester(semester)
        base_amount = _require_int(base_amount, "base_amount")
        if base_amount <= 0:
            raise InvalidAmountError("Base amount must be positive")
        now = self._now() if now is None else now
        if deadline <= now:
            raise InvalidDeadlineError("Deadline must be in the future")
        async with self._mutation():
            schedule = FeeSchedule(semester=semester, base_amount=base_amount, deadline=deadline)
            self._fee_schedules[semester] = schedule
            if semester not in self._active_semesters:
                self._active_semesters.append(semester)
            self.events.stage(
                LedgerEventType.FEE_SCHEDULE_CREATED,
                semester=semester,
                base_amount=base_amount,
                deadline=deadline,
            )
            logger.info("Fee schedule %s set to %s (deadline %s)", semester, base_amount, deadline)
            return replace(schedule)

    async def close_fee_schedule(self, semester: str) -> FeeSchedule:
        semester = _clean_semester(semester)
        async with self._mutation():
            schedule = self._fee_schedules.get(semester)
            if schedule is None:
                raise UnknownSemesterError(f"No fee schedule for semester {semester}")
            schedule.is_active = False
            self.events.stage(LedgerEventType.FEE_SCHEDULE_CLOSED, semester=semester)
            logger.info("Fee schedule %s closed", semester)
            return replace(schedule)

    def calculate_fee(self, wallet: str, semester: str) -> int:
        # Unregistered wallets are charged the full base fee instead of failing.
        wallet = normalize_wallet(wallet)
        schedule = self._fee_schedules.get((semester or "").strip())
        if schedule is None or not schedule.is_active:
            raise UnknownSemesterError(f"No active fee schedule for semester {semester}")
        student = self._students.get(wallet)
        percent = student.scholarship_percent if student is not None else 0
        return net_fee(schedule.base_amount, percent)

    # --- Payments ---
    async def pay_tuition(
        self,
        wallet: str,
        semester: str,
        paid_amount: int,
        now: Optional[int] = None,
    ) -> Payment:
        wallet = normalize_wallet(wallet)
        semester = _clean_semester(semester)
        paid_amount = _require_int(paid_amount, "paid_amount")
        if paid_amount < 0:
            raise InvalidAmountError("Paid amount must not be negative")
        async with self._mutation():
            student = self._registered(wallet)
            schedule = self._fee_schedules.get(semester)
            if schedule is None:
                raise UnknownSemesterError(f"No fee schedule for semester {semester}")
            if not schedule.is_active:
                raise InactiveSemesterError(f"Fee schedule for semester {semester} is not active")
            if (wallet, semester) in self._payment_by_key:
                raise AlreadyPaidError("Already paid for this semester")
            fee = net_fee(schedule.base_amount, student.scholarship_percent)
            if paid_amount < fee:
                raise InsufficientAmountError(f"Insufficient payment: fee is {fee}, got {paid_amount}")

            payment = Payment(
                payment_id=self._payment_counter + 1,
                wallet=wallet,
                student_id=student.student_id,
                semester=semester,
                amount=paid_amount,
                remaining=paid_amount,
                timestamp=self._now() if now is None else now,
            )
            await self.settlement.settle(payment)

            self._record_payment(payment)
            self.events.stage(
                LedgerEventType.PAYMENT_RECEIVED,
                payment_id=payment.payment_id,
                wallet=wallet,
                student_id=payment.student_id,
                semester=semester,
                amount=paid_amount,
                timestamp=payment.timestamp,
            )
            logger.info(
                "Payment #%s: %s paid %s for %s",
                payment.payment_id, payment.student_id, paid_amount, semester,
            )
            return replace(payment)

    def _record_payment(self, payment: Payment) -> None:
        self._payment_counter = payment.payment_id
        self._payments[payment.payment_id] = payment
        self._payment_by_key[(payment.wallet, payment.semester)] = payment.payment_id
        self._payment_ids_by_wallet.setdefault(payment.wallet, []).append(payment.payment_id)
        self._total_collected += payment.amount
        self._total_refunded += payment.refunded_amount

    async def restore_payment(
        self,
        wallet: str,
        semester: str,
        amount: int,
        timestamp: int,
        remaining: Optional[int] = None,
        refunded: bool = False,
        payment_id: Optional[int] = None,
    ) -> Payment:
        """
        Recreate a payment replayed from the snapshot. Trusted callers only.

        Skips the fee check and the settlement transfer: the funds already
        moved when the payment was first accepted. A persisted `payment_id`
        above the current counter is kept, so ids that other records already
        reference do not shift when an earlier record fails to replay.
        """
        wallet = normalize_wallet(wallet)
        semester = _clean_semester(semester)
        amount = _require_int(amount, "amount")
        remaining = amount if remaining is None else _require_int(remaining, "remaining")
        if amount < 0 or not 0 <= remaining <= amount:
            raise InvalidAmountError("Restored payment must satisfy 0 <= remaining <= amount")
        if refunded and remaining != 0:
            raise InvalidAmountError("A refunded payment cannot have a remaining balance")
        async with self._mutation():
            student = self._registered(wallet)
            if semester not in self._fee_schedules:
                raise UnknownSemesterError(f"No fee schedule for semester {semester}")
            if (wallet, semester) in self._payment_by_key:
                raise AlreadyPaidError("Already paid for this semester")
            if payment_id is None or payment_id <= self._payment_counter:
                payment_id = self._payment_counter + 1
            payment = Payment(
                payment_id=payment_id,
                wallet=wallet,
                student_id=student.student_id,
                semester=semester,
                amount=amount,
                remaining=remaining,
                timestamp=timestamp,
                refunded=refunded,
            )
            self._record_payment(payment)
            self.settlement.restore_held(payment)
            self.events.stage(
                LedgerEventType.PAYMENT_RESTORED,
                payment_id=payment.payment_id,
                wallet=wallet,
                semester=semester,
                amount=amount,
                remaining=remaining,
                refunded=refunded,
                timestamp=timestamp,
            )
            logger.info("Restored payment #%s for %s (%s)", payment.payment_id, semester, short_wallet(wallet))
            return replace(payment)

    async def process_refund(self, payment_id: int) -> int:
        async with self._mutation():
            payment = self._payments.get(payment_id)
            if payment is None or not payment.paid:
                raise NotFoundError(f"Payment {payment_id} not found")
            if payment.refunded:
                raise AlreadyRefundedError("Already refunded")
            if payment.remaining <= 0:
                raise NothingToRefundError(f"Payment {payment_id} has nothing left to refund")

            amount = payment.remaining
            await self.settlement.refund(payment.wallet, amount)

            payment.remaining = 0
            payment.refunded = True
            self._total_refunded += amount
            self.events.stage(
                LedgerEventType.REFUND_PROCESSED,
                payment_id=payment_id,
                wallet=payment.wallet,
                semester=payment.semester,
                amount=amount,
                timestamp=self._now(),
            )
            logger.info("Refunded payment #%s: %s to %s", payment_id, amount, short_wallet(payment.wallet))
            return amount

    # --- Funds ---
    async def deposit_for_refund(self, amount: int) -> int:
        amount = _require_int(amount, "amount")
        if amount <= 0:
            raise InvalidAmountError("Deposit must be positive")
        async with self._mutation():
            await self.settlement.deposit(amount)
            logger.info("Deposited %s to the refund pool", amount)
            return self.settlement.available_balance

    async def set_university_wallet(self, wallet: str) -> str:
        wallet = normalize_wallet(wallet)
        async with self._mutation():
            self.settlement.university_wallet = wallet
            logger.info("University wallet set to %s", short_wallet(wallet))
            return wallet

    # --- Reads ---
    def get_student(self, wallet: str) -> Optional[Student]:
        student = self._students.get(normalize_wallet(wallet))
        return replace(student) if student is not None else None

    def get_all_students(self) -> List[Student]:
        return [replace(self._students[w]) for w in self._student_wallets]

    def get_registered_students_count(self) -> int:
        return len(self._student_wallets)

    def get_fee_schedule(self, semester: str) -> Optional[FeeSchedule]:
        schedule = self._fee_schedules.get((semester or "").strip())
        return replace(schedule) if schedule is not None else None

    def get_active_semesters(self) -> List[str]:
        return list(self._active_semesters)

    @property
    def payment_counter(self) -> int:
        return self._payment_counter

    def get_payment(self, payment_id: int) -> Payment:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        return replace(payment)

    def get_payment_history(self, start_id: int, count: int) -> List[Payment]:
        """Payments start_id..start_id+count-1 (1-based, inclusive), cut at the current max id."""
        if start_id < 1 or start_id > self._payment_counter:
            raise InvalidRangeError(
                f"start_id must be between 1 and {self._payment_counter}, got {start_id}"
            )
        if count < 1:
            raise InvalidRangeError("count must be at least 1")
        end_id = min(start_id + count - 1, self._payment_counter)
        # Ids skipped by a partial restore leave gaps.
        return [replace(self._payments[i]) for i in range(start_id, end_id + 1) if i in self._payments]

    def get_student_payment_ids(self, wallet: str) -> List[int]:
        return list(self._payment_ids_by_wallet.get(normalize_wallet(wallet), []))

    def get_student_payments(self, wallet: str) -> List[Payment]:
        return [replace(self._payments[i]) for i in self.get_student_payment_ids(wallet)]

    def has_student_paid(self, wallet: str, semester: str) -> bool:
        payment_id = self._payment_by_key.get((normalize_wallet(wallet), (semester or "").strip()))
        if payment_id is None:
            return False
        payment = self._payments[payment_id]
        return payment.paid and not payment.refunded

    def get_financial_summary(self) -> FinancialSummary:
        return FinancialSummary(
            available_balance=self.settlement.available_balance,
            total_collected=self._total_collected,
            total_refunded=self._total_refunded,
        )

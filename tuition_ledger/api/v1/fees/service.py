"""Fee schedule service."""

from typing import List

from tuition_ledger.core.exceptions import UnknownSemesterError
from tuition_ledger.core.models import FeeSchedule
from tuition_ledger.ledger.core import TuitionLedger

from .schemas import FeeCalculationResponse, FeeScheduleCreate, FeeScheduleResponse


def _schedule_to_response(fs: FeeSchedule) -> FeeScheduleResponse:
    return FeeScheduleResponse(
        semester=fs.semester,
        base_amount=fs.base_amount,
        deadline=fs.deadline,
        is_active=fs.is_active,
    )


async def set_fee_schedule(ledger: TuitionLedger, payload: FeeScheduleCreate) -> FeeScheduleResponse:
    schedule = await ledger.set_fee_schedule(payload.semester, payload.base_amount, payload.deadline)
    return _schedule_to_response(schedule)


async def close_fee_schedule(ledger: TuitionLedger, semester: str) -> FeeScheduleResponse:
    return _schedule_to_response(await ledger.close_fee_schedule(semester))


def list_fee_schedules(ledger: TuitionLedger) -> List[FeeScheduleResponse]:
    """Schedules for every semester ever enumerated, in creation order."""
    schedules = (ledger.get_fee_schedule(s) for s in ledger.get_active_semesters())
    return [_schedule_to_response(fs) for fs in schedules if fs is not None]


def get_fee_schedule(ledger: TuitionLedger, semester: str) -> FeeScheduleResponse:
    schedule = ledger.get_fee_schedule(semester)
    if schedule is None:
        raise UnknownSemesterError(f"No fee schedule for semester {semester}")
    return _schedule_to_response(schedule)


def calculate_fee(ledger: TuitionLedger, wallet: str, semester: str) -> FeeCalculationResponse:
    fee = ledger.calculate_fee(wallet, semester)
    return FeeCalculationResponse(wallet=wallet.lower(), semester=semester, fee=fee)

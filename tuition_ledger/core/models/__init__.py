from tuition_ledger.core.models.fee_schedule import FeeSchedule
from tuition_ledger.core.models.financial_summary import FinancialSummary
from tuition_ledger.core.models.payment import Payment
from tuition_ledger.core.models.registration_request import RegistrationRequest
from tuition_ledger.core.models.student import Student

__all__ = [
    "FeeSchedule",
    "FinancialSummary",
    "Payment",
    "RegistrationRequest",
    "Student",
]

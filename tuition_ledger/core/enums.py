from enum import Enum


class SettlementMode(str, Enum):
    HOLD_FUNDS = "hold_funds"
    PASS_THROUGH = "pass_through"


class RegistrationRequestStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STUDENT = "STUDENT"


class LedgerEventType(str, Enum):
    STUDENT_REGISTERED = "StudentRegistered"
    FEE_SCHEDULE_CREATED = "FeeScheduleCreated"
    FEE_SCHEDULE_CLOSED = "FeeScheduleClosed"
    PAYMENT_RECEIVED = "PaymentReceived"
    SCHOLARSHIP_APPLIED = "ScholarshipApplied"
    SCHOLARSHIP_REFUND = "ScholarshipRefund"
    REFUND_PROCESSED = "RefundProcessed"
    PAYMENT_RESTORED = "PaymentRestored"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    RESOURCE = "resource"

from fastapi import status

from tuition_ledger.core.enums import ErrorCategory


class ServiceError(Exception):
    """Base exception for service layer errors."""

    code = "ServiceError"
    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_detail(self) -> dict:
        return {"code": self.code, "category": self.category.value, "message": self.message}


# --- Validation: rejected before any state change ---
class LedgerValidationError(ServiceError):
    category = ErrorCategory.VALIDATION
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message, self.default_status)


class InvalidAmountError(LedgerValidationError):
    code = "InvalidAmount"


class InvalidDeadlineError(LedgerValidationError):
    code = "InvalidDeadline"


class InvalidPercentageError(LedgerValidationError):
    code = "InvalidPercentage"


class InvalidRangeError(LedgerValidationError):
    code = "InvalidRange"


class InvalidAddressError(LedgerValidationError):
    code = "InvalidAddress"


class InvalidStudentIdError(LedgerValidationError):
    code = "InvalidStudentId"


class InvalidSemesterError(LedgerValidationError):
    code = "InvalidSemester"


class InsufficientAmountError(LedgerValidationError):
    code = "InsufficientAmount"
    default_status = status.HTTP_402_PAYMENT_REQUIRED


class NotRegisteredError(LedgerValidationError):
    code = "NotRegistered"
    default_status = status.HTTP_403_FORBIDDEN


class UnknownSemesterError(LedgerValidationError):
    code = "UnknownSemester"
    default_status = status.HTTP_404_NOT_FOUND


class InactiveSemesterError(LedgerValidationError):
    code = "InactiveSemester"


class NotFoundError(LedgerValidationError):
    code = "NotFound"
    default_status = status.HTTP_404_NOT_FOUND


class RequestNotFoundError(LedgerValidationError):
    code = "RequestNotFound"
    default_status = status.HTTP_404_NOT_FOUND


# --- Conflict: business-rule violations, never retried automatically ---
class LedgerConflictError(ServiceError):
    category = ErrorCategory.CONFLICT

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class AlreadyRegisteredError(LedgerConflictError):
    code = "AlreadyRegistered"


class DuplicateIdError(LedgerConflictError):
    code = "DuplicateId"


class AlreadyPaidError(LedgerConflictError):
    code = "AlreadyPaid"


class AlreadyRefundedError(LedgerConflictError):
    code = "AlreadyRefunded"


class NothingToRefundError(LedgerConflictError):
    code = "NothingToRefund"


class DuplicateRequestError(LedgerConflictError):
    code = "DuplicateRequest"


# --- Resource: settlement-side failures, ledger state is left untouched ---
class LedgerResourceError(ServiceError):
    category = ErrorCategory.RESOURCE
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str) -> None:
        super().__init__(message, self.default_status)


class InsufficientFundsError(LedgerResourceError):
    code = "InsufficientFunds"


class TransferFailedError(LedgerResourceError):
    code = "TransferFailed"


class TransferTimeoutError(LedgerResourceError):
    code = "TransferTimeout"
    default_status = status.HTTP_504_GATEWAY_TIMEOUT

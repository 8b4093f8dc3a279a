from tuition_ledger.ledger.core import TuitionLedger

from .schemas import (
    DepositCreate,
    DepositResponse,
    FinancialSummaryResponse,
    UniversityWalletResponse,
    UniversityWalletUpdate,
)


def get_financial_summary(ledger: TuitionLedger) -> FinancialSummaryResponse:
    summary = ledger.get_financial_summary()
    return FinancialSummaryResponse(
        available_balance=summary.available_balance,
        total_collected=summary.total_collected,
        total_refunded=summary.total_refunded,
        settlement_mode=ledger.settlement.mode,
    )


async def deposit_for_refund(ledger: TuitionLedger, payload: DepositCreate) -> DepositResponse:
    balance = await ledger.deposit_for_refund(payload.amount)
    return DepositResponse(available_balance=balance)


async def set_university_wallet(ledger: TuitionLedger, payload: UniversityWalletUpdate) -> UniversityWalletResponse:
    wallet = await ledger.set_university_wallet(payload.wallet)
    return UniversityWalletResponse(wallet=wallet)


def get_university_wallet(ledger: TuitionLedger) -> UniversityWalletResponse:
    return UniversityWalletResponse(wallet=ledger.settlement.university_wallet)

"""Finance schemas: summary, refund pool deposits, university wallet."""

from pydantic import BaseModel, Field

from tuition_ledger.core.enums import SettlementMode


class FinancialSummaryResponse(BaseModel):
    available_balance: int
    total_collected: int
    total_refunded: int
    settlement_mode: SettlementMode


class DepositCreate(BaseModel):
    amount: int = Field(..., description="Amount added to the refund pool")


class DepositResponse(BaseModel):
    available_balance: int


class UniversityWalletUpdate(BaseModel):
    wallet: str


class UniversityWalletResponse(BaseModel):
    wallet: str

from dataclasses import dataclass


@dataclass(frozen=True)
class FinancialSummary:
    available_balance: int
    total_collected: int
    total_refunded: int

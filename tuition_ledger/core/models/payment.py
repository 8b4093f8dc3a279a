"""Tuition payment: one per (wallet, semester), partially refundable by scholarships."""

from dataclasses import dataclass


@dataclass
class Payment:
    """remaining starts at amount and only goes down; refunded implies remaining == 0."""

    payment_id: int
    wallet: str
    student_id: str
    semester: str
    amount: int
    remaining: int
    timestamp: int  # unix seconds
    paid: bool = True
    refunded: bool = False

    @property
    def refunded_amount(self) -> int:
        return self.amount - self.remaining

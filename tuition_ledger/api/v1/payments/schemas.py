"""Payment schemas. Amounts are integers in the smallest currency unit."""

from typing import Optional

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    semester: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(..., description="Amount paid; must cover the net fee")


class PaymentRestore(BaseModel):
    """Replay of a payment whose funds already moved. Admin only."""

    wallet: str
    semester: str = Field(..., min_length=1, max_length=64)
    amount: int
    timestamp: int
    remaining: Optional[int] = None
    refunded: bool = False
    payment_id: Optional[int] = Field(None, description="Keep this id when it is above the current counter")


class PaymentResponse(BaseModel):
    payment_id: int
    wallet: str
    student_id: str
    semester: str
    amount: int
    remaining: int
    timestamp: int
    paid: bool
    refunded: bool

    class Config:
        from_attributes = True


class PaymentStatusResponse(BaseModel):
    wallet: str
    semester: str
    paid: bool


class PaymentCounterResponse(BaseModel):
    payment_counter: int


class RefundResponse(BaseModel):
    payment_id: int
    amount: int

"""Fee schedule schemas."""

from pydantic import BaseModel, Field


class FeeScheduleCreate(BaseModel):
    semester: str = Field(..., min_length=1, max_length=64)
    base_amount: int = Field(..., description="Base fee in the smallest currency unit")
    deadline: int = Field(..., description="Payment deadline, unix seconds")


class FeeScheduleResponse(BaseModel):
    semester: str
    base_amount: int
    deadline: int
    is_active: bool

    class Config:
        from_attributes = True


class FeeCalculationResponse(BaseModel):
    wallet: str
    semester: str
    fee: int

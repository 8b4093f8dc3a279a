"""Student schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    wallet: str = Field(..., description="Student wallet address (0x + 40 hex)")
    student_id: str = Field(..., min_length=1, max_length=64)


class StudentResponse(BaseModel):
    student_id: str
    wallet: str
    scholarship_percent: int
    is_registered: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StudentCountResponse(BaseModel):
    count: int


# --- Scholarship ---
class ScholarshipApply(BaseModel):
    percent: int = Field(..., description="Scholarship percent, 0-100")


class ScholarshipResponse(BaseModel):
    wallet: str
    percent: int
    total_refund: int = Field(..., description="Refunded on payments already made")

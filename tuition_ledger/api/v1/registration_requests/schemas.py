from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tuition_ledger.core.enums import RegistrationRequestStatus


class RegistrationRequestCreate(BaseModel):
    """Self-service request; the wallet comes from the caller's token."""

    student_id: str = Field(..., min_length=1, max_length=64)


class RegistrationRequestResponse(BaseModel):
    wallet: str
    student_id: str
    status: RegistrationRequestStatus
    created_at: datetime
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    class Config:
        from_attributes = True

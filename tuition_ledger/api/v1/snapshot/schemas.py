from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class SnapshotDocument(BaseModel):
    students: List[Dict[str, Any]]
    feeSchedules: List[Dict[str, Any]]
    scholarships: List[Dict[str, Any]]
    payments: List[Dict[str, Any]]
    registrationRequests: List[Dict[str, Any]]
    lastUpdated: Optional[str] = None


class SnapshotPayment(BaseModel):
    payment_id: Optional[int] = None
    wallet: str
    semester: str
    amount: int
    remaining: int
    refunded: bool
    timestamp: int


class RestoreItemResponse(BaseModel):
    collection: str
    key: str
    ok: bool
    error: Optional[str] = None


class RestoreReportResponse(BaseModel):
    restored: int
    failed: int
    items: List[RestoreItemResponse]

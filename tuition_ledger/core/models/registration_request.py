"""Self-service registration request. pending -> approved | rejected, then terminal."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tuition_ledger.core.enums import RegistrationRequestStatus


def _parse_stamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class RegistrationRequest:
    wallet: str
    student_id: str
    status: RegistrationRequestStatus = RegistrationRequestStatus.pending
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RegistrationRequest":
        """Build from a snapshot `registrationRequests` entry (camelCase keys)."""
        return cls(
            wallet=record["wallet"],
            student_id=record["studentId"],
            status=RegistrationRequestStatus(record["status"]),
            created_at=_parse_stamp(record.get("createdAt")) or datetime.now(timezone.utc),
            approved_at=_parse_stamp(record.get("approvedAt")),
            rejected_at=_parse_stamp(record.get("rejectedAt")),
        )

"""Student: wallet <-> student id mapping. Scholarship percent is the only mutable field."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Student:
    student_id: str
    wallet: str
    scholarship_percent: int = 0
    is_registered: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

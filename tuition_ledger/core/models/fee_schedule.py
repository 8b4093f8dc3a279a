"""Fee schedule per semester. Overwritten in place; only the latest values are kept."""

from dataclasses import dataclass


@dataclass
class FeeSchedule:
    semester: str
    base_amount: int  # smallest currency unit
    deadline: int  # unix seconds
    is_active: bool = True

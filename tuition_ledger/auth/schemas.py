from pydantic import BaseModel

from tuition_ledger.core.enums import UserRole


class CurrentUser(BaseModel):
    wallet: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

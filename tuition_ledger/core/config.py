from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from tuition_ledger.core.enums import SettlementMode


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Ledger owner; the only wallet allowed to run administrative writes.
    admin_wallet: str = Field(..., alias="ADMIN_WALLET")
    university_wallet: str = Field(..., alias="UNIVERSITY_WALLET")

    snapshot_path: Path = Field(Path("data/state.json"), alias="SNAPSHOT_PATH")
    settlement_mode: SettlementMode = Field(SettlementMode.HOLD_FUNDS, alias="SETTLEMENT_MODE")
    transfer_timeout_seconds: float = Field(10.0, gt=0, alias="TRANSFER_TIMEOUT_SECONDS")
    restore_on_startup: bool = Field(True, alias="RESTORE_ON_STARTUP")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


settings = Settings()

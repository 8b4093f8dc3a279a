from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from tuition_ledger.core.addresses import normalize_wallet
from tuition_ledger.core.config import Settings, settings as default_settings


def create_access_token(
    wallet: str,
    *,
    expires_minutes: Optional[int] = None,
    app_settings: Optional[Settings] = None,
) -> str:
    """Token whose subject is the caller's wallet. Minted by the wallet-connect front end."""
    cfg = app_settings or default_settings
    if expires_minutes is None:
        expires_minutes = cfg.access_token_expire_minutes

    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode: Dict[str, Any] = {"sub": normalize_wallet(wallet), "exp": expire}
    return jwt.encode(to_encode, cfg.jwt_secret_key, algorithm=cfg.jwt_algorithm)


def decode_access_token(token: str, app_settings: Settings) -> Dict[str, Any]:
    return jwt.decode(token, app_settings.jwt_secret_key, algorithms=[app_settings.jwt_algorithm])

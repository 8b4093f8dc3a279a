from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from tuition_ledger.auth.schemas import CurrentUser
from tuition_ledger.auth.security import decode_access_token
from tuition_ledger.core.addresses import is_wallet_address
from tuition_ledger.core.config import Settings
from tuition_ledger.core.enums import UserRole
from tuition_ledger.core.runtime import get_settings


bearer_scheme = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Resolve the calling wallet from the access token. The ledger owner is ADMIN."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(credentials.credentials, app_settings)
    except JWTError:
        raise credentials_exception

    wallet = payload.get("sub")
    if not wallet or not is_wallet_address(wallet):
        raise credentials_exception
    wallet = wallet.lower()

    role = UserRole.ADMIN if wallet == app_settings.admin_wallet.lower() else UserRole.STUDENT
    return CurrentUser(wallet=wallet, role=role)

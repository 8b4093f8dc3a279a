from fastapi import Depends, HTTPException, status

from tuition_ledger.auth.dependencies import get_current_user
from tuition_ledger.auth.schemas import CurrentUser


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require the ledger owner. Used for every administrative write and the restore path."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the ledger admin can perform this action",
        )
    return current_user


async def require_self_or_admin(
    wallet: str,
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Students may read their own records; the admin may read anyone's."""
    if not current_user.is_admin and wallet.lower() != current_user.wallet:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return current_user

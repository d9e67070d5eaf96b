from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from infrastructure.auth import UserIdentity, resolve_from_headers
from infrastructure.services import SettingsDep


def get_current_identity(request: Request, settings: SettingsDep) -> UserIdentity:
    """Resolve the caller, rejecting unauthenticated requests with 401."""
    identity = resolve_from_headers(request.headers, settings.server)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return identity


def require_admin(
    identity: Annotated[UserIdentity, Depends(get_current_identity)],
) -> UserIdentity:
    if not identity.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return identity


CurrentIdentity = Annotated[UserIdentity, Depends(get_current_identity)]
AdminIdentity = Annotated[UserIdentity, Depends(require_admin)]

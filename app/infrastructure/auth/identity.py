"""Caller identity resolved from trusted gateway headers.

Bearer credentials are validated upstream; the gateway forwards the
authenticated user id and roles in headers.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional

from infrastructure.configuration import ServerSettings


@dataclass(frozen=True)
class UserIdentity:
    """Normalized caller identity."""

    user_id: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    is_admin: bool = False

    def can_act_for(self, user_id: str) -> bool:
        """Admins act for anyone, other users only for themselves."""
        return self.is_admin or self.user_id == user_id


def resolve_from_headers(
    headers: Mapping[str, str], settings: ServerSettings
) -> Optional[UserIdentity]:
    """Build the identity from headers, or None when unauthenticated."""
    user_id = (headers.get(settings.USER_ID_HEADER) or "").strip()
    if not user_id:
        return None

    raw_roles = headers.get(settings.USER_ROLES_HEADER) or ""
    roles = frozenset(
        role.strip().lower().removeprefix("role_")
        for role in raw_roles.split(",")
        if role.strip()
    )
    return UserIdentity(
        user_id=user_id,
        roles=roles,
        is_admin=settings.ADMIN_ROLE.lower() in roles,
    )

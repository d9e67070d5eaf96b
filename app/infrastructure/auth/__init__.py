"""Infrastructure auth module - caller identity resolution."""

from infrastructure.auth.identity import UserIdentity, resolve_from_headers

__all__ = ["UserIdentity", "resolve_from_headers"]

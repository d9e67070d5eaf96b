"""
Type aliases for FastAPI dependency injection.

Provides annotated type hints for common infrastructure dependencies.
"""

from typing import Annotated

from fastapi import Depends

from infrastructure.configuration import Settings
from infrastructure.services.container import ServiceContainer
from infrastructure.services.providers import get_services, get_settings

# Settings dependency
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Service graph built at startup (registry, router, stores, ...)
ServicesDep = Annotated[ServiceContainer, Depends(get_services)]

__all__ = [
    "SettingsDep",
    "ServicesDep",
]

"""
Dependency injection services.

Provides the service container, type aliases and provider functions for
FastAPI dependency injection.
"""

from infrastructure.services.container import ServiceContainer, build_services
from infrastructure.services.dependencies import ServicesDep, SettingsDep
from infrastructure.services.providers import get_services, get_settings

__all__ = [
    "ServiceContainer",
    "ServicesDep",
    "SettingsDep",
    "build_services",
    "get_services",
    "get_settings",
]

"""Structured logging infrastructure.

Centralized logging configuration and utilities for the notification
service using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_module_logger(): Get a logger for the calling module
    - bind_event_context(): Context manager for per-entry logging context
    - get_correlation_id(): Get current correlation ID from context
    - clear_event_context(): Clear all bound context

Example:
    from infrastructure.logging import configure_logging, get_module_logger

    configure_logging()

    logger = get_module_logger()
    logger.info("module_initialized")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)
from infrastructure.logging.context import (
    bind_event_context,
    clear_event_context,
    get_correlation_id,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "bind_event_context",
    "clear_event_context",
    "get_correlation_id",
]

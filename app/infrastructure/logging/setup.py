"""Structlog configuration for the notification service.

Every log line carries the service identity (``service``, ``environment``,
``git_sha``) so output from several consumers in one group can be told
apart, plus whatever stream-entry context ``bind_event_context`` has bound.
Development renders to the console, production renders JSON.

Usage:
    from infrastructure.logging import configure_logging, get_module_logger

    # Configure logging at app startup
    configure_logging(settings=settings)

    # Get a logger for your module
    logger = get_module_logger()
    logger.info("event_name", key="value")

Dependencies:
    - infrastructure.configuration.Settings
"""

import inspect
import logging
import sys
from typing import TYPE_CHECKING, Any, List, MutableMapping, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.typing import Processor

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

SERVICE_NAME = "notification-service"

# Per-request access lines; an SSE client reconnecting every few seconds
# floods them at INFO
CHATTY_LOGGERS = ("uvicorn.access",)


def _is_test_environment() -> bool:
    """Detect if running in a test environment.

    Returns:
        True if pytest is in sys.modules, False otherwise
    """
    return "pytest" in sys.modules


def _default_settings() -> "Settings":
    from infrastructure.configuration.settings import settings

    return settings


def _resolve_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def service_context(settings: "Settings") -> Processor:
    """Processor stamping the service identity onto every event.

    Values already present on the event win, so a caller can still log
    its own ``environment`` or ``git_sha`` field.
    """
    identity = {
        "service": SERVICE_NAME,
        "environment": "production" if settings.is_production else settings.PREFIX.rstrip("-"),
        "git_sha": settings.GIT_SHA,
    }

    def _add_service_context(
        _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        for key, value in identity.items():
            event_dict.setdefault(key, value)
        return event_dict

    return _add_service_context


def build_processors(settings: "Settings", production: bool) -> List[Processor]:
    processors: List[Processor] = [
        # Stream entry context bound through contextvars
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        service_context(settings),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def _configure_silent() -> BoundLogger:
    logging.root.setLevel(logging.CRITICAL + 1)
    # Minimal processors so bound loggers still work
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=logging.CRITICAL + 1, force=True)
    return structlog.stdlib.get_logger()


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
    settings: Optional["Settings"] = None,
) -> BoundLogger:
    """Configure structured logging.

    Args:
        log_level: Override for settings.LOG_LEVEL
        is_production: Override for settings.is_production (JSON vs console)
        settings: Settings to read defaults and service identity from

    Returns:
        Configured logger instance
    """
    # Suppress all logging during tests
    if _is_test_environment():
        return _configure_silent()

    settings = settings or _default_settings()
    production = is_production if is_production is not None else settings.is_production
    level = _resolve_level(log_level or settings.LOG_LEVEL)

    structlog.configure(
        processors=build_processors(settings, production),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=level, force=True)
    if production:
        for name in CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.stdlib.get_logger()


# Module-level logger (auto-configured on import)
logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Get a logger for the calling module with full path context.

    Returns:
        Configured logger instance with module context

    Example:
        # In infrastructure/push/registry.py
        logger = get_module_logger()
        # context: {"component": "registry", "module_path": "infrastructure.push.registry"}

        logger.info("push_connection_registered", user_id="42")
    """
    current_frame = inspect.currentframe()
    if current_frame is None or current_frame.f_back is None:
        return logger

    module = inspect.getmodule(current_frame.f_back)
    if module is None:
        return logger.bind(component="unknown")

    module_name = module.__name__
    return logger.bind(component=module_name.split(".")[-1], module_path=module_name)

from contextlib import asynccontextmanager
import sys
from typing import AsyncIterator, List, TYPE_CHECKING

from fastapi import FastAPI
from redis.exceptions import RedisError
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging
from infrastructure.services import build_services, get_settings
from infrastructure.services.container import ServiceContainer
from jobs import scheduled_tasks
from jobs.scheduled_tasks import RunningLoop

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _is_test_environment() -> bool:
    """Detect if running in a test environment."""
    return "pytest" in sys.modules


def _get_logger(settings: "Settings") -> BoundLogger:
    return configure_logging(settings=settings)


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def _ensure_consumer_groups(services: ServiceContainer, logger: BoundLogger) -> None:
    if not services.settings.streams.ingestion_enabled:
        return
    try:
        services.ingestor.ensure_consumer_groups()
    except RedisError as exc:
        # The poll loop recreates missing groups once Redis is reachable
        logger.error("consumer_group_setup_failed", error=str(exc))


def _start_scheduled_tasks(
    services: ServiceContainer,
    settings: "Settings",
    logger: BoundLogger,
) -> List[RunningLoop]:
    if _is_test_environment() or not settings.server.SCHEDULED_TASKS_ENABLED:
        logger.info("scheduled_tasks_skipped", reason="disabled")
        return []

    loops = scheduled_tasks.start(services)
    logger.info("scheduled_tasks_started", loops=[loop.name for loop in loops])
    return loops


def _stop_scheduled_tasks(loops: List[RunningLoop]) -> None:
    # Joins the loop threads so no job is mid-run when services close
    scheduled_tasks.stop(loops)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger = _get_logger(settings)

    app.state.settings = settings
    app.state.logger = logger

    logger.info("application_startup")
    _list_configs(settings, logger)

    services = getattr(app.state, "services", None) or build_services(settings)
    app.state.services = services

    _ensure_consumer_groups(services, logger)
    app.state.scheduled_loops = _start_scheduled_tasks(services, settings, logger)

    yield

    logger.info("application_shutdown")

    _stop_scheduled_tasks(app.state.scheduled_loops)
    services.close()

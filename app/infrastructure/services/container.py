"""Service graph for the notification service.

Everything stateful (connection registry, stores, dispatcher) is created
here once per application and shared through ``app.state``; nothing lives
in module-level singletons.
"""

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

from infrastructure.clients.redis_streams import create_redis_client
from infrastructure.configuration import Settings
from infrastructure.events.ingestor import EventIngestor
from infrastructure.events.publisher import RedisStreamPublisher
from infrastructure.logging import get_module_logger
from infrastructure.notifications.bulk import BulkNotifier
from infrastructure.notifications.channels import (
    EmailChannel,
    EmailSender,
    NullEmailSender,
    PushChannel,
    SmtpEmailSender,
)
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.router import NotificationRouter
from infrastructure.notifications.stores import (
    InMemoryNotificationStore,
    InMemoryPreferenceStore,
    InMemoryTemplateStore,
)
from infrastructure.notifications.templates import default_templates
from infrastructure.push.registry import ConnectionRegistry
from infrastructure.resilience.retry import RetryConfig, RetryPolicy, RetryWorker

logger = get_module_logger()


@dataclass
class ServiceContainer:
    settings: Settings
    redis: Redis
    registry: ConnectionRegistry
    notification_store: InMemoryNotificationStore
    preference_store: InMemoryPreferenceStore
    template_store: InMemoryTemplateStore
    publisher: RedisStreamPublisher
    dispatcher: NotificationDispatcher
    router: NotificationRouter
    bulk_notifier: BulkNotifier
    retry_worker: RetryWorker
    ingestor: EventIngestor

    def close(self) -> None:
        """Release resources in reverse dependency order."""
        self.registry.close_all()
        self.dispatcher.close()
        try:
            self.redis.close()
        except RedisError as e:
            logger.warning("redis_close_failed", error=str(e))
        logger.info("services_closed")


def _email_sender(settings: Settings) -> EmailSender:
    if settings.email.EMAIL_ENABLED:
        return SmtpEmailSender(settings.email)
    logger.info("email_delivery_disabled", reason="EMAIL_ENABLED is false")
    return NullEmailSender()


def build_services(
    settings: Settings,
    redis_client: Optional[Redis] = None,
    email_sender: Optional[EmailSender] = None,
    email_executor: Optional[Executor] = None,
) -> ServiceContainer:
    """Wire the full service graph from settings.

    Args:
        settings: Application settings
        redis_client: Optional client override (tests)
        email_sender: Optional sender override (tests)
        email_executor: Optional executor for email sends (tests)
    """
    redis_client = redis_client or create_redis_client(
        settings.redis, block_ms=settings.streams.block_ms
    )

    registry = ConnectionRegistry(
        queue_size=settings.push.queue_size,
        connection_timeout_seconds=settings.push.connection_timeout_seconds,
        replay_buffer_size=settings.push.replay_buffer_size,
        replay_max_users=settings.push.replay_max_users,
    )
    notification_store = InMemoryNotificationStore()
    preference_store = InMemoryPreferenceStore()
    template_store = InMemoryTemplateStore(default_templates())

    publisher = RedisStreamPublisher(
        redis_client,
        settings.streams.notification_events,
        base64_values=settings.streams.base64_values,
    )

    retry_config = RetryConfig.from_settings(settings.retry)
    dispatcher = NotificationDispatcher(
        channels={
            NotificationChannel.EMAIL: EmailChannel(
                email_sender or _email_sender(settings),
                executor=email_executor,
                max_workers=settings.email.EMAIL_MAX_WORKERS,
            ),
            NotificationChannel.PUSH: PushChannel(registry),
        },
        store=notification_store,
        retry_policy=RetryPolicy(retry_config),
        publisher=publisher,
    )
    router = NotificationRouter(
        preferences=preference_store,
        templates=template_store,
        store=notification_store,
        dispatcher=dispatcher,
    )

    services = ServiceContainer(
        settings=settings,
        redis=redis_client,
        registry=registry,
        notification_store=notification_store,
        preference_store=preference_store,
        template_store=template_store,
        publisher=publisher,
        dispatcher=dispatcher,
        router=router,
        bulk_notifier=BulkNotifier(router, publisher),
        retry_worker=RetryWorker(notification_store, dispatcher, retry_config),
        ingestor=EventIngestor.from_settings(redis_client, router, settings.streams),
    )
    logger.info(
        "services_built",
        streams=settings.streams.inbound_streams,
        max_attempts=retry_config.max_attempts,
    )
    return services

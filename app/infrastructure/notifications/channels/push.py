"""Push channel: synchronous single write through the connection registry."""

from concurrent.futures import Future

from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import DeliveryChannel, completed_future
from infrastructure.notifications.models import (
    ChannelResult,
    NotificationChannel,
    NotificationRecord,
)
from infrastructure.push.registry import ConnectionRegistry

logger = get_module_logger()


class PushChannel(DeliveryChannel):
    """Delivers records as ``notification`` events to live connections.

    An offline recipient still counts as delivered: the record stays in the
    user's inbox and the event is buffered for Last-Event-ID replay.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def send(self, record: NotificationRecord) -> "Future[ChannelResult]":
        delivered = self.registry.send_notification_to_user(
            record.recipient_id,
            record.type,
            record.content,
            notification_id=record.id,
        )
        if not delivered:
            logger.info(
                "push_recipient_offline",
                notification_id=record.id,
                recipient_id=record.recipient_id,
            )
        return completed_future(
            ChannelResult.success(
                message="Pushed" if delivered else "Recipient offline",
                data={"online": delivered},
            )
        )

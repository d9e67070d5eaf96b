"""Delivery channel abstract base class.

Every channel returns a ``Future`` so the dispatcher handles synchronous
(push) and pooled (email) sends through the same completion path.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future

from infrastructure.notifications.models import (
    ChannelResult,
    NotificationChannel,
    NotificationRecord,
)


def completed_future(result: ChannelResult) -> "Future[ChannelResult]":
    future: "Future[ChannelResult]" = Future()
    future.set_result(result)
    return future


def failed_future(error: BaseException) -> "Future[ChannelResult]":
    future: "Future[ChannelResult]" = Future()
    future.set_exception(error)
    return future


class DeliveryChannel(ABC):
    """Abstract base class for delivery channels.

    Implementations:
    - EmailChannel: SMTP send on a thread pool
    - PushChannel: synchronous write through the connection registry

    A channel reports failure either by resolving the future with an error
    ``ChannelResult`` or by failing the future with an exception. Raising
    ``PermanentDeliveryError`` marks the failure as not worth retrying.
    """

    @property
    @abstractmethod
    def channel(self) -> NotificationChannel:
        """Channel served by this implementation."""

    @abstractmethod
    def send(self, record: NotificationRecord) -> "Future[ChannelResult]":
        """Start delivering ``record``.

        Args:
            record: Rendered notification record

        Returns:
            Future resolving to the ChannelResult of the attempt
        """

    def close(self) -> None:
        """Release channel resources (shutdown)."""

"""Notification dispatcher: per-channel send and outcome handling.

Routes each record to the channel registered for it, then turns the
channel's outcome into a record state transition and an outcome event:

- success: record SENT, NotificationSent published
- PermanentDeliveryError: record permanently FAILED, NotificationFailed
  (will_retry=False)
- any other error: one failed attempt counted, NotificationFailed with
  will_retry derived from the remaining attempt budget

``dispatch`` never raises. Email outcomes arrive on pool threads through
the future's done-callback; push outcomes arrive inline.
"""

import threading
from concurrent.futures import Future
from functools import partial
from typing import Dict, Optional, Set

from infrastructure.events.models import NotificationFailed, NotificationSent
from infrastructure.events.publisher import OutcomePublisher
from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import DeliveryChannel, failed_future
from infrastructure.notifications.errors import PermanentDeliveryError
from infrastructure.notifications.models import (
    ChannelResult,
    NotificationChannel,
    NotificationRecord,
)
from infrastructure.notifications.stores import NotificationStore
from infrastructure.resilience.retry.policy import RetryPolicy

logger = get_module_logger()


class NotificationDispatcher:
    """Multi-channel notification dispatcher.

    Attributes:
        channels: Dispatch table, one DeliveryChannel per NotificationChannel
        store: NotificationStore receiving state transitions
        retry_policy: Failure state machine
        publisher: Optional outcome event publisher

    Example:
        dispatcher = NotificationDispatcher(
            channels={
                NotificationChannel.EMAIL: EmailChannel(NullEmailSender()),
                NotificationChannel.PUSH: PushChannel(registry),
            },
            store=store,
            retry_policy=RetryPolicy(),
        )
        dispatcher.dispatch(record)
    """

    def __init__(
        self,
        channels: Dict[NotificationChannel, DeliveryChannel],
        store: NotificationStore,
        retry_policy: RetryPolicy,
        publisher: Optional[OutcomePublisher] = None,
    ) -> None:
        self.channels = channels
        self.store = store
        self.retry_policy = retry_policy
        self.publisher = publisher
        self._in_flight: Set[str] = set()
        self._in_flight_lock = threading.Lock()

        logger.info(
            "initialized_notification_dispatcher",
            channels=[channel.value for channel in channels],
            publisher_enabled=publisher is not None,
        )

    def is_in_flight(self, record_id: str) -> bool:
        with self._in_flight_lock:
            return record_id in self._in_flight

    def in_flight_count(self) -> int:
        with self._in_flight_lock:
            return len(self._in_flight)

    def dispatch(self, record: NotificationRecord) -> None:
        """Start delivery of ``record`` on its channel."""
        with self._in_flight_lock:
            if record.id in self._in_flight:
                logger.debug("notification_already_in_flight", notification_id=record.id)
                return
            self._in_flight.add(record.id)

        channel = self.channels.get(record.channel)
        if channel is None:
            future = failed_future(
                PermanentDeliveryError(f"No channel registered for {record.channel.value}")
            )
        else:
            try:
                future = channel.send(record)
            except Exception as e:
                future = failed_future(e)

        logger.info(
            "notification_dispatched",
            notification_id=record.id,
            recipient_id=record.recipient_id,
            channel=record.channel.value,
            attempt=record.retry_count + 1,
        )
        future.add_done_callback(partial(self._handle_result, record.id))

    def _handle_result(self, record_id: str, future: "Future[ChannelResult]") -> None:
        try:
            result = self._resolve(future)
            if result.is_success:
                self._record_success(record_id, result)
            elif result.is_permanent:
                self._record_permanent_failure(record_id, result.message)
            else:
                self._record_failure(record_id, result.message)
        except Exception as e:
            logger.error(
                "notification_result_handling_failed",
                notification_id=record_id,
                error=str(e),
                exc_info=True,
            )
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(record_id)

    @staticmethod
    def _resolve(future: "Future[ChannelResult]") -> ChannelResult:
        try:
            return future.result()
        except PermanentDeliveryError as e:
            return ChannelResult.permanent_error(str(e) or e.__class__.__name__)
        except Exception as e:
            return ChannelResult.transient_error(str(e) or e.__class__.__name__)

    def _record_success(self, record_id: str, result: ChannelResult) -> None:
        record = self.store.update(record_id, lambda r: r.mark_sent())
        if record is None:
            logger.warning("notification_record_missing", notification_id=record_id)
            return

        logger.info(
            "notification_sent",
            notification_id=record.id,
            recipient_id=record.recipient_id,
            channel=record.channel.value,
            message=result.message,
        )
        self._publish(
            NotificationSent(
                notification_id=record.id,
                recipient_id=record.recipient_id,
                channel=record.channel.value,
                type=record.type,
                delivery_time=record.sent_at.isoformat(),
            )
        )

    def _record_failure(self, record_id: str, error: str) -> None:
        record = self.store.update(
            record_id, lambda r: self.retry_policy.record_failure(r, error)
        )
        if record is None:
            logger.warning("notification_record_missing", notification_id=record_id)
            return
        self._report_failure(record)

    def _record_permanent_failure(self, record_id: str, error: str) -> None:
        record = self.store.update(
            record_id, lambda r: self.retry_policy.record_permanent_failure(r, error)
        )
        if record is None:
            logger.warning("notification_record_missing", notification_id=record_id)
            return
        self._report_failure(record)

    def _report_failure(self, record: NotificationRecord) -> None:
        will_retry = self.retry_policy.is_retryable(record)
        log = logger.warning if will_retry else logger.error
        log(
            "notification_failed" if will_retry else "notification_permanently_failed",
            notification_id=record.id,
            recipient_id=record.recipient_id,
            channel=record.channel.value,
            retry_count=record.retry_count,
            will_retry=will_retry,
            error=record.error_message,
        )
        self._publish(
            NotificationFailed(
                notification_id=record.id,
                recipient_id=record.recipient_id,
                channel=record.channel.value,
                error_message=record.error_message,
                retry_count=record.retry_count,
                will_retry=will_retry,
            )
        )

    def _publish(self, event) -> None:
        if self.publisher is None:
            return
        try:
            self.publisher.publish(event)
        except Exception as e:
            logger.error(
                "outcome_event_publish_failed",
                event_type=event.event_type,
                error=str(e),
            )

    def close(self) -> None:
        for channel in self.channels.values():
            channel.close()

"""Bulk notifications: one event type fanned out to many users."""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from infrastructure.events.models import BulkCompleted
from infrastructure.events.publisher import OutcomePublisher
from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.router import DEFAULT_CHANNELS, NotificationRouter

logger = get_module_logger()


class BulkNotificationRequest(BaseModel):
    """Bulk send request.

    Attributes:
        user_ids: Recipients
        type: Event type used for preferences and templates
        channels: Channels to use (default: EMAIL, PUSH)
        common_data: Template data shared by every recipient
        user_specific_data: Per-user data merged over common_data; an
            ``email`` key provides the recipient address
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_ids: List[str] = Field(..., min_length=1)
    type: str
    channels: List[NotificationChannel] = Field(
        default_factory=lambda: list(DEFAULT_CHANNELS)
    )
    common_data: Dict[str, Any] = Field(default_factory=dict)
    user_specific_data: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class BulkNotificationResult(BaseModel):
    batch_id: str
    total_recipients: int
    success_count: int
    failed_count: int


class BulkNotifier:
    def __init__(
        self, router: NotificationRouter, publisher: Optional[OutcomePublisher] = None
    ) -> None:
        self.router = router
        self.publisher = publisher

    def send(
        self, request: BulkNotificationRequest, batch_id: Optional[str] = None
    ) -> BulkNotificationResult:
        """Route ``request.type`` to every user and report the batch outcome.

        A user counts as failed only when routing raised; channel delivery
        failures are tracked on the records themselves.
        """
        batch_id = batch_id or str(uuid.uuid4())
        log = logger.bind(batch_id=batch_id, type=request.type)
        log.info("bulk_notification_start", total_recipients=len(request.user_ids))

        success_count = 0
        failed_count = 0
        for user_id in request.user_ids:
            data = {**request.common_data, **request.user_specific_data.get(user_id, {})}
            try:
                self.router.route(
                    request.type,
                    user_id,
                    data.get("email"),
                    data,
                    channels=request.channels,
                )
                success_count += 1
            except Exception as e:
                failed_count += 1
                log.error(
                    "bulk_notification_recipient_failed",
                    user_id=user_id,
                    error=str(e),
                )

        result = BulkNotificationResult(
            batch_id=batch_id,
            total_recipients=len(request.user_ids),
            success_count=success_count,
            failed_count=failed_count,
        )
        log.info("bulk_notification_complete", **result.model_dump(exclude={"batch_id"}))

        if self.publisher is not None:
            self.publisher.publish(
                BulkCompleted(
                    batch_id=batch_id,
                    total_recipients=result.total_recipients,
                    success_count=success_count,
                    failed_count=failed_count,
                    type=request.type,
                )
            )
        return result

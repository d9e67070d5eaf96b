"""Notification endpoints."""

import uuid

from fastapi import APIRouter, BackgroundTasks, status

from api.dependencies.auth import AdminIdentity
from infrastructure.logging import get_module_logger
from infrastructure.notifications.bulk import BulkNotificationRequest
from infrastructure.services import ServicesDep

logger = get_module_logger()
router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/bulk", status_code=status.HTTP_202_ACCEPTED)
def send_bulk(
    body: BulkNotificationRequest,
    background_tasks: BackgroundTasks,
    identity: AdminIdentity,
    services: ServicesDep,
):
    """Fan one notification type out to many users in the background.

    The outcome is published as a bulk completed event on the notification
    events stream.
    """
    batch_id = str(uuid.uuid4())
    background_tasks.add_task(services.bulk_notifier.send, body, batch_id)
    logger.info(
        "bulk_notification_accepted",
        batch_id=batch_id,
        admin_id=identity.user_id,
        total_recipients=len(body.user_ids),
    )
    return {
        "batchId": batch_id,
        "totalRecipients": len(body.user_ids),
        "status": "accepted",
    }

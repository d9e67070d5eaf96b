"""Notification routing and delivery.

Usage:
    from infrastructure.notifications.router import NotificationRouter

    records = router.route(
        "session.completed",
        recipient_id="42",
        recipient_email="ann@example.com",
        template_data={"username": "ann", "assessmentName": "Algebra"},
    )
"""

from infrastructure.notifications.models import (
    ChannelResult,
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
    Preference,
    Template,
)

__all__ = [
    "ChannelResult",
    "NotificationChannel",
    "NotificationRecord",
    "NotificationStatus",
    "Preference",
    "Template",
]

"""Test factories for notification records, preferences and templates.

All factories return Pydantic models with sensible defaults.
"""

from typing import Dict, List, Optional

from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
    Preference,
    Template,
)


def make_record(
    recipient_id: str = "user-1",
    recipient_email: Optional[str] = "user1@example.com",
    type: str = "session.completed",
    channel: NotificationChannel = NotificationChannel.EMAIL,
    content: str = "Hello",
    subject: Optional[str] = "Subject",
    status: NotificationStatus = NotificationStatus.PENDING,
    retry_count: int = 0,
    error_message: Optional[str] = None,
) -> NotificationRecord:
    """Create a NotificationRecord.

    Example:
        >>> record = make_record(channel=NotificationChannel.PUSH, recipient_email=None)
    """
    return NotificationRecord(
        recipient_id=recipient_id,
        recipient_email=recipient_email,
        type=type,
        channel=channel,
        content=content,
        subject=subject,
        status=status,
        retry_count=retry_count,
        error_message=error_message,
    )


def make_preference(
    user_id: str = "user-1",
    global_enabled: bool = True,
    email_enabled: bool = True,
    push_enabled: bool = True,
    per_type_overrides: Optional[Dict[str, Dict[str, bool]]] = None,
) -> Preference:
    return Preference(
        user_id=user_id,
        global_enabled=global_enabled,
        email_enabled=email_enabled,
        push_enabled=push_enabled,
        per_type_overrides=per_type_overrides or {},
    )


def make_template(
    name: str = "session_completion_email",
    channel: NotificationChannel = NotificationChannel.EMAIL,
    subject: Optional[str] = "Done: {{assessmentName}}",
    body: str = "Hello {{username}}, score {{score}}",
    required_variables: Optional[List[str]] = None,
) -> Template:
    return Template(
        name=name,
        channel=channel,
        subject=subject,
        body=body,
        required_variables=required_variables or [],
    )

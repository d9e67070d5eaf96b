"""Notification system core models.

Records, preferences and templates shared by the router, dispatcher and
retry sweep.

Uses Pydantic BaseModel for runtime validation and cheap deep copies
(stores hand out copies, never their own instances).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NotificationChannel(str, Enum):
    """Delivery channels. Closed set; the dispatcher holds one sender per value."""

    EMAIL = "EMAIL"
    PUSH = "PUSH"

    @property
    def preference_key(self) -> str:
        """Key used for this channel in preference overrides."""
        return f"{self.value.lower()}Enabled"

    @property
    def template_suffix(self) -> str:
        return self.value.lower()


class NotificationStatus(str, Enum):
    """Notification delivery status.

    PENDING -> SENT, PENDING -> FAILED, FAILED -> SENT. A FAILED record is
    permanent once its retry count reaches the attempt budget.
    """

    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class NotificationRecord(BaseModel):
    """A single notification for one recipient on one channel.

    Attributes:
        id: Unique record id (uuid4)
        recipient_id: User the notification is addressed to
        recipient_email: Email destination, required by the EMAIL channel
        type: Originating event type (e.g. "user.registered")
        channel: Delivery channel, fixed at creation
        template_name: Template used to render subject and content
        subject: Rendered subject (EMAIL only)
        content: Rendered body
        status: Delivery status
        retry_count: Failed attempts so far, never above the attempt budget
        error_message: Last delivery error
        created_at / sent_at / delivered_at: Lifecycle timestamps
        is_read: Inbox read flag

    Example:
        record = NotificationRecord(
            recipient_id="42",
            recipient_email="ann@example.com",
            type="session.completed",
            channel=NotificationChannel.EMAIL,
            content="Hello Ann",
        )
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    recipient_id: str
    recipient_email: Optional[str] = None
    type: str
    channel: NotificationChannel = Field(frozen=True)
    template_name: Optional[str] = None
    subject: Optional[str] = None
    content: str = ""
    status: NotificationStatus = NotificationStatus.PENDING
    retry_count: int = Field(default=0, ge=0)
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    sent_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    is_read: bool = False

    def mark_sent(self) -> None:
        now = utc_now()
        self.status = NotificationStatus.SENT
        self.sent_at = now
        self.delivered_at = now
        self.error_message = None


class Preference(BaseModel):
    """Per-user channel preferences.

    Precedence when deciding whether a channel is eligible for an event:
    global switch, then a per-type override, then the channel flag.

    Attributes:
        user_id: Owner of the preference
        global_enabled: Master switch; False blocks every channel
        email_enabled: Default for EMAIL
        push_enabled: Default for PUSH
        per_type_overrides: {event_type: {"emailEnabled": bool, "pushEnabled": bool}}
    """

    user_id: str
    global_enabled: bool = True
    email_enabled: bool = True
    push_enabled: bool = True
    per_type_overrides: Dict[str, Dict[str, bool]] = Field(default_factory=dict)

    def allows(self, event_type: str, channel: NotificationChannel) -> bool:
        if not self.global_enabled:
            return False

        overrides = self.per_type_overrides.get(event_type) or {}
        for key in (channel.preference_key, channel.template_suffix):
            if key in overrides:
                return bool(overrides[key])

        if channel == NotificationChannel.EMAIL:
            return self.email_enabled
        return self.push_enabled


class Template(BaseModel):
    """Notification template with ``{{variable}}`` placeholders."""

    name: str
    channel: NotificationChannel
    subject: Optional[str] = None
    body: str
    required_variables: List[str] = Field(default_factory=list)


class RenderedTemplate(BaseModel):
    subject: Optional[str] = None
    body: str


class ChannelResultStatus(str, Enum):
    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"


@dataclass
class ChannelResult:
    """Outcome of a single channel send.

    Attributes:
        status: High-level outcome
        message: Human-friendly message for logs
        data: Optional channel-specific payload (e.g. whether a push
            recipient was online)
    """

    status: ChannelResultStatus
    message: str = "ok"
    data: Optional[Dict[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.status == ChannelResultStatus.SUCCESS

    @property
    def is_permanent(self) -> bool:
        return self.status == ChannelResultStatus.PERMANENT_ERROR

    @classmethod
    def success(
        cls, message: str = "ok", data: Optional[Dict[str, Any]] = None
    ) -> "ChannelResult":
        return cls(status=ChannelResultStatus.SUCCESS, message=message, data=data)

    @classmethod
    def transient_error(cls, message: str) -> "ChannelResult":
        return cls(status=ChannelResultStatus.TRANSIENT_ERROR, message=message)

    @classmethod
    def permanent_error(cls, message: str) -> "ChannelResult":
        return cls(status=ChannelResultStatus.PERMANENT_ERROR, message=message)

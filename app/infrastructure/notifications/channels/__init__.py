"""Delivery channel implementations."""

from infrastructure.notifications.channels.base import DeliveryChannel
from infrastructure.notifications.channels.email import (
    EmailChannel,
    EmailSender,
    NullEmailSender,
    SmtpEmailSender,
)
from infrastructure.notifications.channels.push import PushChannel

__all__ = [
    "DeliveryChannel",
    "EmailChannel",
    "EmailSender",
    "NullEmailSender",
    "PushChannel",
    "SmtpEmailSender",
]

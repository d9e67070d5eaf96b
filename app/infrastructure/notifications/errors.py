"""Notification service exception hierarchy."""


class NotificationError(Exception):
    """Base class for notification service errors."""


class EventDecodeError(NotificationError):
    """A stream entry could not be decoded into a known event."""

    def __init__(self, message: str, stream: str | None = None, entry_id: str | None = None):
        super().__init__(message)
        self.stream = stream
        self.entry_id = entry_id


class TemplateNotFoundError(NotificationError):
    """No template is registered for an (event type, channel) pair."""

    def __init__(self, template_name: str):
        super().__init__(f"Template not found: {template_name}")
        self.template_name = template_name


class ChannelSendError(NotificationError):
    """Retryable delivery failure reported by a channel."""


class PermanentDeliveryError(NotificationError):
    """Delivery failure that no retry can fix."""


class NoDestinationError(PermanentDeliveryError):
    """The record has no address for its channel (e.g. EMAIL without email)."""


class ConnectionWriteError(NotificationError):
    """A push connection could not accept a frame (closed, full or expired)."""

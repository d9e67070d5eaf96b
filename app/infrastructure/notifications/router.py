"""Notification router: preference and template resolution per channel.

For every requested channel the router decides eligibility from the
recipient's preferences, resolves and renders the channel's template,
persists one PENDING record and hands it to the dispatcher. A missing
template skips only that channel.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from infrastructure.logging import get_module_logger
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.errors import TemplateNotFoundError
from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationRecord,
    Preference,
    Template,
)
from infrastructure.notifications.stores import (
    NotificationStore,
    PreferenceStore,
    TemplateStore,
)
from infrastructure.notifications.templates import TemplateRenderer, template_name_for

logger = get_module_logger()

DEFAULT_CHANNELS: Sequence[NotificationChannel] = (
    NotificationChannel.EMAIL,
    NotificationChannel.PUSH,
)


def is_channel_eligible(
    preference: Optional[Preference], event_type: str, channel: NotificationChannel
) -> bool:
    """Absent preferences allow every channel."""
    if preference is None:
        return True
    return preference.allows(event_type, channel)


class NotificationRouter:
    """Turns one event for one recipient into per-channel records.

    Attributes:
        preferences: PreferenceStore lookups
        templates: TemplateStore lookups
        store: NotificationStore for new records
        dispatcher: NotificationDispatcher for delivery
        renderer: TemplateRenderer
    """

    def __init__(
        self,
        preferences: PreferenceStore,
        templates: TemplateStore,
        store: NotificationStore,
        dispatcher: NotificationDispatcher,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self.preferences = preferences
        self.templates = templates
        self.store = store
        self.dispatcher = dispatcher
        self.renderer = renderer or TemplateRenderer()

    def route(
        self,
        event_type: str,
        recipient_id: str,
        recipient_email: Optional[str],
        template_data: Mapping[str, Any],
        channels: Optional[Iterable[NotificationChannel]] = None,
    ) -> List[NotificationRecord]:
        """Create and dispatch one record per eligible channel.

        Args:
            event_type: Originating event type (e.g. "session.completed")
            recipient_id: Target user
            recipient_email: Address for the EMAIL channel, if known
            template_data: Variables available to templates
            channels: Requested channels in order (default: EMAIL, PUSH)

        Returns:
            The records created, in channel order.
        """
        requested = list(channels) if channels is not None else list(DEFAULT_CHANNELS)
        preference = self.preferences.get_preference(recipient_id)
        records: List[NotificationRecord] = []

        for channel in requested:
            if not is_channel_eligible(preference, event_type, channel):
                logger.info(
                    "notification_channel_disabled",
                    event_type=event_type,
                    recipient_id=recipient_id,
                    channel=channel.value,
                )
                continue

            try:
                template = self._resolve_template(event_type, channel)
            except TemplateNotFoundError as e:
                logger.warning(
                    "notification_template_missing",
                    event_type=event_type,
                    recipient_id=recipient_id,
                    channel=channel.value,
                    template_name=e.template_name,
                )
                continue

            record = self._create_record(
                event_type, recipient_id, recipient_email, channel, template, template_data
            )
            self.store.save(record)
            records.append(record)
            self.dispatcher.dispatch(record)

        logger.info(
            "notification_routed",
            event_type=event_type,
            recipient_id=recipient_id,
            requested=[c.value for c in requested],
            created=len(records),
        )
        return records

    def _resolve_template(
        self, event_type: str, channel: NotificationChannel
    ) -> Template:
        name = template_name_for(event_type, channel)
        template = self.templates.get_template(name)
        if template is None:
            raise TemplateNotFoundError(name)
        return template

    def _create_record(
        self,
        event_type: str,
        recipient_id: str,
        recipient_email: Optional[str],
        channel: NotificationChannel,
        template: Template,
        template_data: Mapping[str, Any],
    ) -> NotificationRecord:
        # Missing variables only warn; the placeholder stays in the output
        self.renderer.validate_template(template, template_data)
        rendered = self.renderer.render_template(template, template_data)
        return NotificationRecord(
            recipient_id=recipient_id,
            recipient_email=recipient_email,
            type=event_type,
            channel=channel,
            template_name=template.name,
            subject=rendered.subject,
            content=rendered.body,
        )

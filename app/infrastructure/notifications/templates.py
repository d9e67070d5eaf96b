"""Template rendering with ``{{variable}}`` placeholders.

Rendering is pure: the same text and data always produce the same output.
Placeholders whose variable is missing (or None) are left verbatim so a
partially rendered message still reads sensibly; ``validate`` reports
those gaps instead.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    NotificationChannel,
    RenderedTemplate,
    Template,
)

logger = get_module_logger()

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# Event types with a curated template family; others derive their name.
TEMPLATE_BASE_NAMES: Dict[str, str] = {
    "user.registered": "welcome_user",
    "session.completed": "session_completion",
    "proctoring.violation": "proctoring_alert",
    "assessment.published": "new_assessment_assigned",
}


def template_base_name(event_type: str) -> str:
    return TEMPLATE_BASE_NAMES.get(event_type, event_type.replace(".", "_"))


def template_name_for(event_type: str, channel: NotificationChannel) -> str:
    """Deterministic template name for an (event type, channel) pair.

    Example:
        >>> template_name_for("session.completed", NotificationChannel.EMAIL)
        'session_completion_email'
    """
    return f"{template_base_name(event_type)}_{channel.template_suffix}"


def placeholders(text: Optional[str]) -> List[str]:
    """Variable names referenced by ``text``, in order of appearance."""
    if not text:
        return []
    return PLACEHOLDER_PATTERN.findall(text)


class TemplateRenderer:
    """Renders and validates template text against a data mapping."""

    def render(self, text: Optional[str], data: Mapping[str, Any]) -> str:
        if not text:
            return ""

        def _replace(match: re.Match) -> str:
            value = data.get(match.group(1))
            if value is None:
                return match.group(0)
            return str(value)

        return PLACEHOLDER_PATTERN.sub(_replace, text)

    def missing_variables(
        self, text: Optional[str], data: Mapping[str, Any]
    ) -> List[str]:
        return [name for name in placeholders(text) if data.get(name) is None]

    def validate(self, text: Optional[str], data: Mapping[str, Any]) -> bool:
        """True when every placeholder in ``text`` has a non-None value."""
        return not self.missing_variables(text, data)

    def render_template(
        self, template: Template, data: Mapping[str, Any]
    ) -> RenderedTemplate:
        subject = self.render(template.subject, data) if template.subject else None
        return RenderedTemplate(subject=subject, body=self.render(template.body, data))

    def validate_template(self, template: Template, data: Mapping[str, Any]) -> bool:
        """Validate subject, body and declared required variables.

        Never blocks delivery: missing variables are logged as a warning and
        the caller renders anyway.
        """
        missing = self.missing_variables(template.subject, data)
        missing += self.missing_variables(template.body, data)
        missing += [
            name for name in template.required_variables if data.get(name) is None
        ]
        missing = list(dict.fromkeys(missing))
        if missing:
            logger.warning(
                "template_variables_missing",
                template_name=template.name,
                missing=missing,
            )
            return False
        return True


def default_templates() -> List[Template]:
    """Template catalog seeded into the in-memory template store."""
    return [
        Template(
            name="welcome_user_email",
            channel=NotificationChannel.EMAIL,
            subject="Welcome, {{firstName}}!",
            body=(
                "<p>Hello {{firstName}} {{lastName}},</p>"
                "<p>Your account <strong>{{username}}</strong> has been created. "
                "Notifications will be sent to {{email}}.</p>"
            ),
            required_variables=["username", "firstName"],
        ),
        Template(
            name="welcome_user_push",
            channel=NotificationChannel.PUSH,
            body="Welcome, {{firstName}}! Your account {{username}} is ready.",
        ),
        Template(
            name="session_completion_email",
            channel=NotificationChannel.EMAIL,
            subject="Assessment completed: {{assessmentName}}",
            body=(
                "<p>Hello {{username}},</p>"
                "<p>You completed <strong>{{assessmentName}}</strong> at "
                "{{completionTime}}.</p>"
                "<p>Score: {{score}} ({{status}})</p>"
            ),
            required_variables=["username", "assessmentName"],
        ),
        Template(
            name="session_completion_push",
            channel=NotificationChannel.PUSH,
            body="You completed {{assessmentName}}. Score: {{score}}",
        ),
        Template(
            name="new_assessment_assigned_email",
            channel=NotificationChannel.EMAIL,
            subject="New assessment assigned: {{assessmentName}}",
            body=(
                "<p>Hello {{username}},</p>"
                "<p>You have been assigned <strong>{{assessmentName}}</strong> "
                "({{duration}} minutes), due {{dueDate}}.</p>"
            ),
            required_variables=["assessmentName"],
        ),
        Template(
            name="new_assessment_assigned_push",
            channel=NotificationChannel.PUSH,
            body="New assessment assigned: {{assessmentName}} (due {{dueDate}})",
        ),
        Template(
            name="proctoring_alert_email",
            channel=NotificationChannel.EMAIL,
            subject="Proctoring alert: {{violationType}}",
            body=(
                "<p>A {{severity}} {{violationType}} violation was detected for "
                "{{username}} in session {{sessionId}} at {{timestamp}}.</p>"
            ),
            required_variables=["violationType", "sessionId"],
        ),
        Template(
            name="proctoring_alert_push",
            channel=NotificationChannel.PUSH,
            body="{{severity}} {{violationType}} for {{username}} (session {{sessionId}})",
        ),
    ]

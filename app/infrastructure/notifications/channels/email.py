"""Email channel: HTML email over SMTP on a bounded thread pool."""

import smtplib
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, Protocol

from infrastructure.configuration import EmailSettings
from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import DeliveryChannel, failed_future
from infrastructure.notifications.errors import (
    ChannelSendError,
    NoDestinationError,
    PermanentDeliveryError,
)
from infrastructure.notifications.models import (
    ChannelResult,
    NotificationChannel,
    NotificationRecord,
)

logger = get_module_logger()


class EmailSender(Protocol):
    def send_email(self, to: str, subject: str, body: str) -> None:
        """Send one HTML email. Raises on failure."""
        ...


class SmtpEmailSender:
    """Sends HTML email through an SMTP relay.

    One SMTP session per message keeps the sender safe to share between
    pool threads.
    """

    def __init__(self, settings: EmailSettings) -> None:
        self.settings = settings

    def send_email(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = formataddr(
            (self.settings.EMAIL_FROM_NAME, self.settings.EMAIL_FROM)
        )
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(body, subtype="html")

        try:
            with smtplib.SMTP(
                self.settings.SMTP_HOST,
                self.settings.SMTP_PORT,
                timeout=self.settings.EMAIL_SEND_TIMEOUT_SECONDS,
            ) as smtp:
                if self.settings.SMTP_USE_TLS:
                    smtp.starttls()
                if self.settings.SMTP_USERNAME:
                    smtp.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD or "")
                smtp.send_message(message)
        except smtplib.SMTPRecipientsRefused as e:
            raise PermanentDeliveryError(f"Recipient refused: {to}") from e
        except (smtplib.SMTPException, OSError) as e:
            raise ChannelSendError(f"SMTP send failed: {e}") from e


class NullEmailSender:
    """Logs emails instead of sending them (EMAIL_ENABLED=false)."""

    def send_email(self, to: str, subject: str, body: str) -> None:
        logger.info("email_send_skipped", to=to, subject=subject, body_length=len(body))


class EmailChannel(DeliveryChannel):
    """Fire-and-forget email delivery.

    ``send`` returns immediately; the executor runs the SMTP session and the
    dispatcher's completion callback records the outcome.
    """

    def __init__(
        self,
        sender: EmailSender,
        executor: Optional[Executor] = None,
        max_workers: int = 4,
    ) -> None:
        self.sender = sender
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="email-send"
        )

    @property
    def channel(self) -> NotificationChannel:
        return NotificationChannel.EMAIL

    def send(self, record: NotificationRecord) -> "Future[ChannelResult]":
        if not record.recipient_email:
            return failed_future(
                NoDestinationError(f"No email address for recipient {record.recipient_id}")
            )
        try:
            return self.executor.submit(
                self._deliver,
                record.recipient_email,
                record.subject or "",
                record.content,
            )
        except RuntimeError as e:
            # Executor already shut down
            return failed_future(ChannelSendError(f"Email executor unavailable: {e}"))

    def _deliver(self, to: str, subject: str, body: str) -> ChannelResult:
        self.sender.send_email(to, subject, body)
        return ChannelResult.success(message=f"Email sent to {to}")

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=True)

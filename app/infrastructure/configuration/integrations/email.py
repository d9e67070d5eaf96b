"""SMTP email integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class EmailSettings(IntegrationSettings):
    """Outbound email configuration.

    When EMAIL_ENABLED is false the service logs emails instead of sending
    them, which keeps local development free of an SMTP dependency.

    Environment Variables:
        EMAIL_ENABLED: Send through SMTP (default: False)
        SMTP_HOST: SMTP server host
        SMTP_PORT: SMTP server port (default: 587)
        SMTP_USERNAME: SMTP login user
        SMTP_PASSWORD: SMTP login password
        SMTP_USE_TLS: Upgrade with STARTTLS (default: True)
        EMAIL_FROM: Sender address
        EMAIL_FROM_NAME: Sender display name
        EMAIL_SEND_TIMEOUT_SECONDS: SMTP socket timeout (default: 30s)
        EMAIL_MAX_WORKERS: Size of the email send thread pool (default: 4)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        sender = settings.email.EMAIL_FROM
        ```
    """

    EMAIL_ENABLED: bool = Field(default=False, alias="EMAIL_ENABLED")
    SMTP_HOST: str = Field(default="localhost", alias="SMTP_HOST")
    SMTP_PORT: int = Field(default=587, alias="SMTP_PORT")
    SMTP_USERNAME: str | None = Field(default=None, alias="SMTP_USERNAME")
    SMTP_PASSWORD: str | None = Field(default=None, alias="SMTP_PASSWORD")
    SMTP_USE_TLS: bool = Field(default=True, alias="SMTP_USE_TLS")
    EMAIL_FROM: str = Field(default="noreply@example.com", alias="EMAIL_FROM")
    EMAIL_FROM_NAME: str = Field(
        default="Assessment Notifications", alias="EMAIL_FROM_NAME"
    )
    EMAIL_SEND_TIMEOUT_SECONDS: int = Field(
        default=30, alias="EMAIL_SEND_TIMEOUT_SECONDS"
    )
    EMAIL_MAX_WORKERS: int = Field(default=4, alias="EMAIL_MAX_WORKERS")

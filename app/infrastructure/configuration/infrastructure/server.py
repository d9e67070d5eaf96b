"""Server infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class ServerSettings(InfrastructureSettings):
    """Server and application runtime configuration.

    Caller identity is resolved upstream (API gateway) and forwarded in
    trusted headers.

    Environment Variables:
        USER_ID_HEADER: Header carrying the authenticated user id
        USER_ROLES_HEADER: Header carrying comma separated roles
        ADMIN_ROLE: Role granting administrative endpoints (default: admin)
        ENABLE_TEST_ENDPOINTS: Expose the stream test publishing endpoints
        SCHEDULED_TASKS_ENABLED: Run the poll, retry and heartbeat loops

    Example:
        ```python
        from infrastructure.configuration.settings import settings

        header = settings.server.USER_ID_HEADER
        ```
    """

    USER_ID_HEADER: str = Field(default="X-User-Id", alias="USER_ID_HEADER")
    USER_ROLES_HEADER: str = Field(default="X-User-Roles", alias="USER_ROLES_HEADER")
    ADMIN_ROLE: str = Field(default="admin", alias="ADMIN_ROLE")
    ENABLE_TEST_ENDPOINTS: bool = Field(default=False, alias="ENABLE_TEST_ENDPOINTS")
    SCHEDULED_TASKS_ENABLED: bool = Field(
        default=True, alias="SCHEDULED_TASKS_ENABLED"
    )

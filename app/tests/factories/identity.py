"""Gateway identity headers for API tests."""

USER_HEADERS = {"X-User-Id": "42"}
ADMIN_HEADERS = {"X-User-Id": "1", "X-User-Roles": "admin"}

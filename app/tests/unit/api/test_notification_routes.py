"""Tests for the bulk notification endpoint."""

import pytest

from infrastructure.notifications.models import NotificationChannel
from tests.factories.identity import ADMIN_HEADERS as ADMIN
from tests.factories.identity import USER_HEADERS as USER


@pytest.mark.unit
class TestBulkNotifications:
    def test_requires_admin(self, client):
        response = client.post(
            "/api/v1/notifications/bulk",
            json={"userIds": ["42"], "type": "assessment.published"},
            headers=USER,
        )

        assert response.status_code == 403

    def test_rejects_empty_recipients(self, client):
        response = client.post(
            "/api/v1/notifications/bulk",
            json={"userIds": [], "type": "assessment.published"},
            headers=ADMIN,
        )

        assert response.status_code == 422

    def test_accepts_and_routes_in_background(self, client, services, mock_redis):
        response = client.post(
            "/api/v1/notifications/bulk",
            json={
                "userIds": ["42", "43"],
                "type": "assessment.published",
                "channels": ["PUSH"],
                "commonData": {"assessmentName": "Geometry", "dueDate": "Friday"},
            },
            headers=ADMIN,
        )

        assert response.status_code == 202
        body = response.json()
        assert body["totalRecipients"] == 2
        assert body["status"] == "accepted"
        for user_id in ("42", "43"):
            (record,) = services.notification_store.list_for_recipient(user_id)
            assert record.channel == NotificationChannel.PUSH
            assert record.content == "New assessment assigned: Geometry (due Friday)"
        bulk_events = [
            c.args[1]
            for c in mock_redis.xadd.call_args_list
            if c.args[1].get("eventType") == "notification.bulk.completed"
        ]
        assert bulk_events[0]["batchId"] == body["batchId"]
        assert bulk_events[0]["successCount"] == "2"

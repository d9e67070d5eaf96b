"""Unit tests for the service graph."""

from unittest.mock import MagicMock, patch

import pytest

from infrastructure.configuration import EmailSettings, Settings
from infrastructure.notifications.channels import NullEmailSender, SmtpEmailSender
from infrastructure.notifications.models import NotificationChannel, NotificationStatus
from infrastructure.services.container import build_services
from tests.factories.events import (
    make_assessment_published_fields,
    make_user_registered_fields,
)
from tests.factories.notifications import make_preference


@pytest.mark.unit
class TestBuildServices:
    def test_wires_shared_components(self, services):
        assert services.router.dispatcher is services.dispatcher
        assert services.router.store is services.notification_store
        assert services.retry_worker.store is services.notification_store
        assert services.retry_worker.dispatcher is services.dispatcher
        assert services.bulk_notifier.router is services.router
        assert services.ingestor.router is services.router
        assert services.dispatcher.channels[NotificationChannel.PUSH].registry is (
            services.registry
        )

    def test_templates_are_seeded(self, services):
        assert services.template_store.get_template("welcome_user_email") is not None

    def test_email_sender_follows_settings(self, mock_redis):
        disabled = build_services(Settings(), redis_client=mock_redis)
        enabled = build_services(
            Settings(email=EmailSettings(EMAIL_ENABLED=True)), redis_client=mock_redis
        )

        email = NotificationChannel.EMAIL
        assert isinstance(disabled.dispatcher.channels[email].sender, NullEmailSender)
        assert isinstance(enabled.dispatcher.channels[email].sender, SmtpEmailSender)
        disabled.close()
        enabled.close()

    @patch("infrastructure.services.container.create_redis_client")
    def test_creates_redis_client_when_not_given(self, mock_create):
        settings = Settings()

        services = build_services(settings, email_sender=MagicMock())

        mock_create.assert_called_once_with(settings.redis, block_ms=settings.streams.block_ms)
        assert services.redis is mock_create.return_value
        services.close()

    def test_close_releases_everything(self, services, mock_redis):
        connection = services.registry.create_for_user("42")

        services.close()

        assert connection.is_closed
        mock_redis.close.assert_called_once()


@pytest.mark.unit
def test_stream_entry_becomes_a_sent_welcome_email(services, mock_redis, email_sender):
    mock_redis.xreadgroup.side_effect = [
        [],
        [["user-events", [("1-0", make_user_registered_fields(user_id="42"))]]],
    ]

    stats = services.ingestor.poll_once()

    assert stats["handled"] == 1
    email_sender.send_email.assert_called_once()
    to, subject, body = email_sender.send_email.call_args[0]
    assert to == "ann@example.com"
    assert subject == "Welcome, Ann!"
    assert "ann" in body
    (record,) = services.notification_store.list_for_recipient("42")
    assert record.channel == NotificationChannel.EMAIL
    assert record.status == NotificationStatus.SENT
    published = [c.args[0] for c in mock_redis.xadd.call_args_list]
    assert published == ["notification-events"]
    mock_redis.xack.assert_called_once_with(
        "user-events", "notification-service-group", "1-0"
    )


@pytest.mark.unit
def test_unparseable_entry_creates_no_records(services, mock_redis):
    mock_redis.xreadgroup.side_effect = [
        [],
        [["assessment-events", [("2-0", {"garbage": "1"})]]],
    ]

    stats = services.ingestor.poll_once()

    assert stats["skipped"] == 1
    assert services.notification_store.count() == 0
    mock_redis.xack.assert_called_once()


@pytest.mark.unit
def test_push_to_offline_user_is_sent_and_kept_for_replay(services):
    (record,) = services.router.route(
        "assessment.published",
        "42",
        None,
        {"assessmentName": "Geometry", "duration": "60", "dueDate": "2024-02-01"},
        channels=[NotificationChannel.PUSH],
    )

    stored = services.notification_store.get(record.id)
    assert stored.status == NotificationStatus.SENT
    assert stored.retry_count == 0
    assert stored.error_message is None
    assert services.retry_worker.process_batch()["processed"] == 0
    assert services.registry.replay_buffer_users() == 1


@pytest.mark.unit
def test_per_type_override_delivers_email_despite_channel_opt_out(
    services, mock_redis, email_sender
):
    services.preference_store.put(
        make_preference(
            user_id="42",
            email_enabled=False,
            per_type_overrides={"assessment.published": {"emailEnabled": True}},
        )
    )
    mock_redis.xreadgroup.side_effect = [
        [],
        [["assessment-events", [("3-0", make_assessment_published_fields())]]],
    ]

    services.ingestor.poll_once()

    records = {
        r.channel: r for r in services.notification_store.list_for_recipient("42")
    }
    assert records[NotificationChannel.EMAIL].status == NotificationStatus.SENT
    assert records[NotificationChannel.PUSH].status == NotificationStatus.SENT
    recipients = [c.args[0] for c in email_sender.send_email.call_args_list]
    assert "ann@example.com" in recipients

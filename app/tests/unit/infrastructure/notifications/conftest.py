from unittest.mock import MagicMock

import pytest

from infrastructure.notifications.channels.base import completed_future
from infrastructure.notifications.dispatcher import NotificationDispatcher
from infrastructure.notifications.models import ChannelResult, NotificationChannel
from infrastructure.notifications.stores import (
    InMemoryNotificationStore,
    InMemoryPreferenceStore,
    InMemoryTemplateStore,
)
from infrastructure.notifications.templates import default_templates
from infrastructure.resilience.retry import RetryConfig, RetryPolicy


def _channel(channel: NotificationChannel) -> MagicMock:
    mock = MagicMock()
    mock.channel = channel
    mock.send.return_value = completed_future(ChannelResult.success())
    return mock


@pytest.fixture
def email_channel():
    return _channel(NotificationChannel.EMAIL)


@pytest.fixture
def push_channel():
    return _channel(NotificationChannel.PUSH)


@pytest.fixture
def notification_store():
    return InMemoryNotificationStore()


@pytest.fixture
def preference_store():
    return InMemoryPreferenceStore()


@pytest.fixture
def template_store():
    return InMemoryTemplateStore(default_templates())


@pytest.fixture
def publisher():
    return MagicMock()


@pytest.fixture
def retry_policy():
    return RetryPolicy(RetryConfig(max_attempts=3))


@pytest.fixture
def dispatcher(email_channel, push_channel, notification_store, retry_policy, publisher):
    return NotificationDispatcher(
        channels={
            NotificationChannel.EMAIL: email_channel,
            NotificationChannel.PUSH: push_channel,
        },
        store=notification_store,
        retry_policy=retry_policy,
        publisher=publisher,
    )

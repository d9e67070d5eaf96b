"""Shared fixtures for the notification service test suite."""

from concurrent.futures import Executor, Future
from unittest.mock import MagicMock

import pytest

from infrastructure.configuration import Settings, ServerSettings
from infrastructure.notifications.channels import NullEmailSender
from infrastructure.services.container import build_services


class ImmediateExecutor(Executor):
    """Runs submitted callables inline so email outcomes are deterministic."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:  # pylint: disable=broad-except
            future.set_exception(e)
        return future


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def settings():
    """Default settings with scheduled tasks off."""
    return Settings(server=ServerSettings(SCHEDULED_TASKS_ENABLED=False))


@pytest.fixture
def mock_redis():
    client = MagicMock()
    client.xadd.return_value = "1700000000000-0"
    client.xreadgroup.return_value = []
    client.xpending_range.return_value = []
    client.ping.return_value = True
    return client


@pytest.fixture
def email_sender():
    return MagicMock(spec=NullEmailSender)


@pytest.fixture
def services(settings, mock_redis, email_sender, immediate_executor):
    """Fully wired service graph with Redis mocked and email inline."""
    container = build_services(
        settings,
        redis_client=mock_redis,
        email_sender=email_sender,
        email_executor=immediate_executor,
    )
    yield container
    container.registry.close_all()

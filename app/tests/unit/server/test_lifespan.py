"""Unit tests for application startup and shutdown."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from server import lifespan as lifespan_module
from server.server import create_app


@pytest.fixture
def app(services):
    app = create_app()
    app.state.services = services
    return app


@pytest.mark.unit
class TestLifespan:
    def test_startup_ensures_groups_and_shutdown_closes(self, app, services, mock_redis):
        services.close = MagicMock(wraps=services.close)

        with TestClient(app):
            assert mock_redis.xgroup_create.call_count == 3
            assert app.state.scheduled_loops == []

        services.close.assert_called_once()

    def test_redis_unavailable_at_startup(self, app, mock_redis):
        mock_redis.xgroup_create.side_effect = RedisConnectionError("down")

        with TestClient(app) as client:
            assert client.get("/version").status_code == 200

    @patch("server.lifespan.get_settings")
    @patch("server.lifespan.scheduled_tasks")
    @patch("server.lifespan._is_test_environment", return_value=False)
    def test_loops_are_stopped_before_services_close(
        self, _mock_env, mock_tasks, mock_get_settings, app, services
    ):
        services.settings.server.SCHEDULED_TASKS_ENABLED = True
        mock_get_settings.return_value = services.settings
        calls = MagicMock()
        loop = MagicMock()
        loop.name = "retry-sweep"
        mock_tasks.start.return_value = [loop]
        mock_tasks.stop.side_effect = lambda loops: calls.stop(loops)
        services.close = MagicMock(side_effect=lambda: calls.close())

        with TestClient(app):
            pass

        assert [c[0] for c in calls.mock_calls] == ["stop", "close"]
        calls.stop.assert_called_once_with([loop])

    @patch("server.lifespan.build_services")
    def test_builds_services_when_absent(self, mock_build):
        app = create_app()

        with TestClient(app):
            assert app.state.services is mock_build.return_value

        mock_build.return_value.close.assert_called_once()


@pytest.mark.unit
class TestScheduledTaskStartup:
    def test_skipped_in_tests(self, services):
        logger = MagicMock()

        assert lifespan_module._start_scheduled_tasks(services, services.settings, logger) == []

    @patch("server.lifespan.scheduled_tasks")
    @patch("server.lifespan._is_test_environment", return_value=False)
    def test_started_outside_tests(self, _mock_env, mock_tasks, services):
        services.settings.server.SCHEDULED_TASKS_ENABLED = True
        loops = [MagicMock(), MagicMock(), MagicMock()]
        mock_tasks.start.return_value = loops

        started = lifespan_module._start_scheduled_tasks(
            services, services.settings, MagicMock()
        )

        assert started == loops
        mock_tasks.start.assert_called_once_with(services)

    @patch("server.lifespan.scheduled_tasks")
    @patch("server.lifespan._is_test_environment", return_value=False)
    def test_disabled_by_setting(self, _mock_env, mock_tasks, services):
        services.settings.server.SCHEDULED_TASKS_ENABLED = False

        assert lifespan_module._start_scheduled_tasks(
            services, services.settings, MagicMock()
        ) == []
        mock_tasks.start.assert_not_called()

import pytest
from fastapi.testclient import TestClient

from infrastructure.configuration import ServerSettings, Settings
from infrastructure.services import get_settings
from server.server import create_app


@pytest.fixture
def app_settings(services):
    return services.settings


@pytest.fixture
def app(services, app_settings):
    app = create_app()
    app.state.services = services
    app.dependency_overrides[get_settings] = lambda: app_settings
    return app


@pytest.fixture
def client(app):
    # Without the context manager the lifespan does not run; services are preset
    return TestClient(app)


@pytest.fixture
def test_endpoints_settings():
    return Settings(
        server=ServerSettings(ENABLE_TEST_ENDPOINTS=True, SCHEDULED_TASKS_ENABLED=False)
    )

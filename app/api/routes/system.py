from fastapi import APIRouter, Request

from api.dependencies.rate_limits import get_limiter
from infrastructure.clients.redis_streams import healthcheck
from infrastructure.services import SettingsDep

router = APIRouter(tags=["System"])
limiter = get_limiter()


@router.get("/version")
@limiter.limit("50/minute")
def get_version(request: Request, settings: SettingsDep):  # pylint: disable=unused-argument
    """Get the version of the application."""
    return {"version": settings.GIT_SHA}


# Load balancer health checks poll this frequently, hence the generous limit
@router.get("/health")
@limiter.limit("50/minute")
def get_health(request: Request):
    """Healthcheck endpoint.

    Reports Redis reachability and live push connections but always answers
    200 while the process is serving.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        return {"status": "ok"}
    return {
        "status": "ok",
        "redis": "up" if healthcheck(services.redis) else "down",
        "active_user_connections": services.registry.active_user_connections(),
    }

from fastapi import APIRouter

from api.v1.routes.notifications import router as notifications_router
from api.v1.routes.push import router as push_router
from api.v1.routes.streams import router as streams_router

# Main v1 router (includes all endpoints)
router = APIRouter()
router.include_router(push_router)
router.include_router(notifications_router)
router.include_router(streams_router)

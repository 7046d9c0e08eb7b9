from fastapi import APIRouter

from .activity_logs import activity_logs_router
from .health import health_router
from .notifications import notifications_router

shared_router = APIRouter()

# Include sub-routers
shared_router.include_router(
    health_router, prefix="/health", tags=["Shared - Health Checks"]
)
shared_router.include_router(
    activity_logs_router, prefix="/activity-logs", tags=["Shared - Activity Logs"]
)
shared_router.include_router(
    notifications_router, prefix="/notifications", tags=["Shared - Notifications"]
)

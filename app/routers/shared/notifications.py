from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Request, Query

from app.services.notification_context import (
    NotificationContext,
    get_notification_context,
)
from app.utils.responses import ResponseBuilder
from app.utils.logging import get_logger

notifications_router = APIRouter()
logger = get_logger()


@notifications_router.get("/")
async def get_manager_notifications(
    request: Request,
    context: Annotated[NotificationContext, Depends(get_notification_context)],
    limit: Optional[int] = Query(
        default=None,
        le=100,
        description="Maximum number of notifications to return (default 20)",
    ),
    offset: int = Query(default=0, description="Offset for pagination"),
):
    """
    Get manager notifications, most recent first.

    Only the most recent 100 notifications are retained; older ones are
    evicted as new ones arrive.
    """
    service = context.notifications
    limit = service.default_limit if limit is None else limit

    notifications = service.list_notifications(limit=limit, offset=offset)
    total = service.count()

    return ResponseBuilder.paginated(
        request=request,
        data=[n.model_dump(by_alias=True) for n in notifications],
        limit=limit,
        offset=offset,
        total=total,
        message=f"Retrieved {len(notifications)} notifications",
    )


@notifications_router.patch("/{notification_id}/read")
async def mark_notification_as_read(
    request: Request,
    notification_id: str,
    context: Annotated[NotificationContext, Depends(get_notification_context)],
):
    """
    Mark a notification as read.

    Marking an unknown or already evicted notification is a no-op and still
    succeeds.
    """
    context.notifications.mark_notification_read(notification_id)

    return ResponseBuilder.success(
        request=request,
        data={"notificationId": notification_id, "read": True},
        message="Notification marked as read",
    )

from typing import Callable, Dict, Optional

from app.schemas.course_schemas import CourseOfferingInfo, FacilitatorInfo
from app.schemas.notification_schemas import (
    NotificationType,
    ProcessNotificationPayload,
    RenderedNotification,
)
from .templates import (
    render_activity_log_submitted,
    render_missing_submission_reminder,
)
from app.utils.logging import get_logger

logger = get_logger()

NotificationRenderer = Callable[
    [FacilitatorInfo, CourseOfferingInfo, ProcessNotificationPayload],
    RenderedNotification,
]


class NotificationTemplateRegistry:
    """Registry of subject/message renderers per notification type"""

    # Map notification types to renderer functions
    _renderers: Dict[str, NotificationRenderer] = {
        NotificationType.ACTIVITY_LOG_SUBMITTED.value: render_activity_log_submitted,
        NotificationType.MISSING_SUBMISSION_REMINDER.value: render_missing_submission_reminder,
    }

    @classmethod
    def get_renderer(cls, notification_type: str) -> Optional[NotificationRenderer]:
        """Renderer for a notification type, or None if the type is unknown"""
        renderer = cls._renderers.get(notification_type)
        if renderer is None:
            logger.warning(
                f"No renderer registered for notification type: {notification_type}"
            )
        return renderer

    @classmethod
    def register_renderer(
        cls, notification_type: str, renderer: NotificationRenderer
    ) -> None:
        """Register a renderer for a notification type"""
        cls._renderers[notification_type] = renderer
        logger.info(f"Registered renderer for notification type: {notification_type}")

    @classmethod
    def list_registered_types(cls) -> list:
        """List all registered notification types"""
        return list(cls._renderers.keys())

    @classmethod
    def is_registered(cls, notification_type: str) -> bool:
        """Check if notification type is registered"""
        return notification_type in cls._renderers

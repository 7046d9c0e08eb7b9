from typing import List, Optional

from app.config.settings import settings
from app.schemas.notification_schemas import NotificationRecord
from app.utils.logging import get_logger
from .store import NotificationStore

logger = get_logger()


class ManagerNotificationService:
    """Read side of the manager notification feed."""

    def __init__(
        self,
        store: NotificationStore,
        default_limit: int = settings.NOTIFICATION_PAGE_SIZE,
    ):
        self.store = store
        self.default_limit = default_limit

    def list_notifications(
        self, limit: Optional[int] = None, offset: int = 0
    ) -> List[NotificationRecord]:
        """Most recent first. Raises InvalidRangeError for negative bounds."""
        return self.store.list(
            self.default_limit if limit is None else limit, offset
        )

    def count(self) -> int:
        return self.store.count()

    def mark_notification_read(self, notification_id: str) -> bool:
        """Unknown ids are a no-op; returns whether a record was updated."""
        updated = self.store.mark_read(notification_id)
        if not updated:
            logger.info(f"Notification {notification_id} not found, nothing marked read")
        return updated

import uuid
from datetime import datetime
from typing import Any, Callable, Dict

from pydantic import ValidationError

from app.schemas.notification_schemas import (
    NotificationRecord,
    ProcessNotificationPayload,
)
from app.services.course_directory import CourseDirectory
from .registry import NotificationTemplateRegistry
from .store import NotificationStore
from app.utils.datetime_utils import epoch_millis, utc_now
from app.utils.errors import (
    InvalidJobPayloadError,
    ReferenceNotFoundError,
    UnknownNotificationTypeError,
)
from app.utils.logging import get_logger

logger = get_logger()


def generate_notification_id(now: datetime) -> str:
    """Time-ordered id with a random suffix: `<epoch-ms>-<9 hex chars>`"""
    return f"{epoch_millis(now)}-{uuid.uuid4().hex[:9]}"


class NotificationProcessor:
    """
    Handler for `process-notification` jobs.

    Resolves the facilitator and course offering named in the payload,
    renders the subject and message for the notification type and appends
    the resulting record to the manager notification store.
    """

    def __init__(
        self,
        directory: CourseDirectory,
        store: NotificationStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.directory = directory
        self.store = store
        self._clock = clock

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.process(payload)

    def process(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            data = ProcessNotificationPayload.model_validate(payload)
        except ValidationError as e:
            raise InvalidJobPayloadError(
                f"Invalid process-notification payload: {e.error_count()} error(s)"
            ) from e

        # Unknown types are rejected before any lookups; retrying cannot fix them
        renderer = NotificationTemplateRegistry.get_renderer(data.type)
        if renderer is None:
            raise UnknownNotificationTypeError(data.type)

        facilitator = self.directory.get_facilitator(data.facilitator_id)
        offering = self.directory.get_course_offering(data.allocation_id)
        if not facilitator or not offering:
            raise ReferenceNotFoundError(
                f"Facilitator {data.facilitator_id} or course offering "
                f"{data.allocation_id} not found"
            )

        content = renderer(facilitator, offering, data)
        now = self._clock()

        try:
            record = NotificationRecord(
                id=generate_notification_id(now),
                type=data.type,
                subject=content.subject,
                message=content.message,
                facilitator_id=data.facilitator_id,
                facilitator_name=facilitator.full_name,
                facilitator_email=facilitator.email,
                course_code=offering.module_code,
                course_name=offering.module_name,
                week_number=data.week_number,
                is_late=data.is_late,
                timestamp=data.submitted_at or now,
                read=False,
            )
        except ValidationError as e:
            raise InvalidJobPayloadError(
                f"Could not build {data.type} notification: {e.error_count()} error(s)"
            ) from e
        self.store.append(record)

        logger.info(
            f"Notification {record.id} stored: {content.subject} "
            f"(facilitator {data.facilitator_id}, type {data.type})"
        )

        return {"success": True, "notification_id": record.id}

from typing import Any, Dict

from pydantic import ValidationError

from app.schemas.job_schemas import JobKind
from app.schemas.notification_schemas import (
    CheckMissingSubmissionsPayload,
    NotificationType,
    ProcessNotificationPayload,
)
from app.services.course_directory import CourseDirectory
from app.services.queue import JobQueue
from app.utils.errors import InvalidJobPayloadError
from app.utils.logging import get_logger

logger = get_logger()


class ReminderScanner:
    """
    Handler for `check-missing-submissions` jobs.

    Queues one `missing_submission_reminder` notification job for every
    active course offering that has no activity log for the scanned week.
    It only enqueues; the spawned jobs run independently. Scanning the same
    week again before the facilitator submits queues the reminder again.
    """

    def __init__(self, directory: CourseDirectory, job_queue: JobQueue):
        self.directory = directory
        self.job_queue = job_queue

    def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.scan(payload)

    def scan(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            week_number = CheckMissingSubmissionsPayload.model_validate(
                payload
            ).week_number
        except ValidationError as e:
            raise InvalidJobPayloadError(
                f"Invalid check-missing-submissions payload: {e.error_count()} error(s)"
            ) from e

        offerings = self.directory.get_active_course_offerings()
        reminders_queued = 0

        for offering in offerings:
            if not offering.is_active:
                continue

            existing_log = self.directory.find_activity_record(offering.id, week_number)
            if existing_log:
                continue

            reminder = ProcessNotificationPayload(
                type=NotificationType.MISSING_SUBMISSION_REMINDER.value,
                facilitator_id=offering.facilitator_id,
                allocation_id=offering.id,
                week_number=week_number,
            )
            self.job_queue.enqueue(
                JobKind.PROCESS_NOTIFICATION,
                reminder.model_dump(mode="json", by_alias=True, exclude_none=True),
            )
            reminders_queued += 1

        logger.info(
            f"Missing submission check completed for week {week_number}: "
            f"{reminders_queued} reminder(s) queued for {len(offerings)} active offering(s)"
        )

        return {
            "success": True,
            "week_number": week_number,
            "offerings_checked": len(offerings),
            "reminders_queued": reminders_queued,
        }

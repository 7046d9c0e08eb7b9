from datetime import datetime
from typing import Callable, Optional

from app.schemas.course_schemas import SubmissionReceipt
from app.schemas.job_schemas import JobKind
from app.schemas.notification_schemas import (
    NotificationType,
    ProcessNotificationPayload,
)
from app.services.notifications.deadline_utils import WeekCalculator
from app.services.queue import JobQueue
from app.utils.datetime_utils import to_local, to_utc, utc_now
from app.utils.logging import get_logger

logger = get_logger()


class ActivityLogSubmissionService:
    """Entry point called once a facilitator's weekly activity log is saved."""

    def __init__(
        self, job_queue: JobQueue, clock: Callable[[], datetime] = utc_now
    ):
        self.job_queue = job_queue
        self._clock = clock

    def submit_activity_log(
        self,
        facilitator_id: str,
        allocation_id: str,
        week_number: int,
        submitted_at: Optional[datetime] = None,
        year: Optional[int] = None,
    ) -> SubmissionReceipt:
        """
        Compute lateness for a submission and queue the manager notification.

        Args:
            facilitator_id: Facilitator who submitted the log
            allocation_id: Course offering the log belongs to
            week_number: Week the log covers (1-52)
            submitted_at: Submission time, defaults to now
            year: Academic year of the week, defaults to the submission's year

        Raises:
            ValueError: week_number is outside 1-52
            QueueUnavailableError: the notification job could not be queued
        """
        WeekCalculator.check_week_number(week_number)

        submitted_at = to_utc(submitted_at or self._clock())
        year = year or to_local(submitted_at).year
        deadline = WeekCalculator.deadline(week_number, year)
        is_late = WeekCalculator.is_late(submitted_at, week_number, year)

        payload = ProcessNotificationPayload(
            type=NotificationType.ACTIVITY_LOG_SUBMITTED.value,
            facilitator_id=facilitator_id,
            allocation_id=allocation_id,
            week_number=week_number,
            is_late=is_late,
            submitted_at=submitted_at,
        )
        job = self.job_queue.enqueue(
            JobKind.PROCESS_NOTIFICATION,
            payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )

        if is_late:
            logger.warning(
                f"Late activity log for allocation {allocation_id}, week {week_number} "
                f"(deadline {deadline.isoformat()})"
            )
        else:
            logger.info(
                f"Activity log submitted for allocation {allocation_id}, week {week_number}"
            )

        return SubmissionReceipt(
            job_id=job.id,
            allocation_id=allocation_id,
            week_number=week_number,
            submitted_at=submitted_at,
            deadline=deadline,
            is_late=is_late,
        )

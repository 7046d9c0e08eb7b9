from app.celery import celery
from app.services.notification_context import get_notification_context
from app.utils.context import request_context
from app.utils.errors import QueueUnavailableError
from app.utils.logging import get_logger


@celery.task(
    bind=True,
    name="app.tasks.cron.daily_missing_submission_check.daily_missing_submission_check_task",
)
def daily_missing_submission_check_task(self, request_id: str):
    """
    Daily task that queues the missing activity log scan.

    Runs at REMINDER_CRON_HOUR:REMINDER_CRON_MINUTE (application timezone).
    The week is worked out when the task fires, so the same beat entry moves
    on to the next week by itself. The scan runs as a separate
    `check-missing-submissions` job with its own retries.

    Args:
        request_id: Request ID for tracking purposes (provided by Celery Beat configuration)
    """
    with request_context(request_id):
        logger = get_logger()
        try:
            job = get_notification_context().scheduler.fire()
            week_number = job.payload.get("weekNumber")
            logger.info(
                f"Daily missing submission check queued for week {week_number} (job {job.id})"
            )
            return {
                "success": True,
                "job_id": job.id,
                "week_number": week_number,
                "request_id": request_id,
            }
        except QueueUnavailableError as e:
            logger.error(f"Daily missing submission check could not be queued: {e.message}")
            return {
                "success": False,
                "error": e.message,
                "request_id": request_id,
            }

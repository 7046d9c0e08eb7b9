from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from celery import Celery
from celery.schedules import crontab
from pydantic import BaseModel, Field

from app.config.settings import settings
from app.schemas.job_schemas import Job, JobKind
from app.schemas.notification_schemas import CheckMissingSubmissionsPayload
from app.services.queue import JobQueue
from app.utils.datetime_utils import get_zone, to_local, to_utc, utc_now
from app.utils.logging import get_logger
from .deadline_utils import WeekCalculator

logger = get_logger()

DAILY_CHECK_NAME = "daily-missing-submission-check"
DAILY_CHECK_TASK = (
    "app.tasks.cron.daily_missing_submission_check.daily_missing_submission_check_task"
)


class ReminderSchedule(BaseModel):
    """A named daily trigger, fired by Celery beat at hour:minute local time."""

    name: str = DAILY_CHECK_NAME
    task: str = DAILY_CHECK_TASK
    hour: int = Field(settings.REMINDER_CRON_HOUR, ge=0, le=23)
    minute: int = Field(settings.REMINDER_CRON_MINUTE, ge=0, le=59)

    def cron_schedule(self) -> crontab:
        return crontab(hour=self.hour, minute=self.minute)

    def next_fire_after(self, now: datetime) -> datetime:
        """First fire time strictly after `now`, returned in UTC"""
        local_now = to_local(now, get_zone())
        candidate = local_now.replace(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= local_now:
            candidate = candidate + timedelta(days=1)
        return to_utc(candidate)

    def to_beat_entry(self) -> Dict[str, Any]:
        return {
            "task": self.task,
            "schedule": self.cron_schedule(),
            "args": (self.name,),
        }


def install_beat_schedule(
    celery_app: Celery, schedule: Optional[ReminderSchedule] = None
) -> ReminderSchedule:
    """
    Register the daily check as a Celery beat entry.

    Installing twice replaces the entry, so there is only ever one. Other
    beat entries are left alone. Beat re-arms the entry every day whatever
    happened to the jobs it queued.
    """
    schedule = schedule or ReminderSchedule()
    beat_schedule = dict(celery_app.conf.beat_schedule or {})
    beat_schedule[schedule.name] = schedule.to_beat_entry()
    celery_app.conf.beat_schedule = beat_schedule

    logger.info(
        f"Registered '{schedule.name}' to run daily at "
        f"{schedule.hour:02d}:{schedule.minute:02d} ({settings.TIMEZONE}), "
        f"next run {schedule.next_fire_after(utc_now()).isoformat()}"
    )
    return schedule


class ReminderScheduler:
    """
    Owns the recurring missing-submission check.

    Beat calls `fire` through the entry from `install_beat_schedule`; every
    fire enqueues exactly one `check-missing-submissions` job for the current
    week. The scan itself runs in a worker under the usual retry policy.
    """

    def __init__(self, job_queue: JobQueue, clock: Callable[[], datetime] = utc_now):
        self.job_queue = job_queue
        self._clock = clock

    def fire(self, now: Optional[datetime] = None) -> Job:
        """Handle one schedule tick: queue a scan of the week containing `now`."""
        week_number = WeekCalculator.current_week(now or self._clock())
        return self.queue_missing_submission_reminders(week_number)

    def queue_missing_submission_reminders(self, week_number: int) -> Job:
        payload = CheckMissingSubmissionsPayload(week_number=week_number)
        job = self.job_queue.enqueue(
            JobKind.CHECK_MISSING_SUBMISSIONS,
            payload.model_dump(mode="json", by_alias=True),
        )
        logger.info(f"Queued missing submission check for week {week_number}")
        return job

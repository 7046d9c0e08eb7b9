from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Callable, Tuple

from app.config.settings import settings
from app.schemas.job_schemas import BackoffPolicy, JobKind, JobOptions
from app.services.course_directory import CourseDirectory, SqlCourseDirectory
from app.services.notifications import (
    ManagerNotificationService,
    MemoryNotificationStore,
    NotificationProcessor,
    NotificationStore,
    RedisNotificationStore,
    ReminderScanner,
    ReminderScheduler,
)
from app.services.queue import (
    CeleryJobDispatcher,
    JobDispatcher,
    JobQueue,
    JobRepository,
    MemoryJobRepository,
    RedisJobRepository,
    ThreadedJobDispatcher,
)
from app.services.submission_service import ActivityLogSubmissionService
from app.utils.datetime_utils import utc_now
from app.utils.logging import get_logger

logger = get_logger()

# Lease outlives the hard time limit so a running attempt is never claimed twice
LEASE_MARGIN_SECONDS = 30


@dataclass
class NotificationContext:
    """Everything the notification pipeline needs, wired once per process."""

    job_queue: JobQueue
    notification_store: NotificationStore
    directory: CourseDirectory
    scheduler: ReminderScheduler
    submissions: ActivityLogSubmissionService
    notifications: ManagerNotificationService


def build_notification_context(
    job_queue: JobQueue,
    store: NotificationStore,
    directory: CourseDirectory,
    clock: Callable[[], datetime] = utc_now,
) -> NotificationContext:
    """Register the job handlers on `job_queue` and build the services around it."""
    job_queue.register_worker(
        JobKind.PROCESS_NOTIFICATION, NotificationProcessor(directory, store, clock)
    )
    job_queue.register_worker(
        JobKind.CHECK_MISSING_SUBMISSIONS, ReminderScanner(directory, job_queue)
    )

    return NotificationContext(
        job_queue=job_queue,
        notification_store=store,
        directory=directory,
        scheduler=ReminderScheduler(job_queue, clock=clock),
        submissions=ActivityLogSubmissionService(job_queue, clock),
        notifications=ManagerNotificationService(store),
    )


def _create_store() -> NotificationStore:
    if settings.NOTIFICATION_STORE_BACKEND == "memory":
        return MemoryNotificationStore(settings.NOTIFICATION_STORE_CAPACITY)

    from app.db.redis_client import get_redis_client

    return RedisNotificationStore(
        get_redis_client(),
        key=settings.NOTIFICATION_STORE_KEY,
        capacity=settings.NOTIFICATION_STORE_CAPACITY,
    )


def _create_queue_backend() -> Tuple[JobRepository, JobDispatcher]:
    if settings.JOB_BACKEND == "memory":
        return MemoryJobRepository(), ThreadedJobDispatcher(settings.JOB_LOCAL_WORKERS)

    from app.celery import celery
    from app.db.redis_client import get_redis_client

    repository = RedisJobRepository(
        get_redis_client(),
        prefix=settings.JOB_KEY_PREFIX,
        retention_seconds=settings.JOB_RETENTION_SECONDS,
    )
    return repository, CeleryJobDispatcher(celery)


def create_default_context() -> NotificationContext:
    """Build the context from settings (Redis + Celery, or in-process memory)."""
    from app.db.session import SessionLocal

    repository, dispatcher = _create_queue_backend()
    job_queue = JobQueue(
        repository,
        dispatcher,
        default_options=JobOptions(
            attempts=settings.JOB_MAX_ATTEMPTS,
            backoff=BackoffPolicy(
                type="exponential", delay_ms=settings.JOB_BACKOFF_DELAY_MS
            ),
        ),
        lease_seconds=settings.JOB_HANDLER_TIMEOUT_SECONDS + LEASE_MARGIN_SECONDS,
    )

    logger.info(
        f"Notification pipeline using {settings.JOB_BACKEND} jobs and "
        f"{settings.NOTIFICATION_STORE_BACKEND} store"
    )
    return build_notification_context(
        job_queue, _create_store(), SqlCourseDirectory(SessionLocal)
    )


@lru_cache(maxsize=1)
def get_notification_context() -> NotificationContext:
    """Process-wide context; also the FastAPI dependency for the routers."""
    return create_default_context()

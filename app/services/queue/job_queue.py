import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from app.schemas.job_schemas import Job, JobKind, JobOptions, JobStatus
from app.services.queue.dispatcher import JobDispatcher
from app.services.queue.repository import JobRepository
from app.utils.datetime_utils import utc_now
from app.utils.errors import (
    JobLeaseExhaustedError,
    NonRetryableJobError,
    QueueUnavailableError,
)
from app.utils.logging import get_logger

logger = get_logger()

JobHandler = Callable[[Dict[str, Any]], Any]
JobListener = Callable[..., None]

JOB_EVENTS = ("completed", "failed", "retrying")


class JobQueue:
    """
    At-least-once job queue with exponential-backoff retries.

    Producers call `enqueue`; workers (Celery tasks or the threaded
    dispatcher) call `run` with a job id. Each run claims the job
    atomically, invokes the handler registered for its kind and records the
    outcome:

    - success: `completed`
    - `NonRetryableJobError`: `failed` at once
    - any other exception: back to `pending` and re-dispatched after
      `backoff.delay_for(attempt)` ms, or `failed` once `max_attempts`
      attempts are used up

    An attempt whose worker died or was killed still counts: once the lease
    of the last attempt lapses the job is `failed` without running again.
    Failed jobs are never picked up again.
    """

    def __init__(
        self,
        repository: JobRepository,
        dispatcher: JobDispatcher,
        default_options: Optional[JobOptions] = None,
        lease_seconds: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.default_options = default_options or JobOptions()
        self.lease_seconds = lease_seconds
        self._clock = clock
        self._handlers: Dict[JobKind, JobHandler] = {}
        self._listeners: Dict[str, List[JobListener]] = defaultdict(list)

        self.dispatcher.attach(self.run)

    def register_worker(self, kind: Union[JobKind, str], handler: JobHandler) -> None:
        """Bind the handler that processes jobs of `kind`."""
        kind = JobKind(kind)
        self._handlers[kind] = handler
        logger.info(f"Registered worker for job kind: {kind.value}")

    def on(self, event: str, listener: JobListener) -> None:
        """
        Subscribe to job lifecycle events.

        completed(job, result), failed(job, error), retrying(job, error, delay_ms)
        """
        if event not in JOB_EVENTS:
            raise ValueError(f"Unknown job event: {event}")
        self._listeners[event].append(listener)

    def enqueue(
        self,
        kind: Union[JobKind, str],
        payload: Dict[str, Any],
        options: Optional[JobOptions] = None,
    ) -> Job:
        """
        Persist a job and hand it to the dispatcher.

        Raises:
            QueueUnavailableError: the job store or broker could not be reached.
            Not retried here; the caller decides.
        """
        options = options or self.default_options
        now = self._clock()
        job = Job(
            id=str(uuid.uuid4()),
            kind=JobKind(kind),
            payload=payload,
            max_attempts=options.attempts,
            backoff=options.backoff,
            created_at=now,
            scheduled_at=now + timedelta(milliseconds=options.delay_ms),
        )

        try:
            self.repository.save(job)
            self.dispatcher.dispatch(job, options.delay_ms)
        except QueueUnavailableError as e:
            logger.error(f"Failed to queue {job.kind.value} job: {e.message}")
            raise

        logger.info(f"Queued {job.kind.value} job {job.id}", payload=payload)
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.repository.get(job_id)

    def run(self, job_id: str) -> Optional[Job]:
        """Execute one attempt of a job. Returns the job in its new state."""
        now = self._clock()
        job = self.repository.claim(job_id, now, self.lease_seconds)
        if job is None:
            self._defer_if_leased(job_id, now)
            return None
        if job.status == JobStatus.FAILED:
            logger.error(
                f"Job {job.id} ({job.kind.value}) failed after "
                f"{job.attempts_made}/{job.max_attempts} attempts: {job.last_error}"
            )
            self._emit("failed", job, JobLeaseExhaustedError(job.last_error))
            return job

        handler = self._handlers.get(job.kind)
        try:
            if handler is None:
                raise LookupError(f"No worker registered for {job.kind.value}")
            result = handler(job.payload)
        except NonRetryableJobError as e:
            return self._fail(job, e, permanent=True)
        except Exception as e:
            return self._fail(job, e, permanent=False)

        job.mark_completed(self._clock(), result)
        self.repository.update(job)
        logger.info(
            f"Job {job.id} ({job.kind.value}) completed on attempt {job.attempts_made}"
        )
        self._emit("completed", job, result)
        return job

    def _defer_if_leased(self, job_id: str, now: datetime) -> None:
        job = self.repository.get(job_id)
        if job is None or job.status != JobStatus.ACTIVE or not job.lease_expires_at:
            logger.warning(f"Job {job_id} is not claimable, skipping")
            return

        # Redelivered while another worker holds the lease; look again once it lapses
        delay_ms = max(int((job.lease_expires_at - now).total_seconds() * 1000), 0)
        logger.info(f"Job {job_id} is leased by another worker, re-checking in {delay_ms}ms")
        self.dispatcher.dispatch(job, delay_ms)

    def _fail(self, job: Job, error: Exception, permanent: bool) -> Job:
        now = self._clock()
        message = f"{type(error).__name__}: {error}"

        if permanent or not job.has_attempts_left:
            job.mark_failed(now, message)
            self.repository.update(job)
            logger.error(
                f"Job {job.id} ({job.kind.value}) failed after "
                f"{job.attempts_made}/{job.max_attempts} attempts: {message}"
            )
            self._emit("failed", job, error)
            return job

        delay_ms = job.backoff.delay_for(job.attempts_made)
        job.mark_retrying(now, delay_ms, message)
        self.repository.update(job)
        logger.warning(
            f"Job {job.id} ({job.kind.value}) attempt {job.attempts_made}/"
            f"{job.max_attempts} failed, retrying in {delay_ms}ms: {message}"
        )
        self.dispatcher.dispatch(job, delay_ms)
        self._emit("retrying", job, error, delay_ms)
        return job

    def _emit(self, event: str, job: Job, *args: Any) -> None:
        for listener in self._listeners[event]:
            try:
                listener(job, *args)
            except Exception as e:
                logger.opt(exception=e).error(
                    f"Job event listener for '{event}' raised: {str(e)}"
                )


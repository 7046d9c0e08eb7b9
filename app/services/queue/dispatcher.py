import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional

from celery import Celery
from kombu.exceptions import OperationalError

from app.schemas.job_schemas import Job
from app.utils.context import get_request_id
from app.utils.errors import QueueUnavailableError
from app.utils.logging import get_logger

logger = get_logger()

JobRunner = Callable[[str], Any]

RUN_JOB_TASK = "app.tasks.background.job_runner.run_job_task"


class JobDispatcher(ABC):
    """Hands a persisted job to whatever executes it, optionally after a delay."""

    def attach(self, runner: JobRunner) -> None:
        """Receive the queue's `run` entry point (used by in-process dispatchers)."""

    @abstractmethod
    def dispatch(self, job: Job, delay_ms: int = 0) -> None:
        pass


class CeleryJobDispatcher(JobDispatcher):
    """Delivers jobs to Celery workers through the Redis broker."""

    def __init__(self, celery_app: Celery, task_name: str = RUN_JOB_TASK):
        self.celery_app = celery_app
        self.task_name = task_name

    def dispatch(self, job: Job, delay_ms: int = 0) -> None:
        request_id = get_request_id() or f"job-{job.id}"
        try:
            self.celery_app.send_task(
                self.task_name,
                kwargs={"request_id": request_id, "job_id": job.id},
                countdown=delay_ms / 1000 if delay_ms else None,
            )
        except OperationalError as e:
            raise QueueUnavailableError(
                f"Could not dispatch job {job.id} to the broker: {e}"
            ) from e


class ThreadedJobDispatcher(JobDispatcher):
    """
    In-process worker pool used when JOB_BACKEND=memory.

    Delayed jobs wait on a timer thread and are then submitted to the pool.
    """

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="job-worker"
        )
        self._runner: Optional[JobRunner] = None
        self._timers: List[threading.Timer] = []
        self._lock = threading.Lock()

    def attach(self, runner: JobRunner) -> None:
        self._runner = runner

    def dispatch(self, job: Job, delay_ms: int = 0) -> None:
        if self._runner is None:
            raise QueueUnavailableError("No job runner attached to the dispatcher")

        if delay_ms <= 0:
            self._submit(job.id)
            return

        timer = threading.Timer(delay_ms / 1000, self._submit, args=(job.id,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()

    def _submit(self, job_id: str) -> None:
        try:
            self._executor.submit(self._runner, job_id)
        except RuntimeError as e:
            logger.warning(f"Dropped job {job_id}, worker pool is shut down: {e}")

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers.clear()
        self._executor.shutdown(wait=wait)

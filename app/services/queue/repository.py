import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from redis import Redis
from redis.exceptions import RedisError

from app.schemas.job_schemas import Job
from app.utils.errors import QueueUnavailableError
from app.utils.logging import get_logger

logger = get_logger()

LEASE_EXHAUSTED_ERROR = "Lease expired on the final attempt (worker lost or timed out)"


class JobRepository(ABC):
    """Persistence substrate for jobs with atomic per-job claiming."""

    @abstractmethod
    def save(self, job: Job) -> None:
        pass

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        pass

    @abstractmethod
    def claim(self, job_id: str, now: datetime, lease_seconds: int) -> Optional[Job]:
        """
        Atomically move a claimable job to `active` and count the attempt.

        Returns the claimed job, or None when the job is missing, terminal,
        or currently leased by another worker. A job whose lease lapsed with
        no attempts left is marked `failed` instead and returned in that
        state; the handler must not run for it.
        """

    @abstractmethod
    def update(self, job: Job) -> None:
        pass


class MemoryJobRepository(JobRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}

    def save(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def claim(self, job_id: str, now: datetime, lease_seconds: int) -> Optional[Job]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or not job.is_claimable(now):
                return None
            if job.is_lease_exhausted(now):
                job.mark_failed(now, LEASE_EXHAUSTED_ERROR)
                return job.model_copy(deep=True)
            job.mark_active(now, lease_seconds)
            return job.model_copy(deep=True)

    def update(self, job: Job) -> None:
        self.save(job)


class RedisJobRepository(JobRepository):
    """
    One JSON document per job under `<prefix>:<id>`.

    Claims run in a WATCH transaction on the job key so two workers can
    never both take the same job; terminal jobs are kept for
    `retention_seconds` and then expire.
    """

    def __init__(
        self, client: Redis, prefix: str = "jobs", retention_seconds: int = 86400
    ):
        self._client = client
        self.prefix = prefix
        self.retention_seconds = retention_seconds

    def _key(self, job_id: str) -> str:
        return f"{self.prefix}:{job_id}"

    def save(self, job: Job) -> None:
        try:
            self._client.set(self._key(job.id), job.model_dump_json())
        except RedisError as e:
            raise QueueUnavailableError(f"Could not persist job {job.id}: {e}") from e

    def get(self, job_id: str) -> Optional[Job]:
        raw = self._client.get(self._key(job_id))
        return Job.model_validate_json(raw) if raw else None

    def claim(self, job_id: str, now: datetime, lease_seconds: int) -> Optional[Job]:
        key = self._key(job_id)

        def _claim(pipe) -> Optional[Job]:
            raw = pipe.get(key)
            if raw is None:
                return None
            job = Job.model_validate_json(raw)
            if not job.is_claimable(now):
                return None

            if job.is_lease_exhausted(now):
                job.mark_failed(now, LEASE_EXHAUSTED_ERROR)
                pipe.multi()
                pipe.set(key, job.model_dump_json(), ex=self.retention_seconds)
                return job

            job.mark_active(now, lease_seconds)
            pipe.multi()
            pipe.set(key, job.model_dump_json())
            return job

        return self._client.transaction(_claim, key, value_from_callable=True)

    def update(self, job: Job) -> None:
        ttl = self.retention_seconds if job.is_terminal else None
        self._client.set(self._key(job.id), job.model_dump_json(), ex=ttl)

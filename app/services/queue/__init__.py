from .job_queue import JobQueue, JobHandler
from .repository import JobRepository, MemoryJobRepository, RedisJobRepository
from .dispatcher import JobDispatcher, CeleryJobDispatcher, ThreadedJobDispatcher

__all__ = [
    "JobQueue",
    "JobHandler",
    "JobRepository",
    "MemoryJobRepository",
    "RedisJobRepository",
    "JobDispatcher",
    "CeleryJobDispatcher",
    "ThreadedJobDispatcher",
]

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class JobKind(str, Enum):
    PROCESS_NOTIFICATION = "process-notification"
    CHECK_MISSING_SUBMISSIONS = "check-missing-submissions"


class JobStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class BackoffPolicy(BaseModel):
    type: Literal["exponential", "fixed"] = "exponential"
    delay_ms: int = Field(2000, ge=0)

    def delay_for(self, attempt: int) -> int:
        """Delay in ms before the retry that follows failed attempt `attempt` (1-based)."""
        if self.type == "fixed":
            return self.delay_ms
        return self.delay_ms * 2 ** (max(attempt, 1) - 1)


class JobOptions(BaseModel):
    attempts: int = Field(3, ge=1)
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    delay_ms: int = Field(0, ge=0)


class Job(BaseModel):
    """
    A unit of asynchronous work and its retry state.

    Serialized as JSON by the job repositories; only the queue runtime
    mutates it after creation.
    """

    id: str
    kind: JobKind
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    attempts_made: int = 0
    max_attempts: int = 3
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    created_at: datetime
    scheduled_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    lease_expires_at: Optional[datetime] = None
    last_error: Optional[str] = None
    result: Optional[Any] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    @property
    def has_attempts_left(self) -> bool:
        return self.attempts_made < self.max_attempts

    def is_lease_expired(self, now: datetime) -> bool:
        return (
            self.status == JobStatus.ACTIVE
            and self.lease_expires_at is not None
            and self.lease_expires_at <= now
        )

    def is_claimable(self, now: datetime) -> bool:
        if self.status == JobStatus.PENDING:
            return True
        # An active job whose worker died becomes runnable again once its lease lapses
        return self.is_lease_expired(now)

    def is_lease_exhausted(self, now: datetime) -> bool:
        """The lease of the last allowed attempt lapsed; the job must fail, not rerun."""
        return self.is_lease_expired(now) and not self.has_attempts_left

    def mark_active(self, now: datetime, lease_seconds: int) -> None:
        self.status = JobStatus.ACTIVE
        self.attempts_made += 1
        self.started_at = now
        self.lease_expires_at = now + timedelta(seconds=lease_seconds)

    def mark_completed(self, now: datetime, result: Any = None) -> None:
        self.status = JobStatus.COMPLETED
        self.finished_at = now
        self.lease_expires_at = None
        self.result = result
        self.last_error = None

    def mark_failed(self, now: datetime, error: str) -> None:
        self.status = JobStatus.FAILED
        self.finished_at = now
        self.lease_expires_at = None
        self.last_error = error

    def mark_retrying(self, now: datetime, delay_ms: int, error: str) -> None:
        self.status = JobStatus.PENDING
        self.scheduled_at = now + timedelta(milliseconds=delay_ms)
        self.lease_expires_at = None
        self.last_error = error

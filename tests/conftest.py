import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi.testclient import TestClient

from app.schemas.course_schemas import (
    ActivityRecordInfo,
    CourseOfferingInfo,
    FacilitatorInfo,
)
from app.schemas.job_schemas import Job
from app.services.course_directory import CourseDirectory
from app.services.notification_context import (
    NotificationContext,
    build_notification_context,
    get_notification_context,
)
from app.services.notifications import MemoryNotificationStore
from app.services.queue import JobDispatcher, JobQueue, MemoryJobRepository


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingDispatcher(JobDispatcher):
    """
    Dispatcher that records every hand-off and runs jobs only when drained.
    Draining advances the clock by each dispatch delay before running.
    """

    def __init__(self, clock: Optional[FrozenClock] = None):
        self.clock = clock
        self.dispatched: List[Tuple[str, int]] = []
        self.pending: List[Tuple[str, int]] = []
        self._runner: Optional[Callable[[str], Any]] = None

    def attach(self, runner: Callable[[str], Any]) -> None:
        self._runner = runner

    def dispatch(self, job: Job, delay_ms: int = 0) -> None:
        self.dispatched.append((job.id, delay_ms))
        self.pending.append((job.id, delay_ms))

    def delays_for(self, job_id: str) -> List[int]:
        return [delay for dispatched_id, delay in self.dispatched if dispatched_id == job_id]

    def drain(self, max_runs: int = 1000) -> int:
        runs = 0
        while self.pending and runs < max_runs:
            job_id, delay_ms = self.pending.pop(0)
            if self.clock is not None and delay_ms:
                self.clock.advance(milliseconds=delay_ms)
            self._runner(job_id)
            runs += 1
        return runs


class FakeCourseDirectory(CourseDirectory):
    """In-memory facilitators, offerings and activity logs."""

    def __init__(self):
        self.facilitators: Dict[str, FacilitatorInfo] = {}
        self.offerings: Dict[str, CourseOfferingInfo] = {}
        self.activity_records: Dict[Tuple[str, int], ActivityRecordInfo] = {}

    def add_facilitator(self, facilitator_id: str, first_name: str, last_name: str, email: str):
        facilitator = FacilitatorInfo(
            id=facilitator_id, first_name=first_name, last_name=last_name, email=email
        )
        self.facilitators[facilitator_id] = facilitator
        return facilitator

    def add_offering(
        self,
        allocation_id: str,
        facilitator_id: str,
        module_code: str,
        module_name: str,
        is_active: bool = True,
    ):
        offering = CourseOfferingInfo(
            id=allocation_id,
            facilitator_id=facilitator_id,
            module_code=module_code,
            module_name=module_name,
            is_active=is_active,
        )
        self.offerings[allocation_id] = offering
        return offering

    def add_activity_record(self, allocation_id: str, week_number: int, is_late: bool = False):
        record = ActivityRecordInfo(
            id=f"log-{allocation_id}-{week_number}",
            allocation_id=allocation_id,
            week_number=week_number,
            is_late=is_late,
        )
        self.activity_records[(allocation_id, week_number)] = record
        return record

    def get_facilitator(self, facilitator_id: str) -> Optional[FacilitatorInfo]:
        return self.facilitators.get(facilitator_id)

    def get_course_offering(self, allocation_id: str) -> Optional[CourseOfferingInfo]:
        return self.offerings.get(allocation_id)

    def get_active_course_offerings(self) -> List[CourseOfferingInfo]:
        return [o for o in self.offerings.values() if o.is_active]

    def find_activity_record(
        self, allocation_id: str, week_number: int
    ) -> Optional[ActivityRecordInfo]:
        return self.activity_records.get((allocation_id, week_number))


@pytest.fixture
def clock() -> FrozenClock:
    """Friday 31 January 2025, inside week 5 (UTC)."""
    return FrozenClock(datetime(2025, 1, 31, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def notification_store() -> MemoryNotificationStore:
    return MemoryNotificationStore(capacity=100)


@pytest.fixture
def job_repository() -> MemoryJobRepository:
    return MemoryJobRepository()


@pytest.fixture
def dispatcher(clock: FrozenClock) -> RecordingDispatcher:
    return RecordingDispatcher(clock)


@pytest.fixture
def job_queue(job_repository, dispatcher, clock) -> JobQueue:
    return JobQueue(job_repository, dispatcher, lease_seconds=60, clock=clock)


@pytest.fixture
def directory() -> FakeCourseDirectory:
    directory = FakeCourseDirectory()
    directory.add_facilitator("fac-1", "Ada", "Lovelace", "ada@example.edu")
    directory.add_facilitator("fac-2", "Alan", "Turing", "alan@example.edu")
    directory.add_offering("alloc-1", "fac-1", "CS101", "Intro to Computing")
    directory.add_offering("alloc-2", "fac-2", "CS202", "Data Structures")
    return directory


@pytest.fixture
def context(job_queue, notification_store, directory, clock) -> NotificationContext:
    return build_notification_context(job_queue, notification_store, directory, clock)


@pytest.fixture
def client(context: NotificationContext):
    """API client wired to the in-memory notification context."""
    from app.main import app

    app.dependency_overrides[get_notification_context] = lambda: context
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

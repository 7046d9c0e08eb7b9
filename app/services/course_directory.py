from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.db.models import ActivityTracker, CourseOffering, Facilitator
from app.schemas.course_schemas import (
    ActivityRecordInfo,
    CourseOfferingInfo,
    FacilitatorInfo,
)
from app.utils.errors import ReferenceNotFoundError
from app.utils.logging import get_logger

logger = get_logger()


class CourseDirectory(ABC):
    """Read-only view of facilitators, course offerings and activity logs."""

    @abstractmethod
    def get_facilitator(self, facilitator_id: str) -> Optional[FacilitatorInfo]:
        pass

    @abstractmethod
    def get_course_offering(self, allocation_id: str) -> Optional[CourseOfferingInfo]:
        pass

    @abstractmethod
    def get_active_course_offerings(self) -> List[CourseOfferingInfo]:
        pass

    @abstractmethod
    def find_activity_record(
        self, allocation_id: str, week_number: int
    ) -> Optional[ActivityRecordInfo]:
        pass


def _to_offering_info(offering: CourseOffering) -> CourseOfferingInfo:
    return CourseOfferingInfo(
        id=offering.id,
        facilitator_id=offering.facilitator_id,
        module_code=offering.module.code,
        module_name=offering.module.name,
        is_active=offering.is_active,
    )


class SqlCourseDirectory(CourseDirectory):
    """
    CourseDirectory over the relational store.

    Each call opens a short-lived session. Database errors are reported as
    ReferenceNotFoundError so the calling job is retried under its backoff
    budget.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get_facilitator(self, facilitator_id: str) -> Optional[FacilitatorInfo]:
        try:
            with self._session_factory() as db:
                facilitator = db.execute(
                    select(Facilitator)
                    .options(selectinload(Facilitator.user))
                    .where(Facilitator.id == facilitator_id)
                ).scalar_one_or_none()

                if not facilitator:
                    return None

                return FacilitatorInfo(
                    id=facilitator.id,
                    first_name=facilitator.user.first_name,
                    last_name=facilitator.user.last_name,
                    email=facilitator.user.email,
                )
        except SQLAlchemyError as e:
            logger.error(f"Error loading facilitator {facilitator_id}: {str(e)}")
            raise ReferenceNotFoundError(
                f"Facilitator {facilitator_id} could not be loaded"
            ) from e

    def get_course_offering(self, allocation_id: str) -> Optional[CourseOfferingInfo]:
        try:
            with self._session_factory() as db:
                offering = db.execute(
                    select(CourseOffering)
                    .options(selectinload(CourseOffering.module))
                    .where(CourseOffering.id == allocation_id)
                ).scalar_one_or_none()

                return _to_offering_info(offering) if offering else None
        except SQLAlchemyError as e:
            logger.error(f"Error loading course offering {allocation_id}: {str(e)}")
            raise ReferenceNotFoundError(
                f"Course offering {allocation_id} could not be loaded"
            ) from e

    def get_active_course_offerings(self) -> List[CourseOfferingInfo]:
        try:
            with self._session_factory() as db:
                offerings = (
                    db.execute(
                        select(CourseOffering)
                        .options(selectinload(CourseOffering.module))
                        .where(CourseOffering.is_active == True)
                        .order_by(CourseOffering.id)
                    )
                    .scalars()
                    .all()
                )
                return [_to_offering_info(o) for o in offerings]
        except SQLAlchemyError as e:
            logger.error(f"Error listing active course offerings: {str(e)}")
            raise ReferenceNotFoundError(
                "Active course offerings could not be loaded"
            ) from e

    def find_activity_record(
        self, allocation_id: str, week_number: int
    ) -> Optional[ActivityRecordInfo]:
        try:
            with self._session_factory() as db:
                record = db.execute(
                    select(ActivityTracker).where(
                        ActivityTracker.allocation_id == allocation_id,
                        ActivityTracker.week_number == week_number,
                    )
                ).scalar_one_or_none()

                if not record:
                    return None

                return ActivityRecordInfo(
                    id=record.id,
                    allocation_id=record.allocation_id,
                    week_number=record.week_number,
                    submitted_at=record.submitted_at,
                    is_late=record.is_late,
                )
        except SQLAlchemyError as e:
            logger.error(
                f"Error loading activity log for {allocation_id}, week {week_number}: {str(e)}"
            )
            raise ReferenceNotFoundError(
                f"Activity log for {allocation_id}, week {week_number} could not be loaded"
            ) from e

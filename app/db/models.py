from typing import List, Optional
from datetime import datetime
import uuid
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    func,
    UniqueConstraint,
    CheckConstraint,
    DateTime,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


# Models
class User(Base, AuditMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False
    )  # RFC 5321 max length
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    facilitator: Mapped[Optional["Facilitator"]] = relationship(
        "Facilitator", back_populates="user", uselist=False
    )


class Facilitator(Base, AuditMixin):
    __tablename__ = "facilitators"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    qualification: Mapped[Optional[str]] = mapped_column(String(100))
    location: Mapped[Optional[str]] = mapped_column(String(100))

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="facilitator")
    course_offerings: Mapped[List["CourseOffering"]] = relationship(
        "CourseOffering", back_populates="facilitator"
    )


class Module(Base, AuditMixin):
    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    course_offerings: Mapped[List["CourseOffering"]] = relationship(
        "CourseOffering", back_populates="module"
    )


class CourseOffering(Base, AuditMixin):
    """An allocation: module x facilitator x cohort x class x trimester"""

    __tablename__ = "course_offerings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    module_id: Mapped[str] = mapped_column(ForeignKey("modules.id"), nullable=False)
    facilitator_id: Mapped[str] = mapped_column(
        ForeignKey("facilitators.id"), nullable=False
    )
    trimester: Mapped[Optional[str]] = mapped_column(String(20))
    intake_period: Mapped[Optional[str]] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    module: Mapped["Module"] = relationship("Module", back_populates="course_offerings")
    facilitator: Mapped["Facilitator"] = relationship(
        "Facilitator", back_populates="course_offerings"
    )
    activity_logs: Mapped[List["ActivityTracker"]] = relationship(
        "ActivityTracker", back_populates="course_offering"
    )


class ActivityTracker(Base, AuditMixin):
    """Weekly activity log submitted by a facilitator for one allocation"""

    __tablename__ = "activity_trackers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    allocation_id: Mapped[str] = mapped_column(
        ForeignKey("course_offerings.id", ondelete="CASCADE"), nullable=False
    )
    facilitator_id: Mapped[str] = mapped_column(
        ForeignKey("facilitators.id"), nullable=False
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    course_offering: Mapped["CourseOffering"] = relationship(
        "CourseOffering", back_populates="activity_logs"
    )

    __table_args__ = (
        UniqueConstraint(
            "allocation_id", "week_number", name="uq_activity_allocation_week"
        ),
        CheckConstraint(
            "week_number BETWEEN 1 AND 52", name="ck_activity_week_number"
        ),
    )

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field

from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class NotificationType(str, Enum):
    ACTIVITY_LOG_SUBMITTED = "activity_log_submitted"
    MISSING_SUBMISSION_REMINDER = "missing_submission_reminder"


class NotificationRecord(BaseModel):
    id: str = Field(..., description="Time-ordered notification ID")
    # Plain string so renderers registered at runtime can add new types
    type: str = Field(..., description="Notification type")
    subject: str = Field(..., description="Notification subject")
    message: str = Field(..., description="Notification body")
    facilitator_id: str = Field(..., description="Facilitator ID")
    facilitator_name: str = Field(..., description="Facilitator full name")
    facilitator_email: str = Field(..., description="Facilitator email")
    course_code: str = Field(..., description="Module code")
    course_name: str = Field(..., description="Module name")
    week_number: int = Field(..., ge=1, le=52, description="Week number")
    is_late: bool = Field(False, description="Whether the submission was late")
    timestamp: datetime = Field(..., description="Submission or creation time")
    read: bool = Field(False, description="Whether a manager has read it")


class ProcessNotificationPayload(BaseModel):
    """Payload of a `process-notification` job."""

    # Kept as a plain string so unknown types reach the template registry
    type: str = Field(..., description="Notification type")
    facilitator_id: str = Field(..., description="Facilitator ID")
    allocation_id: str = Field(..., description="Course offering (allocation) ID")
    week_number: int = Field(..., ge=1, le=52, description="Week number")
    is_late: bool = Field(False, description="Whether the submission was late")
    submitted_at: Optional[datetime] = Field(None, description="Submission time")


class CheckMissingSubmissionsPayload(BaseModel):
    """Payload of a `check-missing-submissions` job."""

    week_number: int = Field(..., ge=1, le=52, description="Week to scan")


class RenderedNotification(BaseModel):
    subject: str
    message: str


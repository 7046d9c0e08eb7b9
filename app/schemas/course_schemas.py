from datetime import datetime
from typing import Optional
from pydantic import Field

from app.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class FacilitatorInfo(BaseModel):
    id: str = Field(..., description="Facilitator ID")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: str = Field(..., description="Email address")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CourseOfferingInfo(BaseModel):
    id: str = Field(..., description="Course offering (allocation) ID")
    facilitator_id: str = Field(..., description="Assigned facilitator ID")
    module_code: str = Field(..., description="Module code")
    module_name: str = Field(..., description="Module name")
    is_active: bool = Field(True, description="Whether the offering is active")


class ActivityRecordInfo(BaseModel):
    id: str = Field(..., description="Activity log ID")
    allocation_id: str = Field(..., description="Course offering ID")
    week_number: int = Field(..., ge=1, le=52, description="Week number")
    submitted_at: Optional[datetime] = Field(None, description="Submission time")
    is_late: bool = Field(False, description="Whether it was submitted late")


class SubmissionReceipt(BaseModel):
    job_id: str = Field(..., description="Queued notification job ID")
    allocation_id: str = Field(..., description="Course offering ID")
    week_number: int = Field(..., description="Week number")
    submitted_at: datetime = Field(..., description="Submission time")
    deadline: datetime = Field(..., description="Deadline of the week")
    is_late: bool = Field(..., description="Whether the submission was late")


class ActivityLogSubmissionRequest(BaseModel):
    facilitator_id: str = Field(..., min_length=1, description="Facilitator ID")
    allocation_id: str = Field(..., min_length=1, description="Course offering ID")
    week_number: int = Field(..., ge=1, le=52, description="Week number")
    submitted_at: Optional[datetime] = Field(
        None, description="Submission time, defaults to now"
    )
    year: Optional[int] = Field(
        None, description="Academic year of the week, defaults to the submission's year"
    )

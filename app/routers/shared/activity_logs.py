from typing import Annotated
from fastapi import APIRouter, Depends, Request, status

from app.schemas.course_schemas import ActivityLogSubmissionRequest
from app.services.notification_context import (
    NotificationContext,
    get_notification_context,
)
from app.utils.responses import ResponseBuilder
from app.utils.logging import get_logger

activity_logs_router = APIRouter()
logger = get_logger()


@activity_logs_router.post("/", status_code=status.HTTP_201_CREATED)
async def submit_activity_log(
    request: Request,
    submission: ActivityLogSubmissionRequest,
    context: Annotated[NotificationContext, Depends(get_notification_context)],
):
    """
    Record that a facilitator submitted their weekly activity log.

    Lateness is computed against the week's deadline and the manager
    notification is queued; the response does not wait for it to be
    processed. Returns 503 when the job queue cannot be reached.
    """
    receipt = context.submissions.submit_activity_log(
        facilitator_id=submission.facilitator_id,
        allocation_id=submission.allocation_id,
        week_number=submission.week_number,
        submitted_at=submission.submitted_at,
        year=submission.year,
    )

    return ResponseBuilder.success(
        request=request,
        data=receipt.model_dump(mode="json", by_alias=True),
        message="Activity log submitted, late" if receipt.is_late else "Activity log submitted",
        status_code=status.HTTP_201_CREATED,
    )

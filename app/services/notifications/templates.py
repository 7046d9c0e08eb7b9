from app.schemas.course_schemas import CourseOfferingInfo, FacilitatorInfo
from app.schemas.notification_schemas import (
    ProcessNotificationPayload,
    RenderedNotification,
)

LATE_SUBMISSION_CLAUSE = " This submission was made after the deadline."


def render_activity_log_submitted(
    facilitator: FacilitatorInfo,
    offering: CourseOfferingInfo,
    payload: ProcessNotificationPayload,
) -> RenderedNotification:
    message = (
        f"Facilitator {facilitator.full_name} has submitted their activity log for "
        f"{offering.module_code} - {offering.module_name}, Week {payload.week_number}."
    )
    if payload.is_late:
        message += LATE_SUBMISSION_CLAUSE

    return RenderedNotification(
        subject=f"Activity Log Submitted - Week {payload.week_number}",
        message=message,
    )


def render_missing_submission_reminder(
    facilitator: FacilitatorInfo,
    offering: CourseOfferingInfo,
    payload: ProcessNotificationPayload,
) -> RenderedNotification:
    return RenderedNotification(
        subject=f"Missing Activity Log - Week {payload.week_number}",
        message=(
            f"Reminder: Facilitator {facilitator.full_name} has not submitted their "
            f"activity log for {offering.module_code} - {offering.module_name}, "
            f"Week {payload.week_number}."
        ),
    )

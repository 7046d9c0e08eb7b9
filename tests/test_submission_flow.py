import pytest
from datetime import datetime, timezone
from unittest.mock import Mock

from app.schemas.job_schemas import JobKind
from app.services.submission_service import ActivityLogSubmissionService
from app.utils.errors import QueueUnavailableError

LATE_CLAUSE = "This submission was made after the deadline."

pytestmark = pytest.mark.integration


class TestSubmitActivityLog:
    """Test the submission entry point."""

    def test_receipt_for_on_time_submission(self, context, dispatcher):
        submitted_at = datetime(2025, 2, 3, 12, 0, tzinfo=timezone.utc)

        receipt = context.submissions.submit_activity_log(
            "fac-1", "alloc-1", 5, submitted_at=submitted_at
        )

        assert receipt.is_late is False
        assert receipt.deadline.date() == datetime(2025, 2, 4).date()
        assert receipt.submitted_at == submitted_at
        assert dispatcher.dispatched == [(receipt.job_id, 0)]

        job = context.job_queue.get_job(receipt.job_id)
        assert job.kind == JobKind.PROCESS_NOTIFICATION
        assert job.payload["type"] == "activity_log_submitted"
        assert job.payload["isLate"] is False
        assert job.payload["submittedAt"].startswith("2025-02-03T12:00:00")

    def test_defaults_to_clock_time(self, context, clock):
        receipt = context.submissions.submit_activity_log("fac-1", "alloc-1", 5)

        assert receipt.submitted_at == clock.now
        assert receipt.is_late is False

    @pytest.mark.parametrize("week_number", [0, 53])
    def test_invalid_week_is_rejected(self, context, dispatcher, week_number):
        with pytest.raises(ValueError):
            context.submissions.submit_activity_log("fac-1", "alloc-1", week_number)
        assert dispatcher.dispatched == []

    def test_queue_unavailable_propagates(self, clock):
        job_queue = Mock()
        job_queue.enqueue.side_effect = QueueUnavailableError("broker down")
        service = ActivityLogSubmissionService(job_queue, clock)

        with pytest.raises(QueueUnavailableError):
            service.submit_activity_log("fac-1", "alloc-1", 5)


class TestEndToEnd:
    """Submission through the queue into the manager notification store."""

    def test_late_submission_produces_late_notification(
        self, context, dispatcher, notification_store
    ):
        context.submissions.submit_activity_log(
            "fac-1",
            "alloc-1",
            5,
            submitted_at=datetime(2025, 2, 5, 9, 30, tzinfo=timezone.utc),
        )
        dispatcher.drain()

        records = notification_store.list(10)
        assert len(records) == 1
        assert records[0].is_late is True
        assert LATE_CLAUSE in records[0].message
        assert records[0].timestamp == datetime(2025, 2, 5, 9, 30, tzinfo=timezone.utc)

    def test_on_time_submission_produces_plain_notification(
        self, context, dispatcher, notification_store
    ):
        context.submissions.submit_activity_log(
            "fac-1",
            "alloc-1",
            5,
            submitted_at=datetime(2025, 2, 4, 23, 0, tzinfo=timezone.utc),
        )
        dispatcher.drain()

        records = notification_store.list(10)
        assert len(records) == 1
        assert records[0].is_late is False
        assert LATE_CLAUSE not in records[0].message

    def test_manager_reads_and_marks_notifications(
        self, context, dispatcher
    ):
        for week_number in (3, 4, 5):
            context.submissions.submit_activity_log("fac-1", "alloc-1", week_number)
        dispatcher.drain()

        notifications = context.notifications.list_notifications()
        assert [n.week_number for n in notifications] == [5, 4, 3]

        assert context.notifications.mark_notification_read(notifications[1].id) is True
        assert context.notifications.mark_notification_read("missing") is False
        assert [n.read for n in context.notifications.list_notifications()] == [
            False,
            True,
            False,
        ]

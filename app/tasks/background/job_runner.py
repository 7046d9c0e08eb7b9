from typing import Any, Dict, Optional

from app.celery import celery
from app.services.notification_context import get_notification_context
from app.utils.context import request_context
from app.utils.logging import get_logger


@celery.task(bind=True, name="app.tasks.background.job_runner.run_job_task")
def run_job_task(self, request_id: str, job_id: str) -> Optional[Dict[str, Any]]:
    """
    Celery task that executes one attempt of a queued job.

    Retries are scheduled by the job queue itself (it re-dispatches this task
    with a countdown), so the task never calls `self.retry`. A soft time limit
    hit inside the handler is recorded as a failed attempt.

    Args:
        request_id: Request ID of the producer, for log correlation
        job_id: ID of the job in the job repository
    """
    with request_context(request_id):
        logger = get_logger()
        logger.info(
            f"Running job {job_id} (celery task {self.request.id}, "
            f"delivery {self.request.retries + 1})"
        )

        job = get_notification_context().job_queue.run(job_id)
        if job is None:
            return None

        return {
            "job_id": job.id,
            "kind": job.kind.value,
            "status": job.status.value,
            "attempts_made": job.attempts_made,
            "request_id": request_id,
        }

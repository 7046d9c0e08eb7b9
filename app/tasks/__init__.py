from .background import *
from .cron import *

__all__ = [
    # Background Tasks
    "run_job_task",
    # Scheduled/Cron Tasks
    "daily_missing_submission_check_task",
]

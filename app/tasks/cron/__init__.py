from .daily_missing_submission_check import daily_missing_submission_check_task

__all__ = ["daily_missing_submission_check_task"]

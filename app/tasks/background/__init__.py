from .job_runner import run_job_task

__all__ = ["run_job_task"]

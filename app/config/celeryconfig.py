from .settings import settings

# Basic Celery Configuration
broker_url = settings.redis_url
result_backend = settings.redis_url

# Task Discovery
include = ["app.tasks"]

# Timezone Configuration
timezone = settings.TIMEZONE
enable_utc = True

# Task Result Configuration
result_expires = 3600

# Task Serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"

# Task Execution Configuration
task_track_started = True
task_soft_time_limit = settings.JOB_HANDLER_TIMEOUT_SECONDS
task_time_limit = settings.JOB_HANDLER_TIMEOUT_SECONDS + 10

# Worker Configuration
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Delivery Configuration
# Retries and backoff are owned by the job queue, not by Celery.
task_acks_late = True
task_reject_on_worker_lost = True

# The daily beat entry is installed by install_beat_schedule() in app.celery

# Default Queue
task_default_queue = "course-activity"

# Beat Scheduler Configuration
beat_schedule_filename = "tmp/celerybeat-schedule"

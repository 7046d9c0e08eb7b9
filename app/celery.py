from celery import Celery

from app.services.notifications.scheduler import install_beat_schedule

# Create Celery app
celery = Celery("app")

# Load configuration from app.config.celeryconfig module
celery.config_from_object("app.config.celeryconfig")

# Daily missing-submission check, fired by `celery -A app.celery beat`
install_beat_schedule(celery)

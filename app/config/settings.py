from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "Course Activity Notifications"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    """Pydantic v2 doesn't support parsing List[str] from a plain comma-separated string by default anymore."""
    ALLOWED_HOSTS: Union[str, List[str]] = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "UTC"

    # Database (course offerings, facilitators, activity logs)
    DATABASE_URL: str = "sqlite:///./course_activity.db"

    # Redis & Celery
    REDIS_PASSWORD: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Job queue
    JOB_BACKEND: str = "redis"
    JOB_MAX_ATTEMPTS: int = 3
    JOB_BACKOFF_DELAY_MS: int = 2000
    JOB_HANDLER_TIMEOUT_SECONDS: int = 30
    JOB_RETENTION_SECONDS: int = 24 * 60 * 60
    JOB_KEY_PREFIX: str = "jobs"
    JOB_LOCAL_WORKERS: int = 4

    # Manager notification store
    NOTIFICATION_STORE_BACKEND: str = "redis"
    NOTIFICATION_STORE_KEY: str = "notifications:managers"
    NOTIFICATION_STORE_CAPACITY: int = 100
    NOTIFICATION_PAGE_SIZE: int = 20

    # Missing submission reminders
    REMINDER_CRON_HOUR: int = 9
    REMINDER_CRON_MINUTE: int = 0

    @field_validator("ALLOWED_HOSTS", mode="before")
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if not v:
            return []
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        return v

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()

from functools import lru_cache

from redis import Redis

from app.config.settings import settings


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    """Shared Redis client for the job store and the notification store."""
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        health_check_interval=30,
    )

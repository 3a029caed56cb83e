# scheduler/redis_client.py

from redis import Redis

from .config import Settings


def create_redis_client(settings: Settings) -> Redis:
    """Connection pool for the booking store, created once at startup."""
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )

import logging
from typing import Optional

import redis

logger = logging.getLogger("guestbook.redis")


def create_redis_client(url: str, socket_timeout: float = 0.5) -> Optional[redis.Redis]:
    """
    Build a Redis client, or None when no URL is configured.

    The connection is opened lazily on first command; callers treat every
    Redis failure as a cache miss / allow, so a dead Redis never breaks routing.
    """
    if not url:
        logger.warning("REDIS_URL not set, domain cache and rate limiting disabled")
        return None
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=socket_timeout,
        socket_timeout=socket_timeout,
    )

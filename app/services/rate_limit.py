"""
Redis fixed-window rate limiter for domain lifecycle operations.

Guards add / verify / remove / refresh per acting user so a single account
cannot hammer the Vercel API or our DNS lookups. Never applied to the
request-path resolver.
"""
import logging
import time
from typing import Optional, Tuple

import redis

logger = logging.getLogger("guestbook.rate_limit")

DOMAIN_OP_KEY_PREFIX = "rl:domain-op"


class RateLimiter:
    """Fixed-window counter (INCR + EXPIRE) on Redis."""

    def __init__(self, client: Optional[redis.Redis], enabled: bool = True):
        self._redis = client
        self.enabled = enabled

    def is_allowed(
        self,
        key: str,
        max_requests: int,
        window_seconds: int,
    ) -> Tuple[bool, int, int]:
        """
        Count one hit against ``key``.
        Returns (allowed, remaining, retry_after_seconds).
        """
        if not self.enabled or self._redis is None:
            return True, max_requests, 0

        now = time.time()
        window_id = int(now // window_seconds)
        bucket = f"{key}:{window_id}"
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.incr(bucket)
            pipe.expire(bucket, window_seconds + 10)
            count = pipe.execute()[0]
        except redis.RedisError as e:
            logger.warning("Rate limiter Redis error: %s, allowing request", e)
            return True, max_requests, 0  # Redis unavailable: allow

        if count > max_requests:
            retry_after = int(window_seconds - (now % window_seconds))
            return False, 0, max(retry_after, 1)

        return True, max(max_requests - count, 0), 0


def domain_op_key(user_id: object) -> str:
    return f"{DOMAIN_OP_KEY_PREFIX}:{user_id}"

"""
Domain → guestbook read-through cache (Redis)

- Positive entries: JSON mapping, 1 hour TTL
- Negative entries: "__none__", 1 minute TTL (not-found is often transient
  while DNS propagates or the owner finishes verification)
- Redis missing or failing: every call is a miss / silent success
"""

import enum
import json
import logging
from typing import Optional, Union

import redis

from app.schemas.domain import DomainMapping

logger = logging.getLogger("guestbook.domain_cache")

KEY_PREFIX = "domain:"
NEGATIVE_VALUE = "__none__"
DEFAULT_TTL = 3600
DEFAULT_NEGATIVE_TTL = 60


class NegativeSentinel(enum.Enum):
    NEGATIVE = NEGATIVE_VALUE


NEGATIVE = NegativeSentinel.NEGATIVE

CacheLookup = Union[DomainMapping, NegativeSentinel, None]


class DomainCache:
    def __init__(
        self,
        client: Optional[redis.Redis],
        ttl: int = DEFAULT_TTL,
        negative_ttl: int = DEFAULT_NEGATIVE_TTL,
    ):
        self._redis = client
        self.ttl = ttl
        self.negative_ttl = negative_ttl

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    @staticmethod
    def key(hostname: str) -> str:
        return f"{KEY_PREFIX}{hostname}"

    def get(self, hostname: str) -> CacheLookup:
        """Mapping on hit, ``NEGATIVE`` for a cached not-found, None on miss."""
        if self._redis is None:
            return None
        try:
            cached = self._redis.get(self.key(hostname))
        except redis.RedisError as e:
            logger.debug("Domain cache get error for %s: %s", hostname, e)
            return None
        if not cached:
            return None
        if cached == NEGATIVE_VALUE:
            return NEGATIVE
        try:
            return DomainMapping.model_validate(json.loads(cached))
        except ValueError:
            logger.debug("Discarding corrupt domain cache entry for %s", hostname)
            return None

    def set_positive(self, hostname: str, mapping: DomainMapping, ttl: Optional[int] = None) -> None:
        if self._redis is None:
            return
        try:
            self._redis.set(self.key(hostname), mapping.model_dump_json(), ex=ttl or self.ttl)
        except redis.RedisError as e:
            logger.debug("Domain cache set error for %s: %s", hostname, e)

    def set_negative(self, hostname: str, ttl: Optional[int] = None) -> None:
        if self._redis is None:
            return
        try:
            self._redis.set(self.key(hostname), NEGATIVE_VALUE, ex=ttl or self.negative_ttl)
        except redis.RedisError as e:
            logger.debug("Domain cache negative set error for %s: %s", hostname, e)

    def invalidate(self, hostname: str) -> None:
        """Drop any entry for ``hostname``. Call on add / verify / remove."""
        if self._redis is None:
            return
        try:
            self._redis.delete(self.key(hostname))
        except redis.RedisError as e:
            logger.warning("Domain cache invalidate failed for %s: %s", hostname, e)

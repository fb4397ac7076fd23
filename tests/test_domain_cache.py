"""Unit tests for the domain → guestbook Redis cache."""
from app.schemas.domain import DomainMapping
from app.services.domain_cache import NEGATIVE, DomainCache

from tests.conftest import BrokenRedis, FakeRedis

MAPPING = DomainMapping(slug="my-wall", guestbook_id="gb-1")


def test_positive_entry_roundtrip():
    client = FakeRedis()
    cache = DomainCache(client, ttl=3600)
    cache.set_positive("love.example.com", MAPPING)

    assert cache.get("love.example.com") == MAPPING
    assert client.ttls["domain:love.example.com"] == 3600


def test_negative_entry_uses_short_ttl():
    client = FakeRedis()
    cache = DomainCache(client, negative_ttl=60)
    cache.set_negative("nope.example.com")

    assert cache.get("nope.example.com") is NEGATIVE
    assert client.data["domain:nope.example.com"] == "__none__"
    assert client.ttls["domain:nope.example.com"] == 60


def test_miss_returns_none():
    assert DomainCache(FakeRedis()).get("unknown.example.com") is None


def test_invalidate_drops_entry():
    cache = DomainCache(FakeRedis())
    cache.set_positive("love.example.com", MAPPING)
    cache.invalidate("love.example.com")
    assert cache.get("love.example.com") is None


def test_corrupt_entry_is_a_miss():
    client = FakeRedis()
    client.data["domain:love.example.com"] = "{not json"
    assert DomainCache(client).get("love.example.com") is None


def test_disabled_cache_is_noop():
    cache = DomainCache(None)
    assert cache.enabled is False
    cache.set_positive("love.example.com", MAPPING)
    cache.set_negative("love.example.com")
    cache.invalidate("love.example.com")
    assert cache.get("love.example.com") is None


def test_redis_errors_degrade_to_miss():
    cache = DomainCache(BrokenRedis())
    cache.set_positive("love.example.com", MAPPING)
    cache.set_negative("love.example.com")
    cache.invalidate("love.example.com")
    assert cache.get("love.example.com") is None

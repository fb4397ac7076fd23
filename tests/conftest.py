"""Shared fixtures: SQLite-backed store, in-memory Redis and registrar / DNS fakes."""
import uuid
from typing import Dict, List, Optional

import pytest
import redis
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.db.base_class import Base
from app.schemas.domain import DnsCheckResult, DomainVerificationData, VerificationToken
from app.services.domain_cache import DomainCache
from app.services.domain_lifecycle import DomainLifecycle
from app.services.domain_store import DomainStore
from app.services.rate_limit import RateLimiter

OWNER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
OTHER_OWNER_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


# ── Redis ──

class _FakePipeline:
    def __init__(self, store: "FakeRedis"):
        self._store = store
        self._ops = []

    def incr(self, key):
        self._ops.append(("incr", key))
        return self

    def expire(self, key, seconds):
        self._ops.append(("expire", key, seconds))
        return self

    def execute(self):
        results = []
        for op in self._ops:
            if op[0] == "incr":
                results.append(self._store.incr(op[1]))
            else:
                self._store.ttls[op[1]] = op[2]
                results.append(True)
        self._ops = []
        return results


class FakeRedis:
    """Dict-backed subset of redis.Redis (decode_responses=True)."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    def pipeline(self, transaction=True):
        return _FakePipeline(self)


class BrokenRedis:
    """Every command fails like an unreachable server."""

    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")
        return _fail


# ── Registrar / DNS ──

class FakeRegistrar:
    def __init__(
        self,
        verification: Optional[List[VerificationToken]] = None,
        add_errors: Optional[List[Exception]] = None,
        remove_error: Optional[Exception] = None,
        config: Optional[dict] = None,
        verify_response: Optional[dict] = None,
        status_error: Optional[Exception] = None,
    ):
        self.verification = verification if verification is not None else [
            VerificationToken(type="TXT", domain="_vercel.example.com", value="vc-domain-verify=abc123"),
        ]
        self.add_errors = list(add_errors or [])
        self.remove_error = remove_error
        self.config = config if config is not None else {"misconfigured": False}
        self.verify_response = verify_response if verify_response is not None else {"verified": True}
        self.status_error = status_error
        self.calls: List[tuple] = []

    def add_host(self, hostname, is_apex):
        self.calls.append(("add_host", hostname, is_apex))
        if self.add_errors:
            raise self.add_errors.pop(0)
        return DomainVerificationData(is_apex=is_apex, verification=self.verification)

    def remove_host(self, hostname, is_apex):
        self.calls.append(("remove_host", hostname, is_apex))
        if self.remove_error:
            raise self.remove_error

    def get_host_config(self, hostname):
        self.calls.append(("get_host_config", hostname))
        if self.status_error:
            raise self.status_error
        return self.config

    def verify_host(self, hostname):
        self.calls.append(("verify_host", hostname))
        if self.status_error:
            raise self.status_error
        return self.verify_response


class FakeVerifier:
    def __init__(self, result: Optional[DnsCheckResult] = None):
        self.result = result or DnsCheckResult(verified=True)
        self.calls: List[tuple] = []

    def check_dns(self, hostname, expected):
        self.calls.append((hostname, list(expected)))
        return self.result


# ── Fixtures ──

@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return DomainStore(session_factory)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return DomainCache(fake_redis)


@pytest.fixture
def registrar():
    return FakeRegistrar()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def lifecycle(store, cache, registrar, verifier):
    return DomainLifecycle(
        store,
        cache,
        registrar,
        verifier,
        RateLimiter(FakeRedis()),
        ops_limit=5,
        ops_window_seconds=3600,
        registrar_attempts=1,
    )


# --- Helpers ---

def create_guestbook(session_factory, *, user_id=OWNER_ID, slug="my-wall", **fields) -> uuid.UUID:
    """Insert a guestbook row directly and return its id."""
    from app.models.guestbook import Guestbook

    with session_factory() as db:
        row = Guestbook(user_id=user_id, name=slug or "untitled", slug=slug, **fields)
        db.add(row)
        db.commit()
        return row.id


def make_token(user_id: uuid.UUID) -> str:
    return jwt.encode({"sub": str(user_id)}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

"""
Request-path hostname → guestbook resolution.

Precedence: cache → store → negative-cache write. Independent of any HTTP
framework; the edge middleware only translates a ``RouteDecision`` into a
rewrite or a 404.

Concurrent misses for the same hostname are not de-duplicated: each queries
the store and writes the same value to the cache.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from app.schemas.domain import DomainMapping
from app.services.domain_cache import NEGATIVE, DomainCache
from app.services.domain_store import DomainStore
from app.services.domain_validation import is_ip_literal

logger = logging.getLogger("guestbook.resolver")

DOMAIN_NOT_CONFIGURED = "Domain not configured"
NOT_FOUND = "Not found"

PASSTHROUGH_PREFIXES = ("/_next/", "/api/", "/static/", "/widget/")
PASSTHROUGH_PATHS = {"/favicon.ico", "/robots.txt"}
STATIC_EXTENSIONS = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico", ".css", ".js")


class ResolutionSource(str, enum.Enum):
    CACHE = "cache"
    NEGATIVE_CACHE = "negative_cache"
    STORE = "store"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class Resolution:
    mapping: Optional[DomainMapping]
    source: ResolutionSource


class RouteAction(str, enum.Enum):
    PASSTHROUGH = "passthrough"
    REWRITE = "rewrite"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    path: Optional[str] = None
    message: Optional[str] = None
    hostname: Optional[str] = None
    resolution: Optional[Resolution] = None


def extract_hostname(host_header: Optional[str]) -> str:
    """Host header → bare lowercase hostname (port and trailing dot removed)."""
    host = (host_header or "").strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[: end + 1] if end != -1 else host
    return host.split(":", 1)[0].rstrip(".")


def is_passthrough_path(path: str) -> bool:
    if path in PASSTHROUGH_PATHS or path.startswith(PASSTHROUGH_PREFIXES):
        return True
    return path.lower().endswith(STATIC_EXTENSIONS)


class DomainResolver:
    def __init__(
        self,
        cache: DomainCache,
        store: DomainStore,
        platform_domain: str,
        preview_suffixes: Iterable[str] = (),
        extra_hosts: Iterable[str] = (),
    ):
        self._cache = cache
        self._store = store
        self.platform_domain = platform_domain.lower()
        self.preview_suffixes = tuple(s.lower().lstrip(".") for s in preview_suffixes)
        self.platform_hosts = {"localhost", self.platform_domain, *(h.lower() for h in extra_hosts)}

    def is_platform_host(self, hostname: str) -> bool:
        if not hostname or hostname in self.platform_hosts:
            return True
        if hostname.endswith((".localhost", f".{self.platform_domain}")):
            return True
        if any(hostname.endswith(f".{suffix}") for suffix in self.preview_suffixes):
            return True
        return is_ip_literal(hostname)

    def resolve(self, hostname: str) -> Resolution:
        cached = self._cache.get(hostname)
        if cached is NEGATIVE:
            return Resolution(None, ResolutionSource.NEGATIVE_CACHE)
        if cached is not None:
            return Resolution(cached, ResolutionSource.CACHE)

        try:
            mapping = self._store.find_mapping(hostname)
        except Exception:
            # Not negative-cached: the store, not the domain, is the problem
            logger.exception("Custom domain lookup failed for %s", hostname)
            return Resolution(None, ResolutionSource.STORE_ERROR)

        if mapping is None:
            self._cache.set_negative(hostname)
            return Resolution(None, ResolutionSource.NOT_FOUND)

        self._cache.set_positive(hostname, mapping)
        logger.debug("Resolved custom domain %s → guestbook %s", hostname, mapping.guestbook_id)
        return Resolution(mapping, ResolutionSource.STORE)

    def route(self, host_header: Optional[str], path: str) -> RouteDecision:
        hostname = extract_hostname(host_header)
        if self.is_platform_host(hostname) or is_passthrough_path(path):
            return RouteDecision(RouteAction.PASSTHROUGH, path=path, hostname=hostname)

        resolution = self.resolve(hostname)
        if resolution.mapping is None:
            return RouteDecision(
                RouteAction.NOT_FOUND,
                message=DOMAIN_NOT_CONFIGURED,
                hostname=hostname,
                resolution=resolution,
            )

        slug = resolution.mapping.slug
        normalized = path.rstrip("/") or "/"
        if normalized == "/":
            target = f"/wall/{slug}"
        elif normalized == "/collect":
            target = f"/collect/{slug}"
        else:
            return RouteDecision(
                RouteAction.NOT_FOUND, message=NOT_FOUND, hostname=hostname, resolution=resolution
            )
        return RouteDecision(RouteAction.REWRITE, path=target, hostname=hostname, resolution=resolution)

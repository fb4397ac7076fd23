from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.config import settings
from app.logging_config import setup_logging
from app.middleware.custom_domain import CustomDomainMiddleware
from app.middleware.metrics import PrometheusMiddleware, metrics_endpoint, set_app_info
from app.middleware.request_logging import RequestLoggingMiddleware
from app.services.dns_verifier import DnsVerifier
from app.services.domain_cache import DomainCache
from app.services.domain_lifecycle import DomainLifecycle
from app.services.domain_resolver import DomainResolver
from app.services.domain_store import DomainStore
from app.services.domain_validation import BLOCKED_DOMAINS
from app.services.rate_limit import RateLimiter
from app.services.redis_client import create_redis_client
from app.services.registrar_client import VercelDomainsClient

# ── Initialize structured logging ──
setup_logging()


def build_domain_services() -> Tuple[DomainResolver, DomainLifecycle]:
    """Wire resolver + lifecycle against the configured Postgres / Redis / Vercel."""
    from app.db.session import SessionLocal

    redis_client = create_redis_client(settings.REDIS_URL, settings.REDIS_SOCKET_TIMEOUT)
    cache = DomainCache(
        redis_client,
        ttl=settings.DOMAIN_CACHE_TTL,
        negative_ttl=settings.DOMAIN_NEGATIVE_CACHE_TTL,
    )
    store = DomainStore(SessionLocal)

    resolver = DomainResolver(
        cache,
        store,
        platform_domain=settings.PLATFORM_DOMAIN,
        preview_suffixes=settings.platform_preview_suffixes,
        extra_hosts=settings.platform_extra_hosts,
    )
    lifecycle = DomainLifecycle(
        store,
        cache,
        VercelDomainsClient.from_settings(),
        DnsVerifier(timeout=settings.DNS_LOOKUP_TIMEOUT_SECONDS),
        RateLimiter(redis_client, enabled=settings.RATE_LIMIT_ENABLED),
        ops_limit=settings.DOMAIN_OPS_RATE_LIMIT,
        ops_window_seconds=settings.DOMAIN_OPS_RATE_WINDOW_SECONDS,
        registrar_attempts=settings.REGISTRAR_RETRY_ATTEMPTS,
        reserved_domains=(*BLOCKED_DOMAINS, settings.PLATFORM_DOMAIN),
        apex_ip=settings.PLATFORM_APEX_IP,
        cname_target=settings.PLATFORM_CNAME_TARGET,
    )
    return resolver, lifecycle


def create_app(
    domain_resolver: Optional[DomainResolver] = None,
    domain_lifecycle: Optional[DomainLifecycle] = None,
) -> FastAPI:
    """Build the ASGI app; services not injected are wired from settings at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.domain_resolver is None or app.state.domain_lifecycle is None:
            resolver, lifecycle = build_domain_services()
            app.state.domain_resolver = app.state.domain_resolver or resolver
            app.state.domain_lifecycle = app.state.domain_lifecycle or lifecycle
        yield

    app = FastAPI(
        title=settings.APP_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )
    app.state.domain_resolver = domain_resolver
    app.state.domain_lifecycle = domain_lifecycle

    cors_origins = ["http://localhost:3000"]
    if settings.BACKEND_CORS_ORIGINS:
        cors_origins.extend(
            origin.strip() for origin in settings.BACKEND_CORS_ORIGINS.split(",") if origin.strip()
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom domain resolution – Host header → guestbook page rewrite
    app.add_middleware(CustomDomainMiddleware)

    # Prometheus metrics – request count, latency, in-progress
    app.add_middleware(PrometheusMiddleware)

    # Request logging – request ID, timing, context (outermost)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "env": settings.APP_ENV}

    app.add_route("/metrics", metrics_endpoint)
    set_app_info(version="1.0.0", env=settings.APP_ENV)
    return app


app = create_app()

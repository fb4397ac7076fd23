"""
Custom Domain Resolution Middleware

Routes requests for guestbook-owned hostnames:
  - platform hosts and static / API paths pass through untouched
  - "/"        → /wall/{slug}
  - "/collect" → /collect/{slug}
  - anything else on a custom host → 404 "Not found"
  - unknown custom host            → 404 "Domain not configured"

Sets request.state.guestbook_id / request.state.guestbook_slug for
downstream handlers.
"""

import logging

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from app.logging_config import guestbook_id_ctx
from app.middleware.metrics import DOMAIN_RESOLUTIONS
from app.services.domain_resolver import DomainResolver, RouteAction

logger = logging.getLogger("guestbook.domain")


class CustomDomainMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        resolver: DomainResolver = request.app.state.domain_resolver
        path = request.url.path

        # Cache / store calls are blocking; keep them off the event loop
        decision = await run_in_threadpool(resolver.route, request.headers.get("host"), path)

        if decision.resolution is not None:
            DOMAIN_RESOLUTIONS.labels(source=decision.resolution.source.value).inc()

        if decision.action is RouteAction.PASSTHROUGH:
            return await call_next(request)

        if decision.action is RouteAction.NOT_FOUND:
            logger.debug("404 for %s%s: %s", decision.hostname, path, decision.message)
            return PlainTextResponse(decision.message, status_code=404)

        mapping = decision.resolution.mapping
        request.state.guestbook_id = mapping.guestbook_id
        request.state.guestbook_slug = mapping.slug
        guestbook_id_ctx.set(mapping.guestbook_id)

        request.scope["path"] = decision.path
        request.scope["raw_path"] = decision.path.encode()
        logger.debug("Rewrote %s%s → %s", decision.hostname, path, decision.path)
        return await call_next(request)

"""
Request Logging Middleware

- Assigns a unique request_id to every request
- Sets user_id context from the dashboard's bearer token
- Logs request start & end with timing
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.logging_config import (
    generate_request_id,
    guestbook_id_ctx,
    request_id_ctx,
    user_id_ctx,
)

logger = logging.getLogger("guestbook.request")


def _extract_user_id(request: Request) -> str:
    """Best-effort read of the JWT subject; auth itself happens in deps."""
    from app.api.deps import decode_access_token

    auth = request.headers.get("authorization", "")
    if auth.startswith("Bearer "):
        payload = decode_access_token(auth[7:], verify_exp=False)
        if payload and payload.get("sub"):
            return str(payload["sub"])
    return "-"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        rid = generate_request_id()
        request_id_ctx.set(rid)
        user_id_ctx.set(_extract_user_id(request))
        guestbook_id_ctx.set("-")

        method = request.method
        path = request.url.path
        host = request.headers.get("host", "-")

        logger.info("→ %s %s%s", method, host, path)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            logger.exception("✗ %s %s%s %.1fms (unhandled exception)", method, host, path, elapsed)
            raise

        elapsed = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = rid

        logger.info(
            "← %s %s%s %d %.1fms",
            method, host, path, response.status_code, elapsed,
        )
        return response

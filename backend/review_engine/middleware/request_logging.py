"""Per-request structured logging with a request id and timing."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from review_engine.core.logging import bind_context, clear_context, get_logger
from review_engine.core.tenant import resolve_shop
from review_engine.middleware.proxy_cors import PROXY_PATH_PREFIX

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by an external scheduler; logged at debug only
QUIET_PATHS = frozenset({"/api/ping", "/health"})


def request_surface(path: str) -> str:
    """Which side of the app a path belongs to: proxy, admin or ops."""
    if path.startswith(PROXY_PATH_PREFIX):
        return "proxy"
    if path.startswith("/admin"):
        return "admin"
    return "ops"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its id, surface, shop and duration.

    An inbound ``X-Request-ID`` (set by the platform proxy or a load
    balancer) is reused so log lines can be joined across hops. Proxy
    requests are tagged with the shop they resolve to; admin requests get
    theirs bound later by the session token check.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        path = request.url.path
        surface = request_surface(path)

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "surface": surface,
        }
        if surface == "proxy":
            context["shop"] = resolve_shop(request)
        bind_context(**context)

        log = logger.debug if path in QUIET_PATHS else logger.info
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "request_failed",
                error=str(exc),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        else:
            elapsed = time.perf_counter() - started
            log(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000, 2),
                client_ip=self._client_ip(request),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Process-Time"] = f"{elapsed:.4f}"
            return response
        finally:
            clear_context()

    @staticmethod
    def _client_ip(request: Request) -> str:
        """Original client address; the app proxy always forwards it."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

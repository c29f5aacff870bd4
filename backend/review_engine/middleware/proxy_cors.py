"""Permissive CORS for the storefront app proxy routes."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

PROXY_PATH_PREFIX = "/apps/"

PROXY_CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Expose-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class ProxyCORSMiddleware(BaseHTTPMiddleware):
    """CORS for storefront pages calling the app proxy.

    Pre-flight requests on proxy paths are answered here with 204 and no
    body, whatever their origin. Every other proxy response, errors
    included, gets the same headers.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        if not request.url.path.startswith(PROXY_PATH_PREFIX):
            return await call_next(request)

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PROXY_CORS_HEADERS)

        response = await call_next(request)
        response.headers.update(PROXY_CORS_HEADERS)
        return response

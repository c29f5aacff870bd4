"""Application middleware."""

from review_engine.middleware.proxy_cors import PROXY_CORS_HEADERS, ProxyCORSMiddleware
from review_engine.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "PROXY_CORS_HEADERS",
    "ProxyCORSMiddleware",
    "RequestLoggingMiddleware",
]

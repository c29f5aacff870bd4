"""Health check endpoints."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from review_engine.config import settings
from review_engine.core.dependencies import ReviewRepo
from review_engine.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
    description="Returns OK if the service is running. Use for load balancer health checks.",
)
async def health() -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    return HealthResponse(
        status="ok",
        version=settings.app_version,
    )


@router.get(
    "/api/ping",
    response_class=PlainTextResponse,
    summary="Keep-alive ping",
    description="Touches the review store so an idle database stays warm. Always 200.",
)
async def ping(repository: ReviewRepo) -> str:
    """Trivial store read; the outcome never changes the response."""
    try:
        await repository.touch()
    except Exception as e:
        logger.warning("ping_store_read_failed", error=str(e))
    return "ok"

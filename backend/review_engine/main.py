"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from review_engine.config import settings
from review_engine.core.database import check_db_connection, close_db
from review_engine.core.exceptions import AppException
from review_engine.core.logging import get_logger, setup_logging
from review_engine.middleware import ProxyCORSMiddleware, RequestLoggingMiddleware

# Setup logging on module load
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    if await check_db_connection():
        logger.info("database_connected")
    else:
        logger.error("database_connection_failed")

    yield

    logger.info("application_shutting_down")
    await close_db()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Product review collection and moderation for storefronts",
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    _setup_middleware(app)
    _setup_exception_handlers(app)
    _setup_routers(app)

    return app


def _setup_middleware(app: FastAPI) -> None:
    """Configure application middleware."""
    # CORS for the merchant admin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.admin_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Storefront proxy CORS (must wrap the admin CORS to own proxy pre-flights)
    app.add_middleware(ProxyCORSMiddleware)

    # Request logging (runs first, logs all requests)
    app.add_middleware(RequestLoggingMiddleware)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message},
    )


def _setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle AppException with the {ok, error} envelope."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Framework errors (unknown route, wrong method) in the same envelope."""
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(400, "Invalid request")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions without leaking detail."""
        logger.exception("unhandled_exception", error=str(exc), path=request.url.path)
        return _error_response(500, "Internal server error")


def _setup_routers(app: FastAPI) -> None:
    """Register API routers."""
    from review_engine.modules.health.router import router as health_router
    from review_engine.modules.reviews.router import admin_router, proxy_router

    # Health checks and keep-alive ping
    app.include_router(health_router, tags=["Health"])

    # Public storefront routes behind the app proxy
    app.include_router(proxy_router, tags=["Storefront - Reviews"])

    # Merchant moderation routes
    app.include_router(admin_router, tags=["Admin - Reviews"])


# Create app instance
app = create_app()

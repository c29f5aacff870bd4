"""Pytest configuration and fixtures.

API tests run the real application with the review repository and the
media store replaced through ``dependency_overrides``; no database or
bucket is needed.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from review_engine.config import settings
from review_engine.core.dependencies import get_media_store, get_review_repository
from review_engine.main import create_app
from review_engine.modules.reviews.models import Review, ReviewStatus
from tests.fixtures import (
    InMemoryReviewRepository,
    RecordingMediaStore,
    ReviewFactory,
    make_session_token,
)

TEST_SESSION_SECRET = "test-session-token-secret"


@pytest.fixture(autouse=True)
def session_token_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    """App secret used to sign and verify merchant session tokens."""
    monkeypatch.setattr(settings, "shopify_api_secret", TEST_SESSION_SECRET)
    return TEST_SESSION_SECRET


# ============================================================================
# Doubles
# ============================================================================


@pytest.fixture
def repository() -> InMemoryReviewRepository:
    """Empty in-memory review store."""
    return InMemoryReviewRepository()


@pytest.fixture
def media_store() -> RecordingMediaStore:
    """Configured media store that records uploads."""
    return RecordingMediaStore()


@pytest.fixture
def seed_review(repository: InMemoryReviewRepository):
    """Insert a review directly into the in-memory store."""

    def _seed(**overrides: Any) -> Review:
        return repository.add(ReviewFactory(created_at=None, updated_at=None, **overrides))

    return _seed


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(
    repository: InMemoryReviewRepository,
    media_store: RecordingMediaStore,
) -> FastAPI:
    """Create test FastAPI application."""
    application = create_app()

    application.dependency_overrides[get_review_repository] = lambda: repository
    application.dependency_overrides[get_media_store] = lambda: media_store

    return application


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def merchant_headers() -> dict[str, str]:
    """Bearer session token for the demo shop."""
    return {"Authorization": f"Bearer {make_session_token()}"}


@pytest_asyncio.fixture(scope="function")
async def merchant_client(
    app: FastAPI,
    merchant_headers: dict[str, str],
) -> AsyncGenerator[AsyncClient, None]:
    """Create authenticated test HTTP client for the merchant admin."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=merchant_headers,
    ) as ac:
        yield ac


@pytest.fixture
def pending_review(seed_review) -> Review:
    return seed_review(status=ReviewStatus.PENDING)

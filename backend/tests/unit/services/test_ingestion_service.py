"""Unit tests for ReviewIngestionService."""

from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from starlette.datastructures import Headers, UploadFile

from review_engine.core.exceptions import (
    InvalidInputError,
    MediaStorageNotConfiguredError,
    MediaUploadError,
)
from review_engine.modules.media.storage import MediaStoreConfig, UnconfiguredMediaStore
from review_engine.modules.reviews.models import ReviewStatus
from review_engine.modules.reviews.service import ReviewIngestionService
from tests.fixtures import DEMO_SHOP, InMemoryReviewRepository, RecordingMediaStore


def upload(content: bytes, filename: str = "photo.JPG", content_type: str = "image/jpeg") -> UploadFile:
    return UploadFile(
        BytesIO(content),
        size=len(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def submission(**overrides) -> dict:
    raw = {"product_id": "100", "rating": "5", "name": "Amy", "review": "Great!"}
    raw.update(overrides)
    return raw


class TestReviewIngestionService:
    """Tests for storefront review submission."""

    @pytest.fixture
    def repository(self) -> InMemoryReviewRepository:
        return InMemoryReviewRepository()

    @pytest.fixture
    def media_store(self) -> RecordingMediaStore:
        return RecordingMediaStore()

    @pytest.fixture
    def service(
        self,
        repository: InMemoryReviewRepository,
        media_store: RecordingMediaStore,
    ) -> ReviewIngestionService:
        return ReviewIngestionService(repository, media_store, max_media_size=1024)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_creates_pending_review(
        self,
        service: ReviewIngestionService,
        repository: InMemoryReviewRepository,
    ) -> None:
        review = await service.submit(
            DEMO_SHOP,
            submission(status="approved", lastName="Lee", email="amy@example.com"),
        )

        assert review.status is ReviewStatus.PENDING
        assert review.shop_domain == DEMO_SHOP
        assert review.product_id == 100
        assert review.rating == 5
        assert review.author_name == "Amy"
        assert review.author_last_name == "Lee"
        assert review.author_email == "amy@example.com"
        assert review.display_name == "Amy L."
        assert repository.writes == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_validation_failure_writes_nothing(
        self,
        service: ReviewIngestionService,
        repository: InMemoryReviewRepository,
        media_store: RecordingMediaStore,
    ) -> None:
        with pytest.raises(InvalidInputError):
            await service.submit(DEMO_SHOP, submission(rating="6", media=upload(b"img")))

        assert repository.writes == 0
        assert media_store.uploads == {}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uploaded_media_url_wins(
        self,
        service: ReviewIngestionService,
        media_store: RecordingMediaStore,
    ) -> None:
        review = await service.submit(
            DEMO_SHOP,
            submission(mediaUrl="https://cdn.example.com/old.png", media=upload(b"img")),
        )

        (key,) = media_store.uploads
        assert key.startswith(f"reviews/{DEMO_SHOP}/100/")
        assert key.endswith(".jpg")
        assert media_store.uploads[key] == (b"img", "image/jpeg")
        assert review.media_url == f"https://media.example.com/review-media/{key}"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_body_media_url_kept_without_file(self, service: ReviewIngestionService) -> None:
        review = await service.submit(
            DEMO_SHOP, submission(media_url="https://cdn.example.com/a.png")
        )

        assert review.media_url == "https://cdn.example.com/a.png"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_file_is_ignored(
        self,
        service: ReviewIngestionService,
        media_store: RecordingMediaStore,
    ) -> None:
        review = await service.submit(DEMO_SHOP, submission(media=upload(b"")))

        assert review.media_url is None
        assert media_store.uploads == {}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_oversized_file_is_rejected_before_upload(
        self,
        service: ReviewIngestionService,
        repository: InMemoryReviewRepository,
        media_store: RecordingMediaStore,
    ) -> None:
        with pytest.raises(InvalidInputError, match="Media file too large"):
            await service.submit(DEMO_SHOP, submission(media=upload(b"x" * 1025)))

        assert media_store.uploads == {}
        assert repository.writes == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_file_at_limit_is_accepted(
        self,
        service: ReviewIngestionService,
        media_store: RecordingMediaStore,
    ) -> None:
        await service.submit(DEMO_SHOP, submission(media=upload(b"x" * 1024)))

        assert len(media_store.uploads) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unconfigured_storage_names_missing_settings(
        self,
        repository: InMemoryReviewRepository,
    ) -> None:
        store = UnconfiguredMediaStore(MediaStoreConfig(bucket="review-media"))
        service = ReviewIngestionService(repository, store)

        with pytest.raises(MediaStorageNotConfiguredError) as exc_info:
            await service.submit(DEMO_SHOP, submission(media=upload(b"img")))

        assert exc_info.value.status_code == 400
        assert exc_info.value.missing == ["S3_ACCESS_KEY", "S3_SECRET_KEY"]
        assert repository.writes == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unconfigured_storage_is_fine_without_media(
        self,
        repository: InMemoryReviewRepository,
    ) -> None:
        service = ReviewIngestionService(repository, UnconfiguredMediaStore(MediaStoreConfig()))

        review = await service.submit(DEMO_SHOP, submission())

        assert review.media_url is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_upload_failure_writes_nothing(
        self,
        repository: InMemoryReviewRepository,
    ) -> None:
        service = ReviewIngestionService(repository, RecordingMediaStore(fail=True))

        with pytest.raises(MediaUploadError):
            await service.submit(DEMO_SHOP, submission(media=upload(b"img")))

        assert repository.writes == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_insert_failure_leaves_uploaded_object(
        self,
        repository: InMemoryReviewRepository,
        media_store: RecordingMediaStore,
    ) -> None:
        repository.create = AsyncMock(side_effect=RuntimeError("connection reset"))
        service = ReviewIngestionService(repository, media_store)

        with pytest.raises(RuntimeError):
            await service.submit(DEMO_SHOP, submission(media=upload(b"img")))

        assert len(media_store.uploads) == 1

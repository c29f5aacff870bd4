"""Review services: storefront ingestion and listing, merchant moderation."""

from typing import Any
from uuid import UUID

from review_engine.config import settings
from review_engine.core.exceptions import (
    InvalidInputError,
    MediaStorageNotConfiguredError,
    NotFoundError,
)
from review_engine.core.logging import get_logger
from review_engine.modules.media.storage import MediaStore, build_media_key, media_extension
from review_engine.modules.reviews.models import (
    TRANSITIONS,
    ModerationIntent,
    Review,
    ReviewStatus,
)
from review_engine.modules.reviews.normalization import (
    ReviewSubmission,
    normalize_submission,
    parse_product_id,
)
from review_engine.modules.reviews.repository import ReviewRepository

logger = get_logger(__name__)


class ReviewIngestionService:
    """Turns storefront submissions into pending reviews."""

    def __init__(
        self,
        repository: ReviewRepository,
        media_store: MediaStore,
        max_media_size: int | None = None,
    ) -> None:
        self.repository = repository
        self.media_store = media_store
        self.max_media_size = max_media_size or settings.media_max_size_bytes

    async def submit(self, shop_domain: str, raw: dict[str, Any]) -> Review:
        """Validate ``raw``, store its media if any, and create the review.

        Nothing is written before every check has passed. If the upload
        succeeds but the insert fails the stored object is left in place.
        """
        submission = normalize_submission(raw)

        media_url = submission.media_url
        if submission.media is not None:
            media_url = await self._store_media(shop_domain, submission) or media_url

        review = await self.repository.create(
            shop_domain=shop_domain,
            product_id=submission.product_id,
            product_handle=submission.product_handle,
            rating=submission.rating,
            title=submission.title,
            body=submission.body,
            author_name=submission.first_name,
            author_last_name=submission.last_name,
            author_email=submission.email,
            media_url=media_url,
        )

        logger.info(
            "review_created",
            review_id=str(review.id),
            shop=shop_domain,
            product_id=submission.product_id,
            rating=submission.rating,
            has_media=media_url is not None,
        )
        return review

    async def _store_media(self, shop_domain: str, submission: ReviewSubmission) -> str | None:
        """Upload the submitted file; None when the file turns out empty."""
        file = submission.media
        max_mb = self.max_media_size / (1024 * 1024)

        if file.size is not None and file.size > self.max_media_size:
            raise InvalidInputError(
                f"Media file too large: {file.size / (1024 * 1024):.1f}MB. "
                f"Maximum size: {max_mb:.0f}MB",
                field="media",
            )

        content = await file.read()
        if not content:
            return None

        # Double-check file size after reading
        if len(content) > self.max_media_size:
            raise InvalidInputError(
                f"Media file too large: {len(content) / (1024 * 1024):.1f}MB. "
                f"Maximum size: {max_mb:.0f}MB",
                field="media",
            )

        if not self.media_store.is_configured:
            raise MediaStorageNotConfiguredError(self.media_store.config.missing())

        key = build_media_key(
            shop_domain,
            submission.product_id,
            media_extension(file.filename, file.content_type),
        )
        return await self.media_store.upload(key, content, file.content_type)


class StorefrontReviewService:
    """Public listing of a shop's reviews."""

    def __init__(self, repository: ReviewRepository) -> None:
        self.repository = repository

    async def list_reviews(
        self,
        shop_domain: str,
        product_id: str | None = None,
        status: str | None = None,
    ) -> list[Review]:
        """Newest reviews of a shop, by default only approved ones.

        An unknown ``status`` falls back to approved.
        """
        pid = None
        if product_id:
            try:
                pid = parse_product_id(product_id)
            except InvalidInputError:
                raise InvalidInputError("Invalid product_id", field="product_id")

        return await self.repository.find_many(
            shop_domain,
            ReviewStatus.coerce(status, default=ReviewStatus.APPROVED),
            product_id=pid,
            limit=settings.storefront_list_limit,
        )


class ModerationService:
    """Merchant moderation over a shop's reviews."""

    def __init__(self, repository: ReviewRepository) -> None:
        self.repository = repository

    async def list_reviews(
        self,
        shop_domain: str,
        status: str | None = None,
    ) -> tuple[ReviewStatus, list[Review]]:
        """Reviews in one moderation tab; unknown status falls back to pending."""
        review_status = ReviewStatus.coerce(status, default=ReviewStatus.PENDING)
        reviews = await self.repository.find_many(
            shop_domain,
            review_status,
            limit=settings.admin_list_limit,
        )
        return review_status, reviews

    async def count_by_status(self, shop_domain: str) -> dict[str, int]:
        counts = await self.repository.count_by_status(shop_domain)
        return {status.value: count for status, count in counts.items()}

    async def _get_owned(self, shop_domain: str, review_id: str) -> Review:
        """Load a review owned by ``shop_domain``.

        Unknown ids, malformed ids and other shops' reviews all raise the
        same NotFoundError.
        """
        try:
            pk = UUID(review_id)
        except ValueError:
            raise NotFoundError("Review")

        review = await self.repository.find_by_id(pk)
        if review is None or review.shop_domain != shop_domain:
            raise NotFoundError("Review")
        return review

    async def apply_intent(
        self,
        shop_domain: str,
        review_id: str | None,
        intent: str | None,
    ) -> ModerationIntent:
        """Apply approve / trash / restore / delete to one review."""
        if not review_id:
            raise InvalidInputError("Missing review id", field="id")

        review = await self._get_owned(shop_domain, review_id)

        try:
            action = ModerationIntent((intent or "").strip().lower())
        except ValueError:
            raise InvalidInputError("Unknown intent", field="intent")

        current = ReviewStatus(review.status)
        if not review.can_apply(action):
            raise InvalidInputError(
                f"Cannot {action.value} a review that is {current.value}",
                field="intent",
            )

        _, target = TRANSITIONS[action]
        if target is None:
            await self.repository.delete(review.id)
            logger.info("review_deleted", review_id=str(review.id), shop=shop_domain)
        else:
            await self.repository.update_status(review.id, target)
            logger.info(
                "review_status_changed",
                review_id=str(review.id),
                shop=shop_domain,
                intent=action.value,
                from_status=current.value,
                to_status=target.value,
            )

        return action

"""Review routes: storefront app proxy (public) and merchant moderation."""

from fastapi import APIRouter, Query, Request

from review_engine.core.dependencies import MediaStoreDep, MerchantShop, ReviewRepo, StorefrontShop
from review_engine.core.exceptions import (
    AppException,
    InternalError,
    MediaUploadError,
    MethodNotAllowedError,
)
from review_engine.core.logging import get_logger
from review_engine.modules.reviews.normalization import read_body
from review_engine.modules.reviews.schemas import (
    AckResponse,
    ModerationListEnvelope,
    PublicReviewResponse,
    ReviewEnvelope,
    ReviewListEnvelope,
    ReviewResponse,
    StatusCountsEnvelope,
)
from review_engine.modules.reviews.service import (
    ModerationService,
    ReviewIngestionService,
    StorefrontReviewService,
)

logger = get_logger(__name__)

PROXY_REVIEWS_PATH = "/apps/{proxy}/reviews"

proxy_router = APIRouter()
admin_router = APIRouter()


# ============================================================================
# Storefront (App Proxy) Routes
# ============================================================================


@proxy_router.get(
    PROXY_REVIEWS_PATH,
    response_model=ReviewListEnvelope,
    summary="List reviews for the storefront",
)
async def list_storefront_reviews(
    proxy: str,
    shop: StorefrontShop,
    repository: ReviewRepo,
    product_id: str | None = Query(default=None),
    product_id_camel: str | None = Query(default=None, alias="productId"),
    review_status: str | None = Query(default=None, alias="status"),
) -> ReviewListEnvelope:
    """Approved reviews by default, optionally for one product."""
    try:
        reviews = await StorefrontReviewService(repository).list_reviews(
            shop,
            product_id=product_id if product_id is not None else product_id_camel,
            status=review_status,
        )
    except AppException:
        raise
    except Exception as e:
        logger.exception("storefront_reviews_load_failed", shop=shop, error=str(e))
        raise InternalError("Failed to load reviews")

    return ReviewListEnvelope(
        reviews=[PublicReviewResponse.model_validate(r) for r in reviews],
    )


@proxy_router.post(
    PROXY_REVIEWS_PATH,
    response_model=ReviewEnvelope,
    summary="Submit a review from the storefront",
)
async def submit_storefront_review(
    proxy: str,
    request: Request,
    shop: StorefrontShop,
    repository: ReviewRepo,
    media_store: MediaStoreDep,
) -> ReviewEnvelope:
    """Accept a JSON, URL-encoded or multipart submission as a pending review."""
    try:
        raw = await read_body(request)
        service = ReviewIngestionService(repository, media_store)
        review = await service.submit(shop, raw)
    except AppException as e:
        if e.status_code >= 500:
            if isinstance(e, MediaUploadError):
                logger.error(
                    "review_submit_failed",
                    shop=shop,
                    error_code=e.error_code,
                    media_key=e.key,
                    reason=e.reason,
                )
            else:
                logger.error("review_submit_failed", shop=shop, error_code=e.error_code)
            raise InternalError("Failed to submit review")
        raise
    except Exception as e:
        logger.exception("review_submit_failed", shop=shop, error=str(e))
        raise InternalError("Failed to submit review")

    return ReviewEnvelope(review=PublicReviewResponse.model_validate(review))


@proxy_router.api_route(
    PROXY_REVIEWS_PATH,
    methods=["PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def storefront_reviews_method_not_allowed(proxy: str) -> None:
    raise MethodNotAllowedError()


# ============================================================================
# Merchant (Moderation) Routes
# ============================================================================


@admin_router.get(
    "/admin/reviews",
    response_model=ModerationListEnvelope,
    summary="List reviews by moderation status",
)
async def list_reviews_admin(
    shop: MerchantShop,
    repository: ReviewRepo,
    review_status: str | None = Query(default=None, alias="status"),
) -> ModerationListEnvelope:
    """Newest reviews in one status tab (pending by default)."""
    status, reviews = await ModerationService(repository).list_reviews(shop, review_status)
    return ModerationListEnvelope(
        status=status,
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
    )


@admin_router.get(
    "/admin/reviews/counts",
    response_model=StatusCountsEnvelope,
    summary="Count reviews per moderation status",
)
async def count_reviews_admin(
    shop: MerchantShop,
    repository: ReviewRepo,
) -> StatusCountsEnvelope:
    counts = await ModerationService(repository).count_by_status(shop)
    return StatusCountsEnvelope(counts=counts)


@admin_router.post(
    "/admin/reviews",
    response_model=AckResponse,
    summary="Approve, trash, restore or delete a review",
)
async def moderate_review(
    request: Request,
    shop: MerchantShop,
    repository: ReviewRepo,
) -> AckResponse:
    """Apply ``intent`` to review ``id`` (form or JSON body)."""
    raw = await read_body(request)
    review_id = raw.get("id")
    intent = raw.get("intent")
    await ModerationService(repository).apply_intent(
        shop,
        str(review_id) if review_id is not None else None,
        str(intent) if intent is not None else None,
    )
    return AckResponse()

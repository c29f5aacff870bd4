"""Review response schemas.

Responses use camelCase keys. ``id`` and ``productId`` are serialized as
strings because product ids exceed the JavaScript safe-integer range.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from review_engine.modules.reviews.models import ReviewStatus


class CamelModel(BaseModel):
    """Base schema emitting camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PublicReviewResponse(CamelModel):
    """A review as shown on the storefront. Carries no contact details."""

    id: str
    shop_domain: str
    product_id: str
    product_handle: str | None = None
    rating: int
    title: str | None = None
    body: str
    author_name: str
    author_last_name: str | None = None
    display_name: str
    media_url: str | None = None
    status: ReviewStatus
    created_at: datetime
    updated_at: datetime

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def stringify_identifier(cls, value: Any) -> str:
        return str(value)


class ReviewResponse(PublicReviewResponse):
    """A review as shown to the merchant."""

    author_email: str | None = None


class ReviewEnvelope(CamelModel):
    """Response for a created review."""

    ok: bool = True
    review: PublicReviewResponse


class ReviewListEnvelope(CamelModel):
    """Response for the storefront listing."""

    ok: bool = True
    reviews: list[PublicReviewResponse]


class ModerationListEnvelope(CamelModel):
    """Response for the merchant moderation queue."""

    ok: bool = True
    status: ReviewStatus
    reviews: list[ReviewResponse]


class StatusCountsEnvelope(CamelModel):
    """Per-status review counts for the merchant's filter tabs."""

    ok: bool = True
    counts: dict[str, int] = Field(default_factory=dict)


class AckResponse(CamelModel):
    """Plain acknowledgement for moderation actions."""

    ok: bool = True

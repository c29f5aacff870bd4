"""Review model and moderation state machine."""

from enum import Enum

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from review_engine.core.base_model import Base, ShopScopedMixin, TimestampMixin, UUIDMixin


class ReviewStatus(str, Enum):
    """Review moderation status."""

    PENDING = "pending"
    APPROVED = "approved"
    TRASHED = "trashed"

    @classmethod
    def coerce(cls, value: str | None, default: "ReviewStatus") -> "ReviewStatus":
        """Map a raw query value to a status, falling back to ``default``.

        Unknown or missing values never raise.
        """
        if value is None:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default


class ModerationIntent(str, Enum):
    """Actions a merchant can apply to a review."""

    APPROVE = "approve"
    TRASH = "trash"
    RESTORE = "restore"
    DELETE = "delete"


# intent -> (states it may be applied from, resulting state)
# DELETE has no resulting state: the row is removed.
TRANSITIONS: dict[ModerationIntent, tuple[frozenset[ReviewStatus], ReviewStatus | None]] = {
    ModerationIntent.APPROVE: (
        frozenset({ReviewStatus.PENDING}),
        ReviewStatus.APPROVED,
    ),
    ModerationIntent.TRASH: (
        frozenset({ReviewStatus.PENDING, ReviewStatus.APPROVED}),
        ReviewStatus.TRASHED,
    ),
    ModerationIntent.RESTORE: (
        frozenset({ReviewStatus.TRASHED}),
        ReviewStatus.PENDING,
    ),
    ModerationIntent.DELETE: (
        frozenset(ReviewStatus),
        None,
    ),
}


class Review(Base, UUIDMixin, TimestampMixin, ShopScopedMixin):
    """Customer product review.

    Created pending by the storefront submission endpoint, then moved
    through approve / trash / restore by the merchant, or deleted.
    """

    __tablename__ = "reviews"

    # Subject
    product_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    product_handle: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Content
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # Author
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    media_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    status: Mapped[ReviewStatus] = mapped_column(
        SAEnum(
            ReviewStatus,
            name="review_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=ReviewStatus.PENDING,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_reviews_shop_status_created", "shop_domain", "status", "created_at"),
        Index("ix_reviews_shop_product", "shop_domain", "product_id"),
        CheckConstraint(
            "rating >= 1 AND rating <= 5",
            name="ck_reviews_rating_range",
        ),
        CheckConstraint(
            "char_length(body) > 0",
            name="ck_reviews_body_not_empty",
        ),
        CheckConstraint(
            "char_length(author_name) > 0",
            name="ck_reviews_author_name_not_empty",
        ),
    )

    @property
    def display_name(self) -> str:
        """Author name as shown publicly: "Jane D." or just "Jane"."""
        if self.author_last_name:
            return f"{self.author_name} {self.author_last_name[0]}."
        return self.author_name

    def can_apply(self, intent: ModerationIntent) -> bool:
        allowed_from, _ = TRANSITIONS[intent]
        return ReviewStatus(self.status) in allowed_from

    def __repr__(self) -> str:
        return f"<Review {self.id} shop={self.shop_domain} status={self.status} rating={self.rating}>"

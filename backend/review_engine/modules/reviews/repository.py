"""Review persistence boundary."""

from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from review_engine.core.database import transactional
from review_engine.modules.reviews.models import Review, ReviewStatus


class ReviewRepository:
    """Data access for reviews.

    Every listing query takes ``shop_domain`` as a required argument; there
    is no unscoped listing.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, review_id: UUID) -> Review | None:
        """Get a review by primary key, regardless of shop."""
        stmt = select(Review).where(Review.id == review_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_many(
        self,
        shop_domain: str,
        status: ReviewStatus,
        product_id: int | None = None,
        limit: int = 100,
        newest_first: bool = True,
    ) -> list[Review]:
        """List a shop's reviews with the given status."""
        stmt = (
            select(Review)
            .where(Review.shop_domain == shop_domain)
            .where(Review.status == status)
        )

        if product_id is not None:
            stmt = stmt.where(Review.product_id == product_id)

        order = Review.created_at.desc() if newest_first else Review.created_at.asc()
        stmt = stmt.order_by(order).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_by_status(self, shop_domain: str) -> dict[ReviewStatus, int]:
        """Count a shop's reviews per status (missing statuses count 0)."""
        stmt = (
            select(Review.status, func.count())
            .where(Review.shop_domain == shop_domain)
            .group_by(Review.status)
        )
        result = await self.db.execute(stmt)
        counts = {status: 0 for status in ReviewStatus}
        for status, count in result.all():
            counts[ReviewStatus(status)] = count
        return counts

    @transactional
    async def create(self, **fields: Any) -> Review:
        """Insert a review. Status is always pending on creation."""
        fields["status"] = ReviewStatus.PENDING
        review = Review(**fields)
        self.db.add(review)
        await self.db.flush()
        await self.db.refresh(review)
        return review

    @transactional
    async def update_status(self, review_id: UUID, status: ReviewStatus) -> None:
        """Set a review's status; bumps updated_at."""
        stmt = (
            update(Review)
            .where(Review.id == review_id)
            .values(status=status, updated_at=func.now())
        )
        await self.db.execute(stmt)

    @transactional
    async def delete(self, review_id: UUID) -> None:
        """Permanently remove a review."""
        await self.db.execute(delete(Review).where(Review.id == review_id))

    async def touch(self) -> None:
        """Cheapest possible read, used by the liveness probe."""
        await self.db.execute(select(Review.id).limit(1))

"""Common FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from review_engine.config import settings
from review_engine.core.database import get_db
from review_engine.core.security import get_current_shop
from review_engine.core.tenant import require_shop
from review_engine.modules.media.storage import MediaStore, MediaStoreConfig, build_media_store
from review_engine.modules.reviews.repository import ReviewRepository

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_review_repository(db: DBSession) -> ReviewRepository:
    """Repository bound to the request's session."""
    return ReviewRepository(db)


ReviewRepo = Annotated[ReviewRepository, Depends(get_review_repository)]


@lru_cache
def get_media_store() -> MediaStore:
    """Media store built once from settings."""
    return build_media_store(MediaStoreConfig.from_settings(settings))


MediaStoreDep = Annotated[MediaStore, Depends(get_media_store)]

# Shop resolved from the app proxy request (public, unauthenticated)
StorefrontShop = Annotated[str, Depends(require_shop)]

# Shop of the authenticated merchant (session token)
MerchantShop = Annotated[str, Depends(get_current_shop)]

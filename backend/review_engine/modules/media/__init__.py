"""Media module - object storage for review attachments."""

from review_engine.modules.media.storage import (
    MediaStore,
    MediaStoreConfig,
    S3MediaStore,
    UnconfiguredMediaStore,
    build_media_store,
)

__all__ = [
    "MediaStore",
    "MediaStoreConfig",
    "S3MediaStore",
    "UnconfiguredMediaStore",
    "build_media_store",
]

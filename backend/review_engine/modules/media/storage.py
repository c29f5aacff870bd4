"""Object storage for review media.

The adapter is built once from an explicit :class:`MediaStoreConfig`. When
bucket credentials are missing it is an :class:`UnconfiguredMediaStore`,
which reports what is missing instead of holding a half-built client.
"""

import re
import uuid
from dataclasses import dataclass

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from review_engine.config import Settings
from review_engine.core.exceptions import MediaStorageNotConfiguredError, MediaUploadError
from review_engine.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_EXTENSION = "bin"

# Fallback when the upload has no usable filename suffix
EXTENSION_MAP: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
}

_EXTENSION_RE = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class MediaStoreConfig:
    """Connection settings for the media bucket."""

    bucket: str = ""
    access_key: str = ""
    secret_key: str = ""
    region: str = "us-east-1"
    endpoint_url: str = ""
    public_base_url: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStoreConfig":
        return cls(
            bucket=settings.s3_bucket_name,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_base_url=settings.s3_public_url,
        )

    def missing(self) -> list[str]:
        """Names of the environment variables that still need a value."""
        required = {
            "S3_BUCKET_NAME": self.bucket,
            "S3_ACCESS_KEY": self.access_key,
            "S3_SECRET_KEY": self.secret_key,
        }
        return [name for name, value in required.items() if not value]


def media_extension(filename: str | None, content_type: str | None = None) -> str:
    """Lowercase alphanumeric extension for an uploaded file.

    Taken from the filename suffix, then from the MIME type, else ``bin``.
    """
    if filename and "." in filename:
        suffix = _EXTENSION_RE.sub("", filename.rsplit(".", 1)[-1].lower())
        if suffix:
            return suffix
    if content_type:
        mapped = EXTENSION_MAP.get(content_type.split(";")[0].strip().lower())
        if mapped:
            return mapped
    return DEFAULT_EXTENSION


def build_media_key(shop_domain: str, product_id: int, extension: str) -> str:
    """Object key: ``reviews/{shop}/{product_id}/{random}.{ext}``."""
    return f"reviews/{shop_domain}/{product_id}/{uuid.uuid4().hex}.{extension}"


class UnconfiguredMediaStore:
    """Media store used when bucket credentials are absent."""

    is_configured = False

    def __init__(self, config: MediaStoreConfig) -> None:
        self.config = config

    async def upload(self, key: str, content: bytes, content_type: str | None = None) -> str:
        raise MediaStorageNotConfiguredError(self.config.missing())


class S3MediaStore:
    """Media store backed by an S3-compatible bucket."""

    is_configured = True

    def __init__(self, config: MediaStoreConfig, client=None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self):
        """Get or create the S3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self.config.endpoint_url or None,
                aws_access_key_id=self.config.access_key,
                aws_secret_access_key=self.config.secret_key,
                region_name=self.config.region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    def public_url(self, key: str) -> str:
        """Public URL for an object key."""
        base = self.config.public_base_url or self.config.endpoint_url
        if base:
            return f"{base.rstrip('/')}/{self.config.bucket}/{key}"
        return f"https://{self.config.bucket}.s3.{self.config.region}.amazonaws.com/{key}"

    def _put_object(self, key: str, content: bytes, content_type: str) -> None:
        self.client.put_object(
            Bucket=self.config.bucket,
            Key=key,
            Body=content,
            ContentType=content_type,
            # Never replace an existing object
            IfNoneMatch="*",
        )

    async def upload(self, key: str, content: bytes, content_type: str | None = None) -> str:
        """Upload ``content`` under ``key`` and return its public URL.

        Raises:
            MediaUploadError: If the key already exists or the bucket
                rejects the request.
        """
        content_type = content_type or "application/octet-stream"
        try:
            await run_in_threadpool(self._put_object, key, content, content_type)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            logger.error(
                "media_upload_rejected",
                key=key,
                error_code=code,
                error=str(e),
            )
            if code in ("PreconditionFailed", "412"):
                raise MediaUploadError(key, "object already exists")
            raise MediaUploadError(key, code or "client error")
        except BotoCoreError as e:
            logger.error("media_upload_failed", key=key, error=str(e))
            raise MediaUploadError(key, str(e))

        logger.info("media_uploaded", key=key, size=len(content), content_type=content_type)
        return self.public_url(key)


MediaStore = S3MediaStore | UnconfiguredMediaStore


def build_media_store(config: MediaStoreConfig) -> MediaStore:
    """Choose the configured or unconfigured variant for ``config``."""
    if config.missing():
        return UnconfiguredMediaStore(config)
    return S3MediaStore(config)

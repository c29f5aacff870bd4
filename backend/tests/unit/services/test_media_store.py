"""Unit tests for the media store adapter."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from review_engine.core.exceptions import MediaStorageNotConfiguredError, MediaUploadError
from review_engine.modules.media.storage import (
    MediaStoreConfig,
    S3MediaStore,
    UnconfiguredMediaStore,
    build_media_key,
    build_media_store,
    media_extension,
)

CONFIG = MediaStoreConfig(
    bucket="review-media",
    access_key="key",
    secret_key="secret",
    region="eu-west-1",
)


@pytest.mark.unit
class TestMediaExtension:
    @pytest.mark.parametrize(
        ("filename", "content_type", "expected"),
        [
            ("photo.JPG", "image/jpeg", "jpg"),
            ("clip.mov", None, "mov"),
            ("archive.tar.gz", None, "gz"),
            ("no-suffix", "image/png", "png"),
            ("weird.p!n@g", None, "png"),
            ("", "video/mp4; codecs=avc1", "mp4"),
            (None, None, "bin"),
            ("file", "application/x-unknown", "bin"),
        ],
    )
    def test_extension(self, filename, content_type, expected) -> None:
        assert media_extension(filename, content_type) == expected


@pytest.mark.unit
def test_build_media_key_is_unique_per_call() -> None:
    first = build_media_key("demo.myshopify.com", 100, "jpg")
    second = build_media_key("demo.myshopify.com", 100, "jpg")

    assert first.startswith("reviews/demo.myshopify.com/100/")
    assert first.endswith(".jpg")
    assert first != second


@pytest.mark.unit
class TestBuildMediaStore:
    def test_configured(self) -> None:
        store = build_media_store(CONFIG)

        assert isinstance(store, S3MediaStore)
        assert store.is_configured

    def test_unconfigured_reports_missing(self) -> None:
        store = build_media_store(MediaStoreConfig(access_key="key"))

        assert isinstance(store, UnconfiguredMediaStore)
        assert not store.is_configured
        assert store.config.missing() == ["S3_BUCKET_NAME", "S3_SECRET_KEY"]

    @pytest.mark.asyncio
    async def test_unconfigured_upload_raises(self) -> None:
        store = UnconfiguredMediaStore(MediaStoreConfig())

        with pytest.raises(MediaStorageNotConfiguredError) as exc_info:
            await store.upload("reviews/x/1/a.jpg", b"img")

        assert "S3_BUCKET_NAME, S3_ACCESS_KEY, S3_SECRET_KEY" in exc_info.value.message


@pytest.mark.unit
class TestS3MediaStore:
    """S3MediaStore with a mocked boto3 client."""

    @pytest.fixture
    def mock_client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def store(self, mock_client: MagicMock) -> S3MediaStore:
        return S3MediaStore(CONFIG, client=mock_client)

    @pytest.mark.asyncio
    async def test_upload_puts_object_without_overwrite(
        self,
        store: S3MediaStore,
        mock_client: MagicMock,
    ) -> None:
        url = await store.upload("reviews/demo/1/a.jpg", b"img", "image/jpeg")

        mock_client.put_object.assert_called_once_with(
            Bucket="review-media",
            Key="reviews/demo/1/a.jpg",
            Body=b"img",
            ContentType="image/jpeg",
            IfNoneMatch="*",
        )
        assert url == "https://review-media.s3.eu-west-1.amazonaws.com/reviews/demo/1/a.jpg"

    @pytest.mark.asyncio
    async def test_default_content_type(
        self,
        store: S3MediaStore,
        mock_client: MagicMock,
    ) -> None:
        await store.upload("reviews/demo/1/a.bin", b"data")

        assert mock_client.put_object.call_args.kwargs["ContentType"] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_existing_key_is_not_overwritten(
        self,
        store: S3MediaStore,
        mock_client: MagicMock,
    ) -> None:
        mock_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "PreconditionFailed", "Message": "At least one precondition failed"}},
            "PutObject",
        )

        with pytest.raises(MediaUploadError) as exc_info:
            await store.upload("reviews/demo/1/a.jpg", b"img")

        assert exc_info.value.reason == "object already exists"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_client_error(self, store: S3MediaStore, mock_client: MagicMock) -> None:
        mock_client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
            "PutObject",
        )

        with pytest.raises(MediaUploadError) as exc_info:
            await store.upload("reviews/demo/1/a.jpg", b"img")

        assert exc_info.value.reason == "AccessDenied"

    @pytest.mark.asyncio
    async def test_connection_error(self, store: S3MediaStore, mock_client: MagicMock) -> None:
        mock_client.put_object.side_effect = EndpointConnectionError(
            endpoint_url="http://localhost:9000"
        )

        with pytest.raises(MediaUploadError):
            await store.upload("reviews/demo/1/a.jpg", b"img")

    def test_public_url_with_custom_base(self, mock_client: MagicMock) -> None:
        config = MediaStoreConfig(
            bucket="review-media",
            access_key="key",
            secret_key="secret",
            endpoint_url="http://localhost:9000",
            public_base_url="https://media.example.com/",
        )
        store = S3MediaStore(config, client=mock_client)

        assert store.public_url("a/b.jpg") == "https://media.example.com/review-media/a/b.jpg"

    def test_public_url_falls_back_to_endpoint(self, mock_client: MagicMock) -> None:
        config = MediaStoreConfig(
            bucket="review-media",
            access_key="key",
            secret_key="secret",
            endpoint_url="http://localhost:9000",
        )
        store = S3MediaStore(config, client=mock_client)

        assert store.public_url("a/b.jpg") == "http://localhost:9000/review-media/a/b.jpg"

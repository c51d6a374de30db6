"""Document validation, key layout and ownership checks."""

from datetime import datetime, timezone
import io
from unittest.mock import Mock

from PIL import Image
import pytest

from drivebook.core.config import Settings
from drivebook.core.enums import DocumentKind
from drivebook.core.exceptions import (
    ForbiddenException,
    PayloadTooLargeException,
    ServiceException,
    UnsupportedMediaException,
    ValidationException,
)
from drivebook.services.document_storage_service import (
    DocumentStorageService,
    build_storage_client,
    detect_image_format,
)
from drivebook.services.r2_storage_client import R2StorageClient
from drivebook.services.storage_null_client import NullStorageClient

OWNER = "01HZZZZZZZZZZZZZZZZZZZZZZZ"


def _image_bytes(fmt: str, size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def config():
    return Settings(
        storage_public_base_url="https://files.example.com/",
        max_upload_bytes=64 * 1024,
    )


@pytest.fixture
def storage():
    return NullStorageClient()


@pytest.fixture
def service(storage, config):
    return DocumentStorageService(storage=storage, config=config)


class TestDetectImageFormat:
    @pytest.mark.parametrize("fmt", ["JPEG", "PNG", "WEBP"])
    def test_accepts_supported_formats(self, fmt):
        assert detect_image_format(_image_bytes(fmt)) == fmt

    def test_rejects_gif(self):
        with pytest.raises(UnsupportedMediaException) as exc_info:
            detect_image_format(_image_bytes("GIF"))
        assert exc_info.value.details["detected"] == "GIF"

    def test_rejects_non_image(self):
        with pytest.raises(UnsupportedMediaException):
            detect_image_format(b"%PDF-1.7 not an image")


class TestStore:
    def test_stores_png_under_owner_prefix(self, service, storage):
        data = _image_bytes("PNG")
        stored = service.store(data, OWNER, DocumentKind.LICENSE_PHOTO)

        assert stored.key.startswith(f"{OWNER}/license_photo_")
        assert stored.key.endswith(".png")
        assert stored.url == f"https://files.example.com/{stored.key}"
        assert stored.content_type == "image/png"
        assert stored.size_bytes == len(data)
        assert storage.objects[stored.key] == (data, "image/png")

    def test_extension_follows_content_not_name(self, service):
        stored = service.store(_image_bytes("JPEG"), OWNER, DocumentKind.AVATAR)
        assert stored.key.endswith(".jpg")
        assert stored.content_type == "image/jpeg"

    def test_empty_upload(self, service):
        with pytest.raises(ValidationException) as exc_info:
            service.store(b"", OWNER, DocumentKind.AVATAR)
        assert exc_info.value.code == "EMPTY_UPLOAD"

    def test_too_large_is_rejected_before_decoding(self, service, config):
        with pytest.raises(PayloadTooLargeException) as exc_info:
            service.store(b"x" * (config.max_upload_bytes + 1), OWNER, DocumentKind.AVATAR)
        assert exc_info.value.status_code == 413
        assert exc_info.value.details["limit"] == config.max_upload_bytes

    def test_unsupported_type(self, service):
        with pytest.raises(UnsupportedMediaException) as exc_info:
            service.store(b"plain text", OWNER, DocumentKind.AVATAR)
        assert exc_info.value.status_code == 415

    def test_storage_failure_raises_service_exception(self, config):
        failing = Mock(backend_name="r2")
        failing.upload_bytes.return_value = (False, 503)
        service = DocumentStorageService(storage=failing, config=config)

        with pytest.raises(ServiceException) as exc_info:
            service.store(_image_bytes("PNG"), OWNER, DocumentKind.CREDENTIAL_PHOTO)
        assert exc_info.value.code == "STORAGE_UNAVAILABLE"
        assert exc_info.value.details == {"status": 503}


class TestBuildKey:
    def test_layout_uses_millisecond_timestamp(self, service):
        now = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        key = service.build_key(OWNER, DocumentKind.CREDENTIAL_PHOTO, "webp", now=now)
        assert key == f"{OWNER}/credential_photo_{int(now.timestamp() * 1000)}.webp"


class TestDelete:
    def test_deletes_own_document(self, service, storage):
        stored = service.store(_image_bytes("PNG"), OWNER, DocumentKind.AVATAR)
        service.delete(stored.key, OWNER)
        assert stored.key not in storage.objects

    @pytest.mark.parametrize(
        "key",
        [
            "01HYYYYYYYYYYYYYYYYYYYYYYY/avatar_1.png",
            f"{OWNER}/../01HYYYYYYYYYYYYYYYYYYYYYYY/avatar_1.png",
            "avatar_1.png",
        ],
    )
    def test_refuses_foreign_keys(self, service, key):
        with pytest.raises(ForbiddenException) as exc_info:
            service.delete(key, OWNER)
        assert exc_info.value.code == "NOT_DOCUMENT_OWNER"

    def test_storage_failure(self, config):
        failing = Mock(backend_name="r2")
        failing.delete_object.return_value = False
        service = DocumentStorageService(storage=failing, config=config)
        with pytest.raises(ServiceException):
            service.delete(f"{OWNER}/avatar_1.png", OWNER)


class TestBuildStorageClient:
    def test_null_client_without_r2_settings(self):
        assert isinstance(build_storage_client(Settings(r2_account_id="")), NullStorageClient)

    def test_r2_client_when_configured(self):
        config = Settings(
            r2_account_id="acct",
            r2_access_key_id="key",
            r2_secret_access_key="secret",
            r2_bucket_name="docs",
        )
        client = build_storage_client(config)
        assert isinstance(client, R2StorageClient)
        assert client.host == "acct.r2.cloudflarestorage.com"

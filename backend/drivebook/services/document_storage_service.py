"""
DocumentStorageService

Validates identity/vehicle photos and avatars and writes them to the
configured object store:
- Size limit checked before decoding
- Format detected from content with Pillow (the filename is never trusted)
- Keys laid out as ``<owner_id>/<kind>_<timestamp>.<ext>``
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import io
import logging
from typing import Optional, Protocol, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.config import Settings, settings
from ..core.constants import ALLOWED_IMAGE_FORMATS, IMAGE_CONTENT_TYPES
from ..core.enums import DocumentKind
from ..core.exceptions import (
    ForbiddenException,
    PayloadTooLargeException,
    ServiceException,
    UnsupportedMediaException,
    ValidationException,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from .r2_storage_client import R2StorageClient
from .storage_null_client import NullStorageClient

logger = logging.getLogger(__name__)


class StorageClient(Protocol):
    backend_name: str

    def upload_bytes(
        self, object_key: str, data: bytes, content_type: str
    ) -> Tuple[bool, Optional[int]]:
        ...

    def delete_object(self, object_key: str) -> bool:
        ...


@dataclass(frozen=True)
class StoredDocument:
    url: str
    key: str
    kind: DocumentKind
    content_type: str
    size_bytes: int


def build_storage_client(config: Optional[Settings] = None) -> StorageClient:
    """R2 when configured, otherwise the in-memory null client."""
    config = config or settings
    if config.r2_enabled:
        return R2StorageClient.from_settings(config)
    logger.info("R2 is not configured; documents are kept in memory only")
    return NullStorageClient()


def detect_image_format(data: bytes) -> str:
    """
    Return the Pillow format name of ``data`` if it is an accepted image.

    Raises:
        UnsupportedMediaException: For anything that is not JPEG, PNG or WEBP
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        raise UnsupportedMediaException()
    if detected not in ALLOWED_IMAGE_FORMATS:
        raise UnsupportedMediaException(detected=detected)
    return detected


class DocumentStorageService:
    """Stateless apart from its storage client; safe to share across requests."""

    def __init__(
        self,
        storage: Optional[StorageClient] = None,
        config: Optional[Settings] = None,
    ) -> None:
        self.config = config or settings
        self.storage = storage if storage is not None else build_storage_client(self.config)

    def build_key(
        self, owner_id: str, kind: DocumentKind, ext: str, now: Optional[datetime] = None
    ) -> str:
        now = now or datetime.now(timezone.utc)
        timestamp_ms = int(now.timestamp() * 1000)
        return f"{owner_id}/{kind.value}_{timestamp_ms}.{ext}"

    def public_url(self, key: str) -> str:
        return f"{self.config.storage_public_base_url}/{key}"

    def store(self, file_bytes: bytes, owner_id: str, kind: DocumentKind) -> StoredDocument:
        """
        Validate and upload a document.

        Raises:
            ValidationException: Empty upload
            PayloadTooLargeException: Over ``max_upload_bytes``
            UnsupportedMediaException: Not JPEG/PNG/WEBP
            ServiceException: The object store rejected the write
        """
        size = len(file_bytes)
        if size == 0:
            raise ValidationException("Uploaded file is empty", code="EMPTY_UPLOAD")
        if size > self.config.max_upload_bytes:
            raise PayloadTooLargeException(size=size, limit=self.config.max_upload_bytes)

        image_format = detect_image_format(file_bytes)
        content_type = IMAGE_CONTENT_TYPES[image_format]
        key = self.build_key(owner_id, kind, ALLOWED_IMAGE_FORMATS[image_format])

        ok, status_code = self.storage.upload_bytes(key, file_bytes, content_type)
        if not ok:
            logger.error("Document upload failed for %s (status=%s)", key, status_code)
            raise ServiceException(
                "Could not store the document, please try again",
                code="STORAGE_UNAVAILABLE",
                details={"status": status_code},
            )

        prometheus_metrics.inc_document_stored(kind.value, self.storage.backend_name)
        logger.info("Stored %s for %s as %s (%d bytes)", kind.value, owner_id, key, size)
        return StoredDocument(
            url=self.public_url(key),
            key=key,
            kind=kind,
            content_type=content_type,
            size_bytes=size,
        )

    def delete(self, key: str, owner_id: str) -> None:
        """
        Remove one of the owner's stored documents.

        Raises:
            ForbiddenException: The key is outside the owner's prefix
            ServiceException: The object store rejected the delete
        """
        if ".." in key or not key.startswith(f"{owner_id}/"):
            raise ForbiddenException("You can only delete your own documents", code="NOT_DOCUMENT_OWNER")
        if not self.storage.delete_object(key):
            raise ServiceException(
                "Could not delete the document, please try again", code="STORAGE_UNAVAILABLE"
            )
        logger.info("Deleted document %s for %s", key, owner_id)

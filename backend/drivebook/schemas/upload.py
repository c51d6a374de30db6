"""Document upload schemas."""

from ..core.enums import DocumentKind
from .base import ResponseModel


class StoredDocumentResponse(ResponseModel):
    url: str
    key: str
    kind: DocumentKind
    content_type: str
    size_bytes: int

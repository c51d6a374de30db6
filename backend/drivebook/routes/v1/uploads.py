# backend/drivebook/routes/v1/uploads.py
"""Document uploads (license photo, credential photo, avatar) and deletion."""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.params import File, Form

from ...api.dependencies import get_current_caller, get_document_storage_service
from ...core.enums import DocumentKind
from ...core.exceptions import DomainException
from ...principal import CallerContext
from ...schemas.upload import StoredDocumentResponse
from ...services.document_storage_service import DocumentStorageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    raise exc.to_http_exception()


@router.post(
    "/documents",
    response_model=StoredDocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Empty file"},
        413: {"description": "File exceeds the size limit"},
        415: {"description": "Not a JPEG, PNG or WEBP image"},
    },
)
async def upload_document(
    file: UploadFile = File(...),
    kind: DocumentKind = Form(..., description="license_photo, credential_photo or avatar"),
    caller: CallerContext = Depends(get_current_caller),
    storage_service: DocumentStorageService = Depends(get_document_storage_service),
) -> StoredDocumentResponse:
    """
    Store an image and return its public URL.

    The returned URL is then saved on the profile or instructor record by the
    client through the regular update endpoints.
    """
    # One byte past the limit is enough to reject the upload
    data = await file.read(storage_service.config.max_upload_bytes + 1)
    await file.close()

    try:
        stored = await run_in_threadpool(storage_service.store, data, caller.id, kind)
    except DomainException as e:
        handle_domain_exception(e)

    return StoredDocumentResponse(
        url=stored.url,
        key=stored.key,
        kind=stored.kind,
        content_type=stored.content_type,
        size_bytes=stored.size_bytes,
    )


@router.delete(
    "/documents/{key:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={403: {"description": "Document belongs to someone else"}},
)
def delete_document(
    key: str,
    caller: CallerContext = Depends(get_current_caller),
    storage_service: DocumentStorageService = Depends(get_document_storage_service),
) -> Response:
    """Delete a previously uploaded document by its key."""
    try:
        storage_service.delete(key, caller.id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Documents Router

Endpoints:
- POST /documents - Upload a document (multipart), returns its stored path
- GET /documents/url - Signed URL for a stored path
- DELETE /documents - Remove one of the caller's uploads

Uploads are always stored under the caller's user id. Staff roles may
resolve any path (they review other people's records); everyone else only
their own.
"""

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from coop_portal.core.auth import CurrentUser, get_current_user
from coop_portal.core.config import settings
from coop_portal.core.permissions import Role
from coop_portal.core.rate_limit import RATE_LIMIT_UPLOAD, enforce_user_rate_limit
from coop_portal.core.storage import StorageService, get_storage
from coop_portal.modules.documents import service
from coop_portal.modules.documents.schemas import SignedUrlResponse, UploadResponse
from coop_portal.modules.documents.service import DocumentCategory
from coop_portal.modules.shared.errors import (
    PermissionDeniedError,
    ServiceError,
    raise_http_error,
    raise_internal_error,
)

logger = logging.getLogger(__name__)

router = APIRouter()

STAFF_ROLES = frozenset({Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER, Role.AUDITOR})


def _check_path_access(user: CurrentUser, path: str) -> None:
    if user.role in STAFF_ROLES or service.is_owned_by(path, user.id):
        return
    logger.warning(f"User {user.id} denied access to document {path}")
    raise PermissionDeniedError("You do not have access to this document.")


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
)
async def upload_document(
    file: UploadFile = File(...),
    category: DocumentCategory = Form(...),
    user: CurrentUser = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
) -> UploadResponse:
    await enforce_user_rate_limit(user, "upload", RATE_LIMIT_UPLOAD)

    try:
        # Read one byte past the limit so oversized files are detected without buffering them whole
        data = await file.read(settings.max_upload_bytes + 1)
        size = file.size or len(data)

        error = service.validate_file(size, file.content_type)
        if error is not None:
            raise error

        uploaded = await service.upload(
            storage,
            data,
            content_type=file.content_type,
            filename=file.filename,
            owner_id=user.id,
            category=category,
        )
        return UploadResponse(path=uploaded.path, url=uploaded.url)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "uploading document")


@router.get("/url", response_model=SignedUrlResponse, summary="Resolve Document URL")
async def resolve_document(
    path: str = Query(..., min_length=3, max_length=500),
    user: CurrentUser = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
) -> SignedUrlResponse:
    try:
        _check_path_access(user, path)
        url = await service.resolve(storage, path)
        return SignedUrlResponse(path=path, url=url, expires_in=settings.signed_url_ttl_seconds)
    except ServiceError as e:
        raise_http_error(e)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Document")
async def delete_document(
    path: str = Query(..., min_length=3, max_length=500),
    user: CurrentUser = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
) -> None:
    try:
        if not service.is_owned_by(path, user.id):
            raise PermissionDeniedError("You can only delete your own uploads.")
        await service.delete(storage, path)
    except ServiceError as e:
        raise_http_error(e)

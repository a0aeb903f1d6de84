"""
Document Register Router

Endpoints:
- POST /documents/register - Register a document (multipart)
- GET /documents/register - List registered documents in scope
- GET /documents/register/statistics - Counts by status, type, sector, county, cooperative
- GET /documents/register/{id} - Details
- PATCH /documents/register/{id} - Update metadata
- POST /documents/register/{id}/archive - Archive
- DELETE /documents/register/{id} - Soft delete
- GET /documents/register/{id}/url - Signed download URL (logged)
- GET /documents/register/{id}/access-log - Who did what
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.config import settings
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_manage_documents
from coop_portal.core.rate_limit import RATE_LIMIT_UPLOAD, enforce_user_rate_limit
from coop_portal.core.storage import StorageService, get_storage
from coop_portal.modules.documents import register
from coop_portal.modules.documents.models import DocumentStatus
from coop_portal.modules.documents.schemas import (
    DocumentAccessLogResponse,
    DocumentListResponse,
    DocumentRegisterRequest,
    DocumentResponse,
    DocumentStatisticsResponse,
    DocumentUpdate,
    DocumentUrlResponse,
)
from coop_portal.modules.shared.errors import (
    ServiceError,
    ValidationFailedError,
    raise_http_error,
    raise_internal_error,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_manager = require_capability(can_manage_documents)


def _split_tags(tags: str | None) -> list[str]:
    return [tag.strip() for tag in (tags or "").split(",") if tag.strip()]


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Document",
)
async def register_document(
    file: UploadFile = File(...),
    title: str = Form(...),
    document_type: str = Form(...),
    description: str | None = Form(None),
    sectoral_category: str | None = Form(None),
    tenant_id: UUID | None = Form(None),
    cooperative_id: UUID | None = Form(None),
    tags: str | None = Form(None, description="Comma separated"),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
    storage: StorageService = Depends(get_storage),
) -> DocumentResponse:
    await enforce_user_rate_limit(user, "upload", RATE_LIMIT_UPLOAD)

    try:
        try:
            details = DocumentRegisterRequest(
                title=title,
                description=description,
                document_type=document_type,
                sectoral_category=sectoral_category,
                tenant_id=tenant_id,
                cooperative_id=cooperative_id,
                tags=_split_tags(tags),
            )
        except ValidationError as e:
            raise ValidationFailedError(
                {".".join(str(p) for p in err["loc"]): err["msg"] for err in e.errors()}
            ) from e

        # One byte past the limit is enough to detect oversized files
        data = await file.read(settings.max_upload_bytes + 1)
        document = await register.register_document(
            db,
            storage,
            data,
            content_type=file.content_type,
            filename=file.filename,
            details=details,
            user=user,
        )
        return DocumentResponse.model_validate(document)
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "registering document")


@router.get("", response_model=DocumentListResponse, summary="List Registered Documents")
async def list_documents(
    status_filter: DocumentStatus | None = Query(None, alias="status"),
    document_type: str | None = Query(None, max_length=50),
    sectoral_category: str | None = Query(None, max_length=50),
    tenant_id: UUID | None = Query(None),
    cooperative_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentListResponse:
    try:
        result = await register.list_documents(
            db,
            user,
            status=status_filter,
            document_type=document_type,
            sectoral_category=sectoral_category,
            tenant_id=tenant_id,
            cooperative_id=cooperative_id,
            search=search,
            page=page,
            page_size=page_size,
        )
        return DocumentListResponse(
            items=[DocumentResponse.model_validate(d) for d in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing documents")


@router.get(
    "/statistics", response_model=DocumentStatisticsResponse, summary="Document Statistics"
)
async def document_statistics(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentStatisticsResponse:
    try:
        return DocumentStatisticsResponse(**await register.get_statistics(db, user))
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{document_id}", response_model=DocumentResponse, summary="Get Document")
async def get_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> DocumentResponse:
    try:
        return DocumentResponse.model_validate(await register.get_document(db, document_id, user))
    except ServiceError as e:
        raise_http_error(e)


@router.patch("/{document_id}", response_model=DocumentResponse, summary="Update Document")
async def update_document(
    document_id: UUID,
    body: DocumentUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
) -> DocumentResponse:
    try:
        return DocumentResponse.model_validate(
            await register.update_document(db, document_id, body, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{document_id}/archive", response_model=DocumentResponse, summary="Archive Document"
)
async def archive_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
) -> DocumentResponse:
    try:
        return DocumentResponse.model_validate(
            await register.archive_document(db, document_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.delete(
    "/{document_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Document"
)
async def delete_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
) -> None:
    try:
        await register.delete_document(db, document_id, user)
    except ServiceError as e:
        raise_http_error(e)


@router.get("/{document_id}/url", response_model=DocumentUrlResponse, summary="Document URL")
async def document_url(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    storage: StorageService = Depends(get_storage),
) -> DocumentUrlResponse:
    try:
        document, url = await register.document_url(db, storage, document_id, user)
        return DocumentUrlResponse(
            document_id=document.id, url=url, expires_in=settings.signed_url_ttl_seconds
        )
    except ServiceError as e:
        raise_http_error(e)


@router.get(
    "/{document_id}/access-log",
    response_model=list[DocumentAccessLogResponse],
    summary="Document Access Log",
)
async def document_access_log(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_manager),
) -> list[DocumentAccessLogResponse]:
    try:
        entries = await register.access_log(db, document_id, user)
        return [DocumentAccessLogResponse.model_validate(entry) for entry in entries]
    except ServiceError as e:
        raise_http_error(e)

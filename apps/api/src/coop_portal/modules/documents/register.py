"""
Document Register Service

Numbered documents filed against a county, optionally narrowed to one
cooperative. Every upload, change, archive, delete and link request is
written to ``document_access_logs`` in the same transaction as the action.

Placement rules:
- Cooperative admins file against their own cooperative only.
- County staff file within their county.
- Super admins may file anywhere but must name the county (or a cooperative).

Deletion is soft: the row moves to DELETED and drops out of listings, and the
stored object is kept for the record.
"""

import logging
import re
import time
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, can_manage_documents, is_county_role, is_unscoped_role
from coop_portal.core.storage import StorageError, StorageService
from coop_portal.modules.cooperatives import repository as cooperative_repository
from coop_portal.modules.documents import repository
from coop_portal.modules.documents.models import Document, DocumentAction, DocumentStatus
from coop_portal.modules.documents.repository import DOCUMENT_SCOPE
from coop_portal.modules.documents.schemas import DocumentRegisterRequest, DocumentUpdate
from coop_portal.modules.documents.service import resolve, validate_file
from coop_portal.modules.shared.errors import (
    NotFoundError,
    PermissionDeniedError,
    UpstreamServiceError,
    ValidationFailedError,
)
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query

logger = logging.getLogger(__name__)

_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9.-]")


def build_register_path(
    tenant_id: UUID,
    cooperative_id: UUID | None,
    document_type: str,
    filename: str | None,
) -> str:
    """``{tenant}/{cooperative or 'general'}/{type}/{timestamp_ms}_{safe name}``"""
    safe_name = _UNSAFE_NAME.sub("_", filename or "document")
    timestamp_ms = int(time.time() * 1000)
    return f"{tenant_id}/{cooperative_id or 'general'}/{document_type}/{timestamp_ms}_{safe_name}"


def can_view(user: CurrentUser, document: Document) -> bool:
    if document.status == DocumentStatus.DELETED:
        return False
    if is_unscoped_role(user.role):
        return True
    if is_county_role(user.role):
        return document.tenant_id == user.tenant_id
    if user.role == Role.COOPERATIVE_ADMIN and user.cooperative_id is not None:
        return document.cooperative_id == user.cooperative_id
    return document.uploaded_by == user.id


async def get_document(db: AsyncSession, document_id: UUID, user: CurrentUser) -> Document:
    document = await repository.get_by_id(db, document_id)
    if document is None or not can_view(user, document):
        raise NotFoundError("Document", document_id)
    return document


async def _get_managed(db: AsyncSession, document_id: UUID, user: CurrentUser) -> Document:
    document = await get_document(db, document_id, user)
    if not can_manage_documents(user.role):
        raise PermissionDeniedError("You cannot change registered documents.")
    return document


async def resolve_placement(
    db: AsyncSession,
    user: CurrentUser,
    tenant_id: UUID | None,
    cooperative_id: UUID | None,
) -> tuple[UUID, UUID | None]:
    """
    Work out the county and cooperative a new document is filed against.

    Raises:
        PermissionDeniedError: If the caller may not file there
        ValidationFailedError: If no county can be determined
    """
    if not can_manage_documents(user.role):
        raise PermissionDeniedError("You cannot register documents.")

    if user.role == Role.COOPERATIVE_ADMIN:
        if user.cooperative_id is None or cooperative_id not in (None, user.cooperative_id):
            raise PermissionDeniedError("You can only file documents for your own cooperative.")
        cooperative_id = user.cooperative_id

    cooperative = None
    if cooperative_id is not None:
        cooperative = await cooperative_repository.get_by_id(db, cooperative_id)
        if cooperative is None:
            raise ValidationFailedError({"cooperative_id": "Cooperative not found"})

    if is_county_role(user.role):
        if tenant_id not in (None, user.tenant_id) or (
            cooperative is not None and cooperative.tenant_id != user.tenant_id
        ):
            raise PermissionDeniedError("You can only file documents within your county.")
        tenant_id = user.tenant_id
    elif cooperative is not None:
        if tenant_id not in (None, cooperative.tenant_id):
            raise ValidationFailedError({"tenant_id": "Cooperative is registered in another county"})
        tenant_id = cooperative.tenant_id

    if tenant_id is None:
        raise ValidationFailedError({"tenant_id": "County is required"})
    return tenant_id, cooperative_id


async def register_document(
    db: AsyncSession,
    storage: StorageService,
    data: bytes,
    *,
    content_type: str | None,
    filename: str | None,
    details: DocumentRegisterRequest,
    user: CurrentUser,
) -> Document:
    """
    Store a file and add it to the register.

    Raises:
        DocumentValidationError: If the file is too large or of a disallowed type
        PermissionDeniedError: If the caller may not file there
        UpstreamServiceError: If the storage backend fails
    """
    error = validate_file(len(data), content_type)
    if error is not None:
        raise error

    tenant_id, cooperative_id = await resolve_placement(
        db, user, details.tenant_id, details.cooperative_id
    )
    path = build_register_path(tenant_id, cooperative_id, details.document_type, filename)

    try:
        await storage.upload_file(data, path, content_type or "application/octet-stream")
    except StorageError as e:
        raise UpstreamServiceError(
            "Failed to upload file. Please try again later.",
            "STORAGE_UNAVAILABLE",
        ) from e

    try:
        document = await repository.create_document(
            db,
            title=details.title,
            description=details.description,
            document_type=details.document_type,
            sectoral_category=details.sectoral_category,
            tags=list(details.tags),
            tenant_id=tenant_id,
            cooperative_id=cooperative_id,
            storage_path=path,
            file_name=filename or path.rsplit("/", 1)[-1],
            file_size=len(data),
            mime_type=content_type or "application/octet-stream",
            uploaded_by=user.id,
        )
        repository.log_access(db, document.id, user.id, DocumentAction.UPLOAD)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.error(f"Registering {path} failed; removing stored object", exc_info=True)
        try:
            await storage.delete_file(path)
        except StorageError:
            logger.warning(f"Orphaned document object left at {path}")
        raise

    await db.refresh(document)
    logger.info(f"Registered document {document.document_number} at {path} by {user.id}")
    return document


async def list_documents(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: DocumentStatus | None = None,
    document_type: str | None = None,
    sectoral_category: str | None = None,
    tenant_id: UUID | None = None,
    cooperative_id: UUID | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """Documents in the caller's scope; deleted ones only when asked for by status."""
    filters = ListFilters(
        equals={
            "status": status,
            "document_type": document_type,
            "sectoral_category": sectoral_category,
            "tenant_id": tenant_id,
        },
        not_equals={} if status is not None else {"status": DocumentStatus.DELETED},
        search=search,
        page=page,
        page_size=page_size,
    )
    scope = ListScope.for_user(user, cooperative_id)

    items, total = await scoped_query(db, DOCUMENT_SCOPE, scope, filters)
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def update_document(
    db: AsyncSession,
    document_id: UUID,
    data: DocumentUpdate,
    user: CurrentUser,
) -> Document:
    document = await _get_managed(db, document_id, user)

    changes = data.model_dump(exclude_unset=True)
    if "tags" in changes:
        changes["tags"] = list(changes["tags"] or [])
    for key, value in changes.items():
        setattr(document, key, value)

    repository.log_access(db, document.id, user.id, DocumentAction.UPDATE)
    await db.commit()
    await db.refresh(document)

    logger.info(f"Document {document.document_number} updated by {user.id}: {sorted(changes)}")
    return document


async def archive_document(db: AsyncSession, document_id: UUID, user: CurrentUser) -> Document:
    document = await _get_managed(db, document_id, user)

    document.status = DocumentStatus.ARCHIVED
    repository.log_access(db, document.id, user.id, DocumentAction.ARCHIVE)
    await db.commit()
    await db.refresh(document)

    logger.info(f"Document {document.document_number} archived by {user.id}")
    return document


async def delete_document(db: AsyncSession, document_id: UUID, user: CurrentUser) -> None:
    document = await _get_managed(db, document_id, user)

    document.status = DocumentStatus.DELETED
    repository.log_access(db, document.id, user.id, DocumentAction.DELETE)
    await db.commit()

    logger.info(f"Document {document.document_number} deleted by {user.id}")


async def document_url(
    db: AsyncSession,
    storage: StorageService,
    document_id: UUID,
    user: CurrentUser,
) -> tuple[Document, str | None]:
    """Signed URL for a registered document; the view is logged."""
    document = await get_document(db, document_id, user)
    url = await resolve(storage, document.storage_path)

    repository.log_access(db, document.id, user.id, DocumentAction.VIEW)
    await db.commit()
    return document, url


async def access_log(db: AsyncSession, document_id: UUID, user: CurrentUser) -> list:
    document = await _get_managed(db, document_id, user)
    return await repository.list_access_log(db, document.id)


async def get_statistics(db: AsyncSession, user: CurrentUser) -> dict:
    """Register statistics over the caller's county, cooperative or the whole country."""
    if is_unscoped_role(user.role):
        return await repository.statistics(db)
    if is_county_role(user.role) and user.tenant_id is not None:
        return await repository.statistics(db, tenant_id=user.tenant_id)
    if user.role == Role.COOPERATIVE_ADMIN and user.cooperative_id is not None:
        return await repository.statistics(db, cooperative_id=user.cooperative_id)
    raise PermissionDeniedError("You cannot view document statistics.")


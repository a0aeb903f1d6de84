"""
Documents Service

Validation, upload and signed-URL resolution for supporting documents
(registration paperwork, trainer credentials, compliance filings, complaint
evidence).

Only the object path is stored on records. Paths look like
``{owner_id}/{category}_{timestamp_ms}.{ext}`` and are turned into a
short-lived signed URL whenever a document has to be shown.
"""

import enum
import logging
import time
from dataclasses import dataclass
from uuid import UUID

from coop_portal.core.config import settings
from coop_portal.core.storage import StorageError, StorageService
from coop_portal.modules.shared.errors import ServiceError, UpstreamServiceError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}


class DocumentCategory(str, enum.Enum):
    """What a document is for; becomes the file name prefix."""

    # Registration
    BYLAWS = "bylaws"
    MEMBER_LIST = "member_list"
    MINUTES = "minutes"
    ID_COPIES = "id_copies"
    # Trainer application
    CV = "cv"
    CERTIFICATES = "certificates"
    ID_COPY = "id_copy"
    RECOMMENDATION = "recommendation"
    TRAINING_PORTFOLIO = "training_portfolio"
    # Compliance
    AGM_MINUTES = "agm_minutes"
    FINANCIAL_STATEMENT = "financial_statement"
    AUDIT_REPORT = "audit_report"
    ANNUAL_RETURN = "annual_return"
    # Amendments and complaints
    SUPPORTING_DOCUMENT = "supporting_document"
    EVIDENCE = "evidence"


class DocumentValidationError(ServiceError):
    """Raised when an upload is too large or of a disallowed type."""

    def __init__(self, message: str, error_code: str):
        super().__init__(message=message, error_code=error_code, status_code=422)


@dataclass(frozen=True)
class UploadedDocument:
    path: str
    url: str | None


def validate_file(size: int, content_type: str | None) -> DocumentValidationError | None:
    """
    Check an upload against the size limit and the type allow-list.

    Returns:
        The validation error, or None when the file is acceptable
    """
    if size > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        return DocumentValidationError(
            f"File size exceeds {limit_mb}MB limit. Your file is {size / (1024 * 1024):.2f}MB",
            "FILE_TOO_LARGE",
        )

    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        return DocumentValidationError(
            "File type not allowed. Please upload PDF, PNG, JPG, JPEG, DOC, or DOCX files.",
            "INVALID_FILE_TYPE",
        )

    return None


def build_path(
    owner_id: UUID,
    category: DocumentCategory,
    content_type: str,
    filename: str | None = None,
) -> str:
    extension = ALLOWED_CONTENT_TYPES.get(content_type.lower())
    if not extension and filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower()
    timestamp_ms = int(time.time() * 1000)
    return f"{owner_id}/{category.value}_{timestamp_ms}.{extension or 'bin'}"


def is_owned_by(path: str, owner_id: UUID) -> bool:
    return path.startswith(f"{owner_id}/")


async def resolve(storage: StorageService, path: str | None) -> str | None:
    """
    Turn a stored path into a signed URL valid for one hour.

    Empty paths resolve to None.

    Raises:
        UpstreamServiceError: If the storage backend fails
    """
    if not path:
        return None

    try:
        return await storage.get_download_url(path, settings.signed_url_ttl_seconds)
    except StorageError as e:
        raise UpstreamServiceError(
            "Could not generate a document link. Please try again later.",
            "STORAGE_UNAVAILABLE",
        ) from e


async def upload(
    storage: StorageService,
    data: bytes,
    *,
    content_type: str | None,
    filename: str | None,
    owner_id: UUID,
    category: DocumentCategory,
) -> UploadedDocument:
    """
    Validate and store a document.

    Returns:
        The stored path plus a signed URL for immediate preview

    Raises:
        DocumentValidationError: If the file is too large or of a disallowed type
        UpstreamServiceError: If the storage backend fails
    """
    error = validate_file(len(data), content_type)
    if error is not None:
        logger.warning(f"Upload rejected for {owner_id} ({category.value}): {error.error_code}")
        raise error

    path = build_path(owner_id, category, content_type or "", filename)

    try:
        await storage.upload_file(data, path, content_type or "application/octet-stream")
    except StorageError as e:
        raise UpstreamServiceError(
            "Failed to upload file. Please try again later.",
            "STORAGE_UNAVAILABLE",
        ) from e

    logger.info(f"Stored document {path} ({len(data)} bytes)")
    return UploadedDocument(path=path, url=await resolve(storage, path))


async def delete(storage: StorageService, path: str) -> None:
    """
    Raises:
        UpstreamServiceError: If the storage backend fails
    """
    try:
        await storage.delete_file(path)
    except StorageError as e:
        raise UpstreamServiceError(
            "Failed to delete file. Please try again later.",
            "STORAGE_UNAVAILABLE",
        ) from e

    logger.info(f"Deleted document {path}")

"""
Document Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coop_portal.modules.documents.models import DocumentAction, DocumentStatus


class UploadResponse(BaseModel):
    path: str
    url: str | None = None


class SignedUrlResponse(BaseModel):
    path: str
    url: str | None = None
    expires_in: int


# ============================================================================
# Document register
# ============================================================================


class DocumentRegisterRequest(BaseModel):
    """Metadata sent alongside the file when registering a document."""

    title: str = Field(..., min_length=2, max_length=255)
    description: str | None = Field(None, max_length=5000)
    document_type: str = Field(..., min_length=2, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    sectoral_category: str | None = Field(None, max_length=50)
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)


class DocumentUpdate(BaseModel):
    title: str | None = Field(None, min_length=2, max_length=255)
    description: str | None = Field(None, max_length=5000)
    document_type: str | None = Field(None, min_length=2, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    sectoral_category: str | None = Field(None, max_length=50)
    tags: list[str] | None = Field(None, max_length=20)


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_number: str
    title: str
    description: str | None = None
    document_type: str
    sectoral_category: str | None = None
    tags: list[str]
    tenant_id: UUID
    cooperative_id: UUID | None = None
    file_name: str
    file_size: int
    mime_type: str
    uploaded_by: UUID
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total_count: int
    page: int
    page_size: int


class DocumentUrlResponse(BaseModel):
    document_id: UUID
    url: str | None = None
    expires_in: int


class DocumentAccessLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    user_id: UUID
    action: DocumentAction
    created_at: datetime


class DocumentStatisticsResponse(BaseModel):
    total: int
    total_size: int
    by_status: dict[str, int]
    by_type: dict[str, int]
    by_sector: dict[str, int]
    by_county: dict[str, int]
    by_cooperative: dict[str, int]

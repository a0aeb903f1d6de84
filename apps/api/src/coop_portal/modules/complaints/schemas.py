"""
Complaint Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from coop_portal.modules.complaints.models import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)


class ComplaintCreate(BaseModel):
    cooperative_id: UUID | None = None
    is_anonymous: bool = False
    complainant_name: str | None = Field(None, max_length=200)
    complainant_phone: str | None = Field(None, max_length=20)
    complainant_email: EmailStr | None = None
    category: ComplaintCategory
    priority: ComplaintPriority = ComplaintPriority.MEDIUM
    subject: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=20, max_length=5000)
    evidence_url: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def name_unless_anonymous(self) -> "ComplaintCreate":
        if not self.is_anonymous and not (self.complainant_name or "").strip():
            raise ValueError("Your name is required unless you file anonymously")
        return self


class AssignInvestigatorRequest(BaseModel):
    investigator_id: UUID


class ComplaintStatusUpdate(BaseModel):
    status: ComplaintStatus
    notes: str | None = Field(None, max_length=5000)


class InvestigationNotesRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=10000)


class ComplaintResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    complaint_number: str
    cooperative_id: UUID | None = None
    tenant_id: UUID | None = None
    complainant_user_id: UUID | None = None
    complainant_name: str
    complainant_phone: str | None = None
    complainant_email: str | None = None
    is_anonymous: bool
    category: ComplaintCategory
    priority: ComplaintPriority
    subject: str
    description: str
    evidence_url: str | None = None
    status: ComplaintStatus
    assigned_to: UUID | None = None
    assigned_at: datetime | None = None
    investigation_notes: str | None = None
    resolution: str | None = None
    resolved_by: UUID | None = None
    resolved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ComplaintListResponse(BaseModel):
    items: list[ComplaintResponse]
    total_count: int
    page: int
    page_size: int

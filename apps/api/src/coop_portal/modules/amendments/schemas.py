"""
Amendment Request Schemas
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coop_portal.modules.amendments.models import AmendmentStatus, AmendmentType


class AmendmentCreate(BaseModel):
    cooperative_id: UUID
    amendment_type: AmendmentType
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=5000)
    justification: str | None = Field(None, max_length=5000)
    current_value: str | None = Field(None, max_length=5000)
    proposed_value: str | None = Field(None, max_length=5000)
    supporting_document_url: str | None = Field(None, max_length=500)


class AmendmentResubmit(BaseModel):
    description: str | None = Field(None, min_length=10, max_length=5000)
    justification: str | None = Field(None, max_length=5000)
    proposed_value: str | None = Field(None, max_length=5000)
    supporting_document_url: str | None = Field(None, max_length=500)


class AmendmentDecisionRequest(BaseModel):
    notes: str | None = Field(None, max_length=5000)
    effective_date: date | None = Field(None, description="Defaults to today on approval")


class AmendmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    request_number: str
    cooperative_id: UUID
    amendment_type: AmendmentType
    title: str
    description: str
    justification: str | None = None
    current_value: str | None = None
    proposed_value: str | None = None
    supporting_document_url: str | None = None
    status: AmendmentStatus
    submitted_by: UUID
    submitted_at: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    effective_date: date | None = None
    created_at: datetime
    updated_at: datetime


class AmendmentListResponse(BaseModel):
    items: list[AmendmentResponse]
    total_count: int
    page: int
    page_size: int

"""
Registration Application Schemas

Pydantic models for the registration wizard and county review.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coop_portal.modules.registrations.models import RegistrationStatus

# ============================================================================
# Wizard (applicant)
# ============================================================================


class RegistrationFormData(BaseModel):
    """
    Wizard form fields. Everything is optional because drafts are partial;
    completeness is checked by the step validators and at submission.
    """

    # Step 1
    proposed_name: str | None = Field(None, max_length=200)
    type_id: UUID | None = None
    proposed_members: int | None = Field(None, ge=0)
    proposed_share_capital: Decimal | None = Field(None, ge=0)
    primary_activity: str | None = None
    operating_area: str | None = Field(None, max_length=200)

    # Step 2
    address: str | None = None
    contact_person: str | None = Field(None, max_length=200)
    contact_phone: str | None = Field(None, max_length=20)
    contact_email: str | None = Field(None, max_length=255)

    # Step 3 - storage paths returned by the documents upload endpoint
    bylaws_url: str | None = Field(None, max_length=500)
    member_list_url: str | None = Field(None, max_length=500)
    minutes_url: str | None = Field(None, max_length=500)
    id_copies_url: str | None = Field(None, max_length=500)


class SaveDraftRequest(RegistrationFormData):
    current_step: int = Field(1, ge=1, le=3)


class StepValidationRequest(RegistrationFormData):
    step: int = Field(..., ge=1, le=3)


class StepValidationResponse(BaseModel):
    step: int
    valid: bool
    errors: dict[str, str]


class NameAvailabilityResponse(BaseModel):
    name: str
    available: bool
    message: str | None = None


# ============================================================================
# Responses
# ============================================================================


class ApplicationResponse(BaseModel):
    """Full application, as seen by the applicant and reviewers."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    applicant_user_id: UUID
    tenant_id: UUID
    status: RegistrationStatus
    current_step: int

    proposed_name: str | None = None
    type_id: UUID | None = None
    proposed_members: int | None = None
    proposed_share_capital: Decimal | None = None
    primary_activity: str | None = None
    operating_area: str | None = None

    address: str | None = None
    contact_person: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None

    bylaws_url: str | None = None
    member_list_url: str | None = None
    minutes_url: str | None = None
    id_copies_url: str | None = None

    submitted_at: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    rejection_reason: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    cooperative_id: UUID | None = None

    created_at: datetime
    updated_at: datetime


class ApplicationSummary(BaseModel):
    """Row in application lists."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    proposed_name: str | None = None
    status: RegistrationStatus
    contact_person: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime


class ApplicationListResponse(BaseModel):
    items: list[ApplicationSummary]
    total_count: int
    page: int
    page_size: int


class ApplicationStatsResponse(BaseModel):
    counts: dict[str, int]
    total: int


class DocumentLink(BaseModel):
    field: str
    label: str
    path: str | None = None
    url: str | None = None


# ============================================================================
# Review (county staff)
# ============================================================================


class ReviewDecisionRequest(BaseModel):
    """Notes are mandatory for rejection and info requests; enforced by the service."""

    notes: str | None = Field(None, max_length=5000)


class ApprovalResponse(BaseModel):
    application: ApplicationResponse
    cooperative_id: UUID
    registration_number: str

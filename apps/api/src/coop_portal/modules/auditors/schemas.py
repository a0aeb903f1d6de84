"""
Auditor Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coop_portal.modules.auditors.models import (
    AuditorApplicationStatus,
    AuditorQualification,
    AuditorSpecialization,
)


class AuditorApplicationCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=20)
    id_number: str = Field(..., min_length=6, max_length=20)
    qualification: AuditorQualification
    certification_body: str = Field(..., min_length=2, max_length=200)
    certificate_number: str = Field(..., min_length=2, max_length=100)
    certificate_issue_date: date | None = None
    years_experience: int = Field(..., ge=0, le=60)
    specializations: list[AuditorSpecialization] = Field(..., min_length=1)
    professional_certificate_url: str | None = Field(None, max_length=500)
    academic_certificates_url: str | None = Field(None, max_length=500)
    practicing_certificate_url: str | None = Field(None, max_length=500)
    id_copy_url: str | None = Field(None, max_length=500)
    cv_url: str | None = Field(None, max_length=500)
    terms_accepted: bool = False


class AuditorDecisionRequest(BaseModel):
    notes: str | None = Field(None, max_length=5000)


class VerificationNotesRequest(BaseModel):
    notes: str = Field(..., min_length=1, max_length=5000)


class AuditorApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    user_id: UUID
    full_name: str
    email: str
    phone: str
    id_number: str
    qualification: AuditorQualification
    certification_body: str
    certificate_number: str
    certificate_issue_date: date | None = None
    years_experience: int
    specializations: list[AuditorSpecialization]
    professional_certificate_url: str | None = None
    academic_certificates_url: str | None = None
    practicing_certificate_url: str | None = None
    id_copy_url: str | None = None
    cv_url: str | None = None
    terms_accepted: bool
    status: AuditorApplicationStatus
    submitted_at: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    verification_notes: str | None = None
    rejection_reason: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    created_at: datetime


class AuditorApplicationListResponse(BaseModel):
    items: list[AuditorApplicationResponse]
    total_count: int
    page: int
    page_size: int


class AuditorProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    full_name: str
    email: str
    phone: str | None = None
    qualification: AuditorQualification
    certification_body: str
    certificate_number: str
    years_experience: int
    specializations: list[AuditorSpecialization]
    total_audits_completed: int
    cooperatives_audited: int
    average_rating: Decimal
    certification_expiry_date: date | None = None
    is_active: bool


class AuditorDirectoryResponse(BaseModel):
    items: list[AuditorProfileResponse]
    total_count: int
    page: int
    page_size: int


class AuditorApprovalResponse(BaseModel):
    application: AuditorApplicationResponse
    profile: AuditorProfileResponse

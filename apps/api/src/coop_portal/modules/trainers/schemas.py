"""
Trainer Schemas
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coop_portal.modules.trainers.models import (
    EducationLevel,
    InstructionLanguage,
    TrainerApplicationStatus,
    TrainerSpecialization,
)


class TrainerApplicationCreate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=20)
    id_number: str = Field(..., min_length=6, max_length=20)
    education_level: EducationLevel
    institution: str = Field(..., min_length=2, max_length=200)
    years_experience: int = Field(..., ge=0, le=60)
    specializations: list[TrainerSpecialization] = Field(..., min_length=1)
    languages: list[InstructionLanguage] = Field(..., min_length=1)
    cv_url: str | None = Field(None, max_length=500)
    certificates_url: str | None = Field(None, max_length=500)
    id_copy_url: str | None = Field(None, max_length=500)
    recommendation_url: str | None = Field(None, max_length=500)
    training_portfolio_url: str | None = Field(None, max_length=500)
    terms_accepted: bool = False


class TrainerDecisionRequest(BaseModel):
    notes: str | None = Field(None, max_length=5000)


class TrainerApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    user_id: UUID
    full_name: str
    email: str
    phone: str
    id_number: str
    education_level: EducationLevel
    institution: str
    years_experience: int
    specializations: list[TrainerSpecialization]
    languages: list[InstructionLanguage]
    cv_url: str | None = None
    certificates_url: str | None = None
    id_copy_url: str | None = None
    recommendation_url: str | None = None
    training_portfolio_url: str | None = None
    terms_accepted: bool
    status: TrainerApplicationStatus
    submitted_at: datetime | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    rejection_reason: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    created_at: datetime


class TrainerApplicationListResponse(BaseModel):
    items: list[TrainerApplicationResponse]
    total_count: int
    page: int
    page_size: int


class TrainerProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    full_name: str
    email: str
    phone: str | None = None
    education_level: EducationLevel
    institution: str | None = None
    years_experience: int
    specializations: list[TrainerSpecialization]
    languages: list[InstructionLanguage]
    total_programs_delivered: int
    rating: Decimal
    is_active: bool


class TrainerDirectoryResponse(BaseModel):
    items: list[TrainerProfileResponse]
    total_count: int
    page: int
    page_size: int


class TrainerApprovalResponse(BaseModel):
    application: TrainerApplicationResponse
    profile: TrainerProfileResponse

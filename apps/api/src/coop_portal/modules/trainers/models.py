"""
Trainer Models

Applications to become an accredited cooperative trainer, and the public
profile created when an application is approved.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class EducationLevel(str, enum.Enum):
    DIPLOMA = "DIPLOMA"
    DEGREE = "DEGREE"
    MASTERS = "MASTERS"
    PHD = "PHD"


class TrainerSpecialization(str, enum.Enum):
    GOVERNANCE = "GOVERNANCE"
    FINANCIAL_MANAGEMENT = "FINANCIAL_MANAGEMENT"
    BOOKKEEPING = "BOOKKEEPING"
    LEADERSHIP = "LEADERSHIP"
    COMPLIANCE = "COMPLIANCE"
    DIGITAL_LITERACY = "DIGITAL_LITERACY"
    ENTREPRENEURSHIP = "ENTREPRENEURSHIP"
    OTHER = "OTHER"


class InstructionLanguage(str, enum.Enum):
    ENGLISH = "ENGLISH"
    SWAHILI = "SWAHILI"
    OTHER = "OTHER"


class TrainerApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TrainerApplication(BaseModel):
    """Application to be listed as a trainer."""

    __tablename__ = "trainer_applications"

    application_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Personal
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    id_number: Mapped[str] = mapped_column(String(20), nullable=False)

    # Qualifications
    education_level: Mapped[EducationLevel] = mapped_column(
        Enum(EducationLevel, name="education_level"),
        nullable=False,
    )
    institution: Mapped[str] = mapped_column(String(200), nullable=False)
    years_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Stored as JSON arrays of enum values
    specializations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Documents
    cv_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    certificates_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    id_copy_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    recommendation_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    training_portfolio_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    terms_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    terms_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Review
    status: Mapped[TrainerApplicationStatus] = mapped_column(
        Enum(TrainerApplicationStatus, name="trainer_application_status"),
        nullable=False,
        default=TrainerApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_trainer_applications_status", "status"),)

    def __repr__(self) -> str:
        return f"<TrainerApplication(number={self.application_number}, status={self.status.value})>"


class TrainerProfile(BaseModel):
    """Directory entry for an approved trainer (one per user)."""

    __tablename__ = "trainer_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("trainer_applications.id", ondelete="SET NULL"),
        nullable=True,
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    education_level: Mapped[EducationLevel] = mapped_column(
        Enum(EducationLevel, name="education_level"),
        nullable=False,
    )
    institution: Mapped[str | None] = mapped_column(String(200), nullable=True)
    years_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    specializations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    total_programs_delivered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<TrainerProfile(user_id={self.user_id}, name={self.full_name})>"

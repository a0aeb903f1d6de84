"""
Auditor Models

Applications to be accredited as a cooperative auditor, and the directory
profile created when an application is approved.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
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


class AuditorQualification(str, enum.Enum):
    CERTIFIED_PUBLIC_ACCOUNTANT = "CERTIFIED_PUBLIC_ACCOUNTANT"
    CHARTERED_ACCOUNTANT = "CHARTERED_ACCOUNTANT"
    COOPERATIVE_AUDITOR = "COOPERATIVE_AUDITOR"
    OTHER = "OTHER"


class AuditorSpecialization(str, enum.Enum):
    """Cooperative sectors an auditor is experienced in."""

    SACCO = "SACCO"
    AGRICULTURAL = "AGRICULTURAL"
    TRANSPORT = "TRANSPORT"
    HOUSING = "HOUSING"
    CONSUMER = "CONSUMER"
    MARKETING = "MARKETING"
    DAIRY = "DAIRY"
    SAVINGS = "SAVINGS"
    MULTIPURPOSE = "MULTIPURPOSE"


class AuditorApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuditorApplication(BaseModel):
    """Application to be listed as an accredited auditor."""

    __tablename__ = "auditor_applications"

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

    # Professional certification
    qualification: Mapped[AuditorQualification] = mapped_column(
        Enum(AuditorQualification, name="auditor_qualification"),
        nullable=False,
    )
    certification_body: Mapped[str] = mapped_column(String(200), nullable=False)
    certificate_number: Mapped[str] = mapped_column(String(100), nullable=False)
    certificate_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    years_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    specializations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Documents
    professional_certificate_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    academic_certificates_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    practicing_certificate_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    id_copy_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cv_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    terms_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    terms_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Review
    status: Mapped[AuditorApplicationStatus] = mapped_column(
        Enum(AuditorApplicationStatus, name="auditor_application_status"),
        nullable=False,
        default=AuditorApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Reviewer's notes on checks against the certification body
    verification_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_auditor_applications_status", "status"),)

    def __repr__(self) -> str:
        return f"<AuditorApplication(number={self.application_number}, status={self.status.value})>"


class AuditorProfile(BaseModel):
    """Directory entry for an accredited auditor (one per user)."""

    __tablename__ = "auditor_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("auditor_applications.id", ondelete="SET NULL"),
        nullable=True,
    )

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    qualification: Mapped[AuditorQualification] = mapped_column(
        Enum(AuditorQualification, name="auditor_qualification"),
        nullable=False,
    )
    certification_body: Mapped[str] = mapped_column(String(200), nullable=False)
    certificate_number: Mapped[str] = mapped_column(String(100), nullable=False)
    years_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    specializations: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    total_audits_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cooperatives_audited: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2), nullable=False, default=Decimal("0")
    )
    certification_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<AuditorProfile(user_id={self.user_id}, name={self.full_name})>"

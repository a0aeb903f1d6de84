"""
Registration Application Models

A registration application starts life as the applicant's single DRAFT,
is autosaved step by step, then submitted for county review.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class RegistrationStatus(str, enum.Enum):
    """Status of a cooperative registration application."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ADDITIONAL_INFO_REQUIRED = "ADDITIONAL_INFO_REQUIRED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class RegistrationApplication(BaseModel):
    """
    Cooperative registration application.

    Only one DRAFT may exist per applicant (partial unique index). The
    application number is allocated when the draft is first saved and never
    changes afterwards.
    """

    __tablename__ = "registration_applications"

    application_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    applicant_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Status tracking
    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus, name="registration_status"),
        nullable=False,
        default=RegistrationStatus.DRAFT,
    )
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Step 1 - cooperative details
    proposed_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    type_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperative_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    proposed_members: Mapped[int | None] = mapped_column(Integer, nullable=True)
    proposed_share_capital: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    primary_activity: Mapped[str | None] = mapped_column(Text, nullable=True)
    operating_area: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Step 2 - contact
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Step 3 - document storage paths
    bylaws_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    member_list_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    minutes_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    id_copies_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Review
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Set on approval
    cooperative_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index(
            "uq_registration_applications_one_draft",
            "applicant_user_id",
            unique=True,
            postgresql_where=text("status = 'DRAFT'"),
            sqlite_where=text("status = 'DRAFT'"),
        ),
        Index("ix_registration_applications_status", "status"),
        Index("ix_registration_applications_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<RegistrationApplication(id={self.id}, number={self.application_number}, "
            f"status={self.status.value})>"
        )

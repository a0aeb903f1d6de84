"""
Amendment Request Models

Changes a registered cooperative asks the county to approve (bylaws, name,
address, officials, membership rules, share capital).
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class AmendmentType(str, enum.Enum):
    BYLAW_AMENDMENT = "BYLAW_AMENDMENT"
    NAME_CHANGE = "NAME_CHANGE"
    ADDRESS_CHANGE = "ADDRESS_CHANGE"
    OFFICIAL_CHANGE = "OFFICIAL_CHANGE"
    MEMBERSHIP_RULES = "MEMBERSHIP_RULES"
    SHARE_CAPITAL_CHANGE = "SHARE_CAPITAL_CHANGE"
    OTHER = "OTHER"


class AmendmentStatus(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ADDITIONAL_INFO_REQUIRED = "ADDITIONAL_INFO_REQUIRED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


class AmendmentRequest(BaseModel):
    """Amendment request raised by a cooperative admin."""

    __tablename__ = "amendment_requests"

    request_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    cooperative_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    amendment_type: Mapped[AmendmentType] = mapped_column(
        Enum(AmendmentType, name="amendment_type"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    justification: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    proposed_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    supporting_document_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[AmendmentStatus] = mapped_column(
        Enum(AmendmentStatus, name="amendment_status"),
        nullable=False,
        default=AmendmentStatus.SUBMITTED,
    )

    submitted_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("ix_amendment_requests_status", "status"),
        Index("ix_amendment_requests_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<AmendmentRequest(number={self.request_number}, status={self.status.value})>"

"""
Complaint Models

Complaints filed by members of the public (optionally anonymously) against a
cooperative and investigated by county staff.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class ComplaintCategory(str, enum.Enum):
    GOVERNANCE = "GOVERNANCE"
    FINANCIAL_MISMANAGEMENT = "FINANCIAL_MISMANAGEMENT"
    MEMBER_DISPUTE = "MEMBER_DISPUTE"
    SERVICE_DELIVERY = "SERVICE_DELIVERY"
    FRAUD = "FRAUD"
    CORRUPTION = "CORRUPTION"
    OTHER = "OTHER"


class ComplaintPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ComplaintStatus(str, enum.Enum):
    RECEIVED = "RECEIVED"
    INVESTIGATING = "INVESTIGATING"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"


class Complaint(BaseModel):
    """
    A complaint and its investigation.

    Anonymous complaints keep no link to the complainant's account or phone.
    """

    __tablename__ = "complaints"

    complaint_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    cooperative_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Complainant
    complainant_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    complainant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    complainant_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complainant_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Complaint
    category: Mapped[ComplaintCategory] = mapped_column(
        Enum(ComplaintCategory, name="complaint_category"),
        nullable=False,
    )
    priority: Mapped[ComplaintPriority] = mapped_column(
        Enum(ComplaintPriority, name="complaint_priority"),
        nullable=False,
        default=ComplaintPriority.MEDIUM,
    )
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    evidence_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Investigation
    status: Mapped[ComplaintStatus] = mapped_column(
        Enum(ComplaintStatus, name="complaint_status"),
        nullable=False,
        default=ComplaintStatus.RECEIVED,
    )
    assigned_to: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    investigation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_complaints_status", "status"),
        Index("ix_complaints_priority", "priority"),
    )

    def __repr__(self) -> str:
        return f"<Complaint(number={self.complaint_number}, status={self.status.value})>"

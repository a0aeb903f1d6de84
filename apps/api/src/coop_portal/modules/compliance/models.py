"""
Compliance Report Models

Annual compliance returns filed by cooperatives: AGM, financial statements,
audit report and annual return, plus four self-assessed checks that drive
the compliance score.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class ComplianceStatus(str, enum.Enum):
    """Derived from the score; never set directly."""

    COMPLIANT = "COMPLIANT"
    PARTIALLY_COMPLIANT = "PARTIALLY_COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"


class ReportReviewStatus(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ComplianceReport(BaseModel):
    """One cooperative's compliance return for a financial year."""

    __tablename__ = "compliance_reports"

    report_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    cooperative_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    financial_year: Mapped[str] = mapped_column(String(9), nullable=False)

    agm_held: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    agm_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Documents
    agm_minutes_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    financial_statement_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    audit_report_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    annual_return_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Checks
    bylaws_compliant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    meetings_compliant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    records_compliant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    financial_compliant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    compliance_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    compliance_status: Mapped[ComplianceStatus] = mapped_column(
        Enum(ComplianceStatus, name="compliance_status"),
        nullable=False,
        default=ComplianceStatus.NON_COMPLIANT,
    )

    submitted_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Review
    review_status: Mapped[ReportReviewStatus] = mapped_column(
        Enum(ReportReviewStatus, name="report_review_status"),
        nullable=False,
        default=ReportReviewStatus.SUBMITTED,
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_compliance_reports_review_status", "review_status"),
        Index("ix_compliance_reports_coop_year", "cooperative_id", "financial_year"),
    )

    def __repr__(self) -> str:
        return (
            f"<ComplianceReport(number={self.report_number}, "
            f"score={self.compliance_score}, review={self.review_status.value})>"
        )

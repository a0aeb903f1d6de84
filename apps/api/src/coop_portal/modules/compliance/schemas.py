"""
Compliance Report Schemas
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from coop_portal.modules.compliance.models import ComplianceStatus, ReportReviewStatus

FINANCIAL_YEAR_PATTERN = r"^\d{4}(/\d{4})?$"


class ComplianceReportCreate(BaseModel):
    cooperative_id: UUID
    financial_year: str = Field(..., pattern=FINANCIAL_YEAR_PATTERN, examples=["2024", "2024/2025"])
    agm_held: bool = False
    agm_date: date | None = None
    agm_minutes_url: str | None = Field(None, max_length=500)
    financial_statement_url: str | None = Field(None, max_length=500)
    audit_report_url: str | None = Field(None, max_length=500)
    annual_return_url: str | None = Field(None, max_length=500)
    bylaws_compliant: bool = False
    meetings_compliant: bool = False
    records_compliant: bool = False
    financial_compliant: bool = False


class ComplianceReportUpdate(BaseModel):
    agm_held: bool | None = None
    agm_date: date | None = None
    agm_minutes_url: str | None = Field(None, max_length=500)
    financial_statement_url: str | None = Field(None, max_length=500)
    audit_report_url: str | None = Field(None, max_length=500)
    annual_return_url: str | None = Field(None, max_length=500)
    bylaws_compliant: bool | None = None
    meetings_compliant: bool | None = None
    records_compliant: bool | None = None
    financial_compliant: bool | None = None


class ComplianceDecisionRequest(BaseModel):
    notes: str | None = Field(None, max_length=5000)


class ComplianceReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    report_number: str
    cooperative_id: UUID
    financial_year: str
    agm_held: bool
    agm_date: date | None = None
    agm_minutes_url: str | None = None
    financial_statement_url: str | None = None
    audit_report_url: str | None = None
    annual_return_url: str | None = None
    bylaws_compliant: bool
    meetings_compliant: bool
    records_compliant: bool
    financial_compliant: bool
    compliance_score: int
    compliance_status: ComplianceStatus
    submitted_by: UUID
    submitted_at: datetime | None = None
    review_status: ReportReviewStatus
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    created_at: datetime


class ComplianceReportListResponse(BaseModel):
    items: list[ComplianceReportResponse]
    total_count: int
    page: int
    page_size: int

"""
Compliance Reports Router

Endpoints:
- GET /compliance - List reports in the caller's scope
- GET /compliance/export - CSV of the current page
- POST /compliance - Submit a report (cooperative admin)
- GET /compliance/{id} - Details
- PATCH /compliance/{id} - Edit before review starts (submitter)
- POST /compliance/{id}/start-review - Reviewer picks it up
- POST /compliance/{id}/approve - Approve
- POST /compliance/{id}/reject - Reject (notes required)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_review_compliance, can_submit_compliance
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    enforce_user_rate_limit,
)
from coop_portal.modules.compliance import service
from coop_portal.modules.compliance.models import ComplianceStatus, ReportReviewStatus
from coop_portal.modules.compliance.schemas import (
    ComplianceDecisionRequest,
    ComplianceReportCreate,
    ComplianceReportListResponse,
    ComplianceReportResponse,
    ComplianceReportUpdate,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error
from coop_portal.modules.shared.exports import csv_response

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = require_capability(can_review_compliance)
require_submitter = require_capability(can_submit_compliance)


@router.get("", response_model=ComplianceReportListResponse, summary="List Compliance Reports")
async def list_reports(
    review_status: ReportReviewStatus | None = Query(None),
    compliance_status: ComplianceStatus | None = Query(None),
    cooperative_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ComplianceReportListResponse:
    try:
        result = await service.list_reports(
            db,
            user,
            review_status=review_status,
            compliance_status=compliance_status,
            cooperative_id=cooperative_id,
            search=search,
            page=page,
            page_size=page_size,
        )
        return ComplianceReportListResponse(
            items=[ComplianceReportResponse.model_validate(r) for r in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing compliance reports")


@router.get("/export", summary="Export Compliance Reports (CSV)")
async def export_reports(
    review_status: ReportReviewStatus | None = Query(None),
    compliance_status: ComplianceStatus | None = Query(None),
    cooperative_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    content = await service.export_reports_csv(
        db,
        user,
        review_status=review_status,
        compliance_status=compliance_status,
        cooperative_id=cooperative_id,
        search=search,
        page=page,
        page_size=page_size,
    )
    return csv_response(content, "compliance-reports.csv")


@router.post(
    "",
    response_model=ComplianceReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Compliance Report",
)
async def submit_report(
    data: ComplianceReportCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_submitter),
) -> ComplianceReportResponse:
    try:
        return ComplianceReportResponse.model_validate(await service.submit_report(db, data, user))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting compliance report")


@router.get("/{report_id}", response_model=ComplianceReportResponse, summary="Get Compliance Report")
async def get_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ComplianceReportResponse:
    try:
        return ComplianceReportResponse.model_validate(await service.get_report(db, report_id, user))
    except ServiceError as e:
        raise_http_error(e)


@router.patch("/{report_id}", response_model=ComplianceReportResponse, summary="Edit Compliance Report")
async def update_report(
    report_id: UUID,
    data: ComplianceReportUpdate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_submitter),
) -> ComplianceReportResponse:
    try:
        return ComplianceReportResponse.model_validate(
            await service.update_report(db, report_id, data, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{report_id}/start-review", response_model=ComplianceReportResponse, summary="Start Review"
)
async def start_review(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ComplianceReportResponse:
    await enforce_user_rate_limit(reviewer, "compliance_start_review", RATE_LIMIT_ASSIGN)
    try:
        return ComplianceReportResponse.model_validate(
            await service.start_review(db, report_id, reviewer)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{report_id}/approve", response_model=ComplianceReportResponse, summary="Approve")
async def approve_report(
    report_id: UUID,
    body: ComplianceDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ComplianceReportResponse:
    await enforce_user_rate_limit(reviewer, "compliance_decision", RATE_LIMIT_DECISION)
    try:
        return ComplianceReportResponse.model_validate(
            await service.approve_report(db, report_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{report_id}/reject", response_model=ComplianceReportResponse, summary="Reject")
async def reject_report(
    report_id: UUID,
    body: ComplianceDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ComplianceReportResponse:
    await enforce_user_rate_limit(reviewer, "compliance_decision", RATE_LIMIT_DECISION)
    try:
        return ComplianceReportResponse.model_validate(
            await service.reject_report(db, report_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)

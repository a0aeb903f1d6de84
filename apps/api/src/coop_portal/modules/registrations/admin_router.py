"""
Registration Applications Admin Router

API endpoints for county staff to review registration applications.
All endpoints require the ``can_review_applications`` capability; county
staff only see applications of their own county.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/export - CSV of the current page
- GET /admin/applications/stats - Counts per status
- POST /admin/applications/{id}/start-review - Start reviewing application
- POST /admin/applications/{id}/request-info - Request more information
- POST /admin/applications/{id}/approve - Approve and register the cooperative
- POST /admin/applications/{id}/reject - Reject application
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_review_applications
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    enforce_user_rate_limit,
)
from coop_portal.modules.registrations import service
from coop_portal.modules.registrations.models import RegistrationStatus
from coop_portal.modules.registrations.schemas import (
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatsResponse,
    ApplicationSummary,
    ApprovalResponse,
    ReviewDecisionRequest,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error
from coop_portal.modules.shared.exports import csv_response

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = require_capability(can_review_applications)


@router.get("", response_model=ApplicationListResponse, summary="List Applications")
async def list_applications(
    status: RegistrationStatus | None = Query(None, description="Filter by status"),
    search: str | None = Query(None, max_length=100, description="Number or proposed name"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApplicationListResponse:
    try:
        result = await service.list_applications(
            db, reviewer, status=status, search=search, page=page, page_size=page_size
        )
        return ApplicationListResponse(
            items=[ApplicationSummary.model_validate(a) for a in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing applications")


@router.get("/export", summary="Export Applications (CSV)")
async def export_applications(
    status: RegistrationStatus | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> Response:
    content = await service.export_applications_csv(
        db, reviewer, status=status, search=search, page=page, page_size=page_size
    )
    return csv_response(content, "registration-applications.csv")


@router.get("/stats", response_model=ApplicationStatsResponse, summary="Application Statistics")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApplicationStatsResponse:
    return ApplicationStatsResponse(**await service.get_stats(db, reviewer))


@router.post(
    "/{application_id}/start-review",
    response_model=ApplicationResponse,
    summary="Start Review",
)
async def start_review(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApplicationResponse:
    await enforce_user_rate_limit(reviewer, "start_review", RATE_LIMIT_ASSIGN)
    try:
        application = await service.start_review(db, application_id, reviewer)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{application_id}/request-info",
    response_model=ApplicationResponse,
    summary="Request Additional Information",
)
async def request_info(
    application_id: UUID,
    body: ReviewDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApplicationResponse:
    await enforce_user_rate_limit(reviewer, "request_info", RATE_LIMIT_DECISION)
    try:
        application = await service.request_additional_info(
            db, application_id, reviewer, body.notes
        )
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{application_id}/approve",
    response_model=ApprovalResponse,
    summary="Approve Application",
)
async def approve(
    application_id: UUID,
    body: ReviewDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApprovalResponse:
    """
    Approve the application and register the cooperative.

    The cooperative, the applicant's COOPERATIVE_ADMIN role and the status
    change are written together; on any failure nothing is written.
    """
    await enforce_user_rate_limit(reviewer, "approve", RATE_LIMIT_DECISION)
    try:
        application, cooperative = await service.approve(
            db, application_id, reviewer, body.notes
        )
        return ApprovalResponse(
            application=ApplicationResponse.model_validate(application),
            cooperative_id=cooperative.id,
            registration_number=cooperative.registration_number,
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "approving application")


@router.post(
    "/{application_id}/reject",
    response_model=ApplicationResponse,
    summary="Reject Application",
)
async def reject(
    application_id: UUID,
    body: ReviewDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> ApplicationResponse:
    await enforce_user_rate_limit(reviewer, "reject", RATE_LIMIT_DECISION)
    try:
        application = await service.reject(db, application_id, reviewer, body.notes)
        return ApplicationResponse.model_validate(application)
    except ServiceError as e:
        raise_http_error(e)

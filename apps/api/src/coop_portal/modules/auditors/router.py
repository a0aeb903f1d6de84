"""
Auditors Router

Endpoints:
- GET /auditors/directory - Public auditor directory
- GET /auditors/directory/{id} - Public auditor profile
- POST /auditors/applications - Apply for accreditation
- GET /auditors/applications - Own applications, or all for reviewers
- GET /auditors/applications/{id} - Details
- POST /auditors/applications/{id}/start-review - Reviewer picks it up
- POST /auditors/applications/{id}/verification-notes - Record credential checks
- POST /auditors/applications/{id}/approve - Approve and list in directory
- POST /auditors/applications/{id}/reject - Reject (reason required)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_review_auditors
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    RATE_LIMIT_VERIFICATION,
    enforce_user_rate_limit,
)
from coop_portal.modules.auditors import service
from coop_portal.modules.auditors.models import (
    AuditorApplicationStatus,
    AuditorQualification,
    AuditorSpecialization,
)
from coop_portal.modules.auditors.schemas import (
    AuditorApplicationCreate,
    AuditorApplicationListResponse,
    AuditorApplicationResponse,
    AuditorApprovalResponse,
    AuditorDecisionRequest,
    AuditorDirectoryResponse,
    AuditorProfileResponse,
    VerificationNotesRequest,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = require_capability(can_review_auditors)


# ============================================================================
# Directory (public)
# ============================================================================


@router.get("/directory", response_model=AuditorDirectoryResponse, summary="Auditor Directory")
async def auditor_directory(
    qualification: AuditorQualification | None = Query(None),
    specialization: AuditorSpecialization | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> AuditorDirectoryResponse:
    try:
        result = await service.list_directory(
            db,
            qualification=qualification,
            specialization=specialization,
            search=search,
            page=page,
            page_size=page_size,
        )
        return AuditorDirectoryResponse(
            items=[AuditorProfileResponse.model_validate(p) for p in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing auditors")


@router.get("/directory/{profile_id}", response_model=AuditorProfileResponse, summary="Auditor Profile")
async def auditor_profile(
    profile_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> AuditorProfileResponse:
    try:
        return AuditorProfileResponse.model_validate(await service.get_profile(db, profile_id))
    except ServiceError as e:
        raise_http_error(e)


# ============================================================================
# Applications
# ============================================================================


@router.post(
    "/applications",
    response_model=AuditorApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply as Auditor",
)
async def apply(
    data: AuditorApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditorApplicationResponse:
    try:
        return AuditorApplicationResponse.model_validate(await service.apply(db, data, user))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting auditor application")


@router.get(
    "/applications",
    response_model=AuditorApplicationListResponse,
    summary="List Auditor Applications",
)
async def list_applications(
    status_filter: AuditorApplicationStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditorApplicationListResponse:
    try:
        result = await service.list_applications(
            db, user, status=status_filter, search=search, page=page, page_size=page_size
        )
        return AuditorApplicationListResponse(
            items=[AuditorApplicationResponse.model_validate(a) for a in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing auditor applications")


@router.get(
    "/applications/{application_id}",
    response_model=AuditorApplicationResponse,
    summary="Get Auditor Application",
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AuditorApplicationResponse:
    try:
        return AuditorApplicationResponse.model_validate(
            await service.get_application(db, application_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/applications/{application_id}/start-review",
    response_model=AuditorApplicationResponse,
    summary="Start Review",
)
async def start_review(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AuditorApplicationResponse:
    await enforce_user_rate_limit(reviewer, "auditor_start_review", RATE_LIMIT_ASSIGN)
    try:
        return AuditorApplicationResponse.model_validate(
            await service.start_review(db, application_id, reviewer)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/applications/{application_id}/verification-notes",
    response_model=AuditorApplicationResponse,
    summary="Add Verification Notes",
)
async def add_verification_notes(
    application_id: UUID,
    body: VerificationNotesRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AuditorApplicationResponse:
    await enforce_user_rate_limit(reviewer, "auditor_verification", RATE_LIMIT_VERIFICATION)
    try:
        return AuditorApplicationResponse.model_validate(
            await service.add_verification_notes(db, application_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/applications/{application_id}/approve",
    response_model=AuditorApprovalResponse,
    summary="Approve Auditor Application",
)
async def approve(
    application_id: UUID,
    body: AuditorDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AuditorApprovalResponse:
    await enforce_user_rate_limit(reviewer, "auditor_decision", RATE_LIMIT_DECISION)
    try:
        application, profile = await service.approve(db, application_id, reviewer, body.notes)
        return AuditorApprovalResponse(
            application=AuditorApplicationResponse.model_validate(application),
            profile=AuditorProfileResponse.model_validate(profile),
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "approving auditor application")


@router.post(
    "/applications/{application_id}/reject",
    response_model=AuditorApplicationResponse,
    summary="Reject Auditor Application",
)
async def reject(
    application_id: UUID,
    body: AuditorDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AuditorApplicationResponse:
    await enforce_user_rate_limit(reviewer, "auditor_decision", RATE_LIMIT_DECISION)
    try:
        return AuditorApplicationResponse.model_validate(
            await service.reject(db, application_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)

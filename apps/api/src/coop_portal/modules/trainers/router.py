"""
Trainers Router

Endpoints:
- GET /trainers/directory - Public trainer directory
- GET /trainers/directory/{id} - Public trainer profile
- POST /trainers/applications - Apply to become a trainer
- GET /trainers/applications - Own applications, or all for reviewers
- GET /trainers/applications/{id} - Details
- POST /trainers/applications/{id}/start-review - Reviewer picks it up
- POST /trainers/applications/{id}/approve - Approve (profile + TRAINER role)
- POST /trainers/applications/{id}/reject - Reject (reason required)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_review_trainers
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    enforce_user_rate_limit,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error
from coop_portal.modules.trainers import service
from coop_portal.modules.trainers.models import (
    EducationLevel,
    InstructionLanguage,
    TrainerApplicationStatus,
    TrainerSpecialization,
)
from coop_portal.modules.trainers.schemas import (
    TrainerApplicationCreate,
    TrainerApplicationListResponse,
    TrainerApplicationResponse,
    TrainerApprovalResponse,
    TrainerDecisionRequest,
    TrainerDirectoryResponse,
    TrainerProfileResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = require_capability(can_review_trainers)


# ============================================================================
# Directory (public)
# ============================================================================


@router.get("/directory", response_model=TrainerDirectoryResponse, summary="Trainer Directory")
async def trainer_directory(
    education_level: EducationLevel | None = Query(None),
    specialization: TrainerSpecialization | None = Query(None),
    language: InstructionLanguage | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> TrainerDirectoryResponse:
    try:
        result = await service.list_directory(
            db,
            education_level=education_level,
            specialization=specialization,
            language=language,
            search=search,
            page=page,
            page_size=page_size,
        )
        return TrainerDirectoryResponse(
            items=[TrainerProfileResponse.model_validate(p) for p in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing trainers")


@router.get("/directory/{profile_id}", response_model=TrainerProfileResponse, summary="Trainer Profile")
async def trainer_profile(
    profile_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> TrainerProfileResponse:
    try:
        return TrainerProfileResponse.model_validate(await service.get_profile(db, profile_id))
    except ServiceError as e:
        raise_http_error(e)


# ============================================================================
# Applications
# ============================================================================


@router.post(
    "/applications",
    response_model=TrainerApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply as Trainer",
)
async def apply(
    data: TrainerApplicationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TrainerApplicationResponse:
    try:
        return TrainerApplicationResponse.model_validate(await service.apply(db, data, user))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting trainer application")


@router.get(
    "/applications",
    response_model=TrainerApplicationListResponse,
    summary="List Trainer Applications",
)
async def list_applications(
    status_filter: TrainerApplicationStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TrainerApplicationListResponse:
    try:
        result = await service.list_applications(
            db, user, status=status_filter, search=search, page=page, page_size=page_size
        )
        return TrainerApplicationListResponse(
            items=[TrainerApplicationResponse.model_validate(a) for a in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing trainer applications")


@router.get(
    "/applications/{application_id}",
    response_model=TrainerApplicationResponse,
    summary="Get Trainer Application",
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TrainerApplicationResponse:
    try:
        return TrainerApplicationResponse.model_validate(
            await service.get_application(db, application_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/applications/{application_id}/start-review",
    response_model=TrainerApplicationResponse,
    summary="Start Review",
)
async def start_review(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> TrainerApplicationResponse:
    await enforce_user_rate_limit(reviewer, "trainer_start_review", RATE_LIMIT_ASSIGN)
    try:
        return TrainerApplicationResponse.model_validate(
            await service.start_review(db, application_id, reviewer)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/applications/{application_id}/approve",
    response_model=TrainerApprovalResponse,
    summary="Approve Trainer Application",
)
async def approve(
    application_id: UUID,
    body: TrainerDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> TrainerApprovalResponse:
    await enforce_user_rate_limit(reviewer, "trainer_decision", RATE_LIMIT_DECISION)
    try:
        application, profile = await service.approve(db, application_id, reviewer, body.notes)
        return TrainerApprovalResponse(
            application=TrainerApplicationResponse.model_validate(application),
            profile=TrainerProfileResponse.model_validate(profile),
        )
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "approving trainer application")


@router.post(
    "/applications/{application_id}/reject",
    response_model=TrainerApplicationResponse,
    summary="Reject Trainer Application",
)
async def reject(
    application_id: UUID,
    body: TrainerDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> TrainerApplicationResponse:
    await enforce_user_rate_limit(reviewer, "trainer_decision", RATE_LIMIT_DECISION)
    try:
        return TrainerApplicationResponse.model_validate(
            await service.reject(db, application_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)

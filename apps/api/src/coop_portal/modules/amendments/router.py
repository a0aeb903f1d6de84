"""
Amendment Requests Router

Endpoints:
- GET /amendments - List amendment requests in the caller's scope
- POST /amendments - Submit (cooperative admin)
- GET /amendments/{id} - Details
- POST /amendments/{id}/resubmit - Resubmit after an info request (submitter)
- POST /amendments/{id}/withdraw - Withdraw (submitter)
- POST /amendments/{id}/start-review - County admin picks it up
- POST /amendments/{id}/approve - Approve (effective date defaults to today)
- POST /amendments/{id}/reject - Reject (notes required)
- POST /amendments/{id}/request-info - Ask for more information (notes required)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser, get_current_user, require_capability
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_review_amendments, can_submit_amendments
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    enforce_user_rate_limit,
)
from coop_portal.modules.amendments import service
from coop_portal.modules.amendments.models import AmendmentStatus, AmendmentType
from coop_portal.modules.amendments.schemas import (
    AmendmentCreate,
    AmendmentDecisionRequest,
    AmendmentListResponse,
    AmendmentResponse,
    AmendmentResubmit,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

require_reviewer = require_capability(can_review_amendments)
require_submitter = require_capability(can_submit_amendments)


@router.get("", response_model=AmendmentListResponse, summary="List Amendments")
async def list_amendments(
    status_filter: AmendmentStatus | None = Query(None, alias="status"),
    amendment_type: AmendmentType | None = Query(None),
    cooperative_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AmendmentListResponse:
    try:
        result = await service.list_amendments(
            db,
            user,
            status=status_filter,
            amendment_type=amendment_type,
            cooperative_id=cooperative_id,
            search=search,
            page=page,
            page_size=page_size,
        )
        return AmendmentListResponse(
            items=[AmendmentResponse.model_validate(a) for a in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing amendments")


@router.post(
    "",
    response_model=AmendmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Amendment",
)
async def submit_amendment(
    data: AmendmentCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_submitter),
) -> AmendmentResponse:
    try:
        return AmendmentResponse.model_validate(await service.submit_amendment(db, data, user))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "submitting amendment")


@router.get("/{amendment_id}", response_model=AmendmentResponse, summary="Get Amendment")
async def get_amendment(
    amendment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AmendmentResponse:
    try:
        return AmendmentResponse.model_validate(
            await service.get_amendment(db, amendment_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{amendment_id}/resubmit", response_model=AmendmentResponse, summary="Resubmit")
async def resubmit_amendment(
    amendment_id: UUID,
    data: AmendmentResubmit,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_submitter),
) -> AmendmentResponse:
    try:
        return AmendmentResponse.model_validate(
            await service.resubmit_amendment(db, amendment_id, data, user)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{amendment_id}/withdraw", response_model=AmendmentResponse, summary="Withdraw")
async def withdraw_amendment(
    amendment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_submitter),
) -> AmendmentResponse:
    try:
        return AmendmentResponse.model_validate(
            await service.withdraw_amendment(db, amendment_id, user)
        )
    except ServiceError as e:
        raise_http_error(e)


# ============================================================================
# Review (county admin)
# ============================================================================


@router.post(
    "/{amendment_id}/start-review", response_model=AmendmentResponse, summary="Start Review"
)
async def start_review(
    amendment_id: UUID,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AmendmentResponse:
    await enforce_user_rate_limit(reviewer, "amendment_start_review", RATE_LIMIT_ASSIGN)
    try:
        return AmendmentResponse.model_validate(
            await service.start_review(db, amendment_id, reviewer)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{amendment_id}/approve", response_model=AmendmentResponse, summary="Approve")
async def approve_amendment(
    amendment_id: UUID,
    body: AmendmentDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AmendmentResponse:
    await enforce_user_rate_limit(reviewer, "amendment_decision", RATE_LIMIT_DECISION)
    try:
        amendment = await service.approve_amendment(
            db, amendment_id, reviewer, body.notes, body.effective_date
        )
        return AmendmentResponse.model_validate(amendment)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{amendment_id}/reject", response_model=AmendmentResponse, summary="Reject")
async def reject_amendment(
    amendment_id: UUID,
    body: AmendmentDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AmendmentResponse:
    await enforce_user_rate_limit(reviewer, "amendment_decision", RATE_LIMIT_DECISION)
    try:
        return AmendmentResponse.model_validate(
            await service.reject_amendment(db, amendment_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)


@router.post(
    "/{amendment_id}/request-info",
    response_model=AmendmentResponse,
    summary="Request Additional Information",
)
async def request_info(
    amendment_id: UUID,
    body: AmendmentDecisionRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: CurrentUser = Depends(require_reviewer),
) -> AmendmentResponse:
    await enforce_user_rate_limit(reviewer, "amendment_decision", RATE_LIMIT_DECISION)
    try:
        return AmendmentResponse.model_validate(
            await service.request_additional_info(db, amendment_id, reviewer, body.notes)
        )
    except ServiceError as e:
        raise_http_error(e)

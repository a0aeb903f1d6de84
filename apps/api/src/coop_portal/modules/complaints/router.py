"""
Complaints Router

Endpoints:
- POST /complaints - File a complaint (sign-in optional)
- GET /complaints - List complaints in the caller's scope
- GET /complaints/{id} - Details
- POST /complaints/{id}/assign - Assign an investigator (county staff)
- POST /complaints/{id}/status - Investigate / resolve / dismiss (county staff)
- PUT /complaints/{id}/investigation-notes - Update investigation notes (county staff)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import (
    CurrentUser,
    get_current_user,
    get_optional_user,
    require_capability,
)
from coop_portal.core.database import get_db
from coop_portal.core.permissions import can_manage_complaints
from coop_portal.core.rate_limit import (
    RATE_LIMIT_ASSIGN,
    RATE_LIMIT_DECISION,
    enforce_user_rate_limit,
)
from coop_portal.modules.complaints import service
from coop_portal.modules.complaints.models import (
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)
from coop_portal.modules.complaints.schemas import (
    AssignInvestigatorRequest,
    ComplaintCreate,
    ComplaintListResponse,
    ComplaintResponse,
    ComplaintStatusUpdate,
    InvestigationNotesRequest,
)
from coop_portal.modules.shared.errors import ServiceError, raise_http_error, raise_internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

require_investigator = require_capability(can_manage_complaints)


@router.post(
    "",
    response_model=ComplaintResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File Complaint",
)
async def submit_complaint(
    data: ComplaintCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> ComplaintResponse:
    try:
        return ComplaintResponse.model_validate(await service.submit_complaint(db, data, user))
    except ServiceError as e:
        raise_http_error(e)
    except Exception as e:
        raise_internal_error(e, "filing complaint")


@router.get("", response_model=ComplaintListResponse, summary="List Complaints")
async def list_complaints(
    status_filter: ComplaintStatus | None = Query(None, alias="status"),
    category: ComplaintCategory | None = Query(None),
    priority: ComplaintPriority | None = Query(None),
    cooperative_id: UUID | None = Query(None),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ComplaintListResponse:
    try:
        result = await service.list_complaints(
            db,
            user,
            status=status_filter,
            category=category,
            priority=priority,
            cooperative_id=cooperative_id,
            search=search,
            page=page,
            page_size=page_size,
        )
        return ComplaintListResponse(
            items=[ComplaintResponse.model_validate(c) for c in result["items"]],
            total_count=result["total_count"],
            page=result["page"],
            page_size=result["page_size"],
        )
    except Exception as e:
        raise_internal_error(e, "listing complaints")


@router.get("/{complaint_id}", response_model=ComplaintResponse, summary="Get Complaint")
async def get_complaint(
    complaint_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ComplaintResponse:
    try:
        return ComplaintResponse.model_validate(await service.get_complaint(db, complaint_id, user))
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{complaint_id}/assign", response_model=ComplaintResponse, summary="Assign Investigator")
async def assign_investigator(
    complaint_id: UUID,
    body: AssignInvestigatorRequest,
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_investigator),
) -> ComplaintResponse:
    await enforce_user_rate_limit(actor, "complaint_assign", RATE_LIMIT_ASSIGN)
    try:
        complaint = await service.assign_investigator(db, complaint_id, body.investigator_id, actor)
        return ComplaintResponse.model_validate(complaint)
    except ServiceError as e:
        raise_http_error(e)


@router.post("/{complaint_id}/status", response_model=ComplaintResponse, summary="Update Status")
async def update_status(
    complaint_id: UUID,
    body: ComplaintStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_investigator),
) -> ComplaintResponse:
    await enforce_user_rate_limit(actor, "complaint_decision", RATE_LIMIT_DECISION)
    try:
        complaint = await service.update_status(db, complaint_id, body.status, actor, body.notes)
        return ComplaintResponse.model_validate(complaint)
    except ServiceError as e:
        raise_http_error(e)


@router.put(
    "/{complaint_id}/investigation-notes",
    response_model=ComplaintResponse,
    summary="Update Investigation Notes",
)
async def add_investigation_notes(
    complaint_id: UUID,
    body: InvestigationNotesRequest,
    db: AsyncSession = Depends(get_db),
    actor: CurrentUser = Depends(require_investigator),
) -> ComplaintResponse:
    try:
        complaint = await service.add_investigation_notes(db, complaint_id, body.notes, actor)
        return ComplaintResponse.model_validate(complaint)
    except ServiceError as e:
        raise_http_error(e)

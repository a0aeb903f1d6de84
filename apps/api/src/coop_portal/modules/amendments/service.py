"""
Amendments Service

Cooperative admins submit amendment requests for their cooperative; county
admins review them. Approval stamps ``approved_by``/``approved_at`` and the
``effective_date`` (today unless given). The submitter receives exactly one
notification per decision.
"""

import logging
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.modules.amendments import repository
from coop_portal.modules.amendments.models import AmendmentRequest, AmendmentStatus, AmendmentType
from coop_portal.modules.amendments.repository import AMENDMENT_SCOPE, AMENDMENT_WORKFLOW
from coop_portal.modules.amendments.schemas import AmendmentCreate, AmendmentResubmit
from coop_portal.modules.cooperatives import service as cooperative_service
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.shared.errors import NotFoundError, PermissionDeniedError
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query

logger = logging.getLogger(__name__)


def _submitter_notice(
    amendment: AmendmentRequest,
    title: str,
    message: str,
    type: NotificationType,
) -> Notice:
    return Notice(
        user_id=amendment.submitted_by,
        title=title,
        message=message,
        type=type,
        link=f"/amendments/{amendment.id}",
    )


async def get_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    user: CurrentUser,
) -> AmendmentRequest:
    """
    Get an amendment the caller may see.

    Raises:
        NotFoundError: If missing or outside the caller's scope
    """
    amendment = await repository.get_by_id(db, amendment_id)
    if amendment is None:
        raise NotFoundError("Amendment", amendment_id)

    if amendment.submitted_by != user.id:
        try:
            await cooperative_service.get_cooperative(db, amendment.cooperative_id, user)
        except NotFoundError:
            raise NotFoundError("Amendment", amendment_id) from None

    return amendment


async def list_amendments(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: AmendmentStatus | None = None,
    amendment_type: AmendmentType | None = None,
    cooperative_id: UUID | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(
        equals={"status": status, "amendment_type": amendment_type},
        search=search,
        page=page,
        page_size=page_size,
    )
    items, total = await scoped_query(
        db, AMENDMENT_SCOPE, ListScope.for_user(user, cooperative_id), filters
    )
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def submit_amendment(
    db: AsyncSession,
    data: AmendmentCreate,
    user: CurrentUser,
) -> AmendmentRequest:
    """
    Submit an amendment request on behalf of the caller's cooperative.

    Raises:
        NotFoundError: If the cooperative is missing or not the caller's
    """
    cooperative = await cooperative_service.get_cooperative(db, data.cooperative_id, user)

    amendment = await repository.create(
        db,
        cooperative_id=cooperative.id,
        amendment_type=data.amendment_type,
        title=data.title,
        description=data.description,
        justification=data.justification,
        current_value=data.current_value,
        proposed_value=data.proposed_value,
        supporting_document_url=data.supporting_document_url,
        status=AmendmentStatus.SUBMITTED,
        submitted_by=user.id,
        submitted_at=datetime.now(UTC),
    )
    await db.commit()
    await db.refresh(amendment)

    logger.info(
        f"Amendment {amendment.request_number} ({amendment.amendment_type.value}) "
        f"submitted for cooperative {cooperative.id} by {user.id}"
    )
    return amendment


async def _get_own_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    user: CurrentUser,
) -> AmendmentRequest:
    amendment = await get_amendment(db, amendment_id, user)
    if amendment.submitted_by != user.id:
        raise PermissionDeniedError("Only the submitter can change this amendment request.")
    return amendment


async def resubmit_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    data: AmendmentResubmit,
    user: CurrentUser,
) -> AmendmentRequest:
    """ADDITIONAL_INFO_REQUIRED -> SUBMITTED with the requested details."""
    amendment = await _get_own_amendment(db, amendment_id, user)

    values = data.model_dump(exclude_unset=True, exclude_none=True)
    values["submitted_at"] = datetime.now(UTC)

    await reviews.transition(
        db, AMENDMENT_WORKFLOW, amendment, AmendmentStatus.SUBMITTED, values=values
    )
    await db.refresh(amendment)
    return amendment


async def withdraw_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    user: CurrentUser,
) -> AmendmentRequest:
    amendment = await _get_own_amendment(db, amendment_id, user)

    await reviews.transition(db, AMENDMENT_WORKFLOW, amendment, AmendmentStatus.WITHDRAWN)
    await db.refresh(amendment)
    return amendment


async def start_review(
    db: AsyncSession,
    amendment_id: UUID,
    reviewer: CurrentUser,
) -> AmendmentRequest:
    """SUBMITTED -> UNDER_REVIEW."""
    amendment = await get_amendment(db, amendment_id, reviewer)

    await reviews.assign(db, AMENDMENT_WORKFLOW, amendment, reviewer.id, reviewer.id)
    await db.refresh(amendment)
    return amendment


async def approve_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    reviewer: CurrentUser,
    notes: str | None = None,
    effective_date: date | None = None,
) -> AmendmentRequest:
    """
    Approve an amendment.

    Raises:
        RequestAlreadyDecidedError: If already decided
        ConcurrentModificationError: If another reviewer decided first
    """
    amendment = await get_amendment(db, amendment_id, reviewer)
    effective = effective_date or datetime.now(UTC).date()

    await reviews.decide(
        db,
        AMENDMENT_WORKFLOW,
        amendment,
        AmendmentStatus.APPROVED,
        reviewer.id,
        notes,
        extra={"effective_date": effective},
        notice=_submitter_notice(
            amendment,
            "Amendment Approved",
            f"Amendment request {amendment.request_number} ({amendment.title}) has been "
            f"approved, effective {effective.isoformat()}.",
            NotificationType.SUCCESS,
        ),
    )
    await db.refresh(amendment)
    return amendment


async def reject_amendment(
    db: AsyncSession,
    amendment_id: UUID,
    reviewer: CurrentUser,
    notes: str | None,
) -> AmendmentRequest:
    """
    Reject an amendment.

    Raises:
        NotesRequiredError: If notes are empty
        RequestAlreadyDecidedError: If already decided
    """
    amendment = await get_amendment(db, amendment_id, reviewer)

    await reviews.decide(
        db,
        AMENDMENT_WORKFLOW,
        amendment,
        AmendmentStatus.REJECTED,
        reviewer.id,
        notes,
        notice=_submitter_notice(
            amendment,
            "Amendment Rejected",
            f"Amendment request {amendment.request_number} was not approved. Reason: {notes}",
            NotificationType.WARNING,
        ),
    )
    await db.refresh(amendment)
    return amendment


async def request_additional_info(
    db: AsyncSession,
    amendment_id: UUID,
    reviewer: CurrentUser,
    notes: str | None,
) -> AmendmentRequest:
    amendment = await get_amendment(db, amendment_id, reviewer)

    await reviews.decide(
        db,
        AMENDMENT_WORKFLOW,
        amendment,
        AmendmentStatus.ADDITIONAL_INFO_REQUIRED,
        reviewer.id,
        notes,
        notice=_submitter_notice(
            amendment,
            "Additional Information Required",
            f"Amendment request {amendment.request_number} needs more information: {notes}",
            NotificationType.INFO,
        ),
    )
    await db.refresh(amendment)
    return amendment

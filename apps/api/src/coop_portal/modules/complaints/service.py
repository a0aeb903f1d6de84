"""
Complaints Service

Filing, investigator assignment and resolution of complaints.

- Anyone may file, signed in or not; anonymous complaints drop the account
  link and phone and are filed under the name "Anonymous"
- The cooperative's admins are told about new complaints against it
- Assigning an investigator moves RECEIVED -> INVESTIGATING and notifies them
- RESOLVED / DISMISSED notify the complainant; dismissal needs a reason
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, is_county_role, is_unscoped_role
from coop_portal.modules.complaints import repository
from coop_portal.modules.complaints.models import (
    Complaint,
    ComplaintCategory,
    ComplaintPriority,
    ComplaintStatus,
)
from coop_portal.modules.complaints.repository import COMPLAINT_SCOPE, COMPLAINT_WORKFLOW
from coop_portal.modules.complaints.schemas import ComplaintCreate
from coop_portal.modules.cooperatives import service as cooperative_service
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.reviews.service import RequestAlreadyDecidedError
from coop_portal.modules.shared.errors import NotFoundError, ValidationFailedError
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query
from coop_portal.modules.users import service as user_service
from coop_portal.modules.users.repository import RoleGrantRepository

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anonymous"


def _can_view(user: CurrentUser, complaint: Complaint) -> bool:
    if is_unscoped_role(user.role):
        return True
    if is_county_role(user.role):
        return user.tenant_id is not None and complaint.tenant_id == user.tenant_id
    if user.role == Role.COOPERATIVE_ADMIN and complaint.cooperative_id is not None:
        if complaint.cooperative_id == user.cooperative_id:
            return True
    return complaint.complainant_user_id is not None and complaint.complainant_user_id == user.id


def _complainant_notice(complaint: Complaint, title: str, message: str, type: NotificationType) -> Notice | None:
    if complaint.complainant_user_id is None:
        return None
    return Notice(
        user_id=complaint.complainant_user_id,
        title=title,
        message=message,
        type=type,
        link=f"/complaints/{complaint.id}",
    )


async def get_complaint(db: AsyncSession, complaint_id: UUID, user: CurrentUser) -> Complaint:
    """
    Raises:
        NotFoundError: If missing or outside the caller's scope
    """
    complaint = await repository.get_by_id(db, complaint_id)
    if complaint is None or not _can_view(user, complaint):
        raise NotFoundError("Complaint", complaint_id)
    return complaint


async def list_complaints(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: ComplaintStatus | None = None,
    category: ComplaintCategory | None = None,
    priority: ComplaintPriority | None = None,
    cooperative_id: UUID | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(
        equals={"status": status, "category": category, "priority": priority},
        search=search,
        page=page,
        page_size=page_size,
    )
    items, total = await scoped_query(
        db, COMPLAINT_SCOPE, ListScope.for_user(user, cooperative_id), filters
    )
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def submit_complaint(
    db: AsyncSession,
    data: ComplaintCreate,
    user: CurrentUser | None = None,
) -> Complaint:
    """
    File a complaint.

    Args:
        db: Database session
        data: Complaint details
        user: Signed-in complainant, or None for the public form

    Returns:
        Created complaint

    Raises:
        NotFoundError: If the cooperative does not exist
        ValidationFailedError: If a public complaint has no contact email
    """
    tenant_id = user.tenant_id if user else None
    if data.cooperative_id is not None:
        cooperative = await cooperative_service.get_cooperative(db, data.cooperative_id)
        tenant_id = cooperative.tenant_id

    if data.is_anonymous:
        complainant_user_id = None
        name = ANONYMOUS_NAME
        phone = None
    else:
        if user is None and not data.complainant_email:
            raise ValidationFailedError(
                {"complainant_email": "An email address is required so we can follow up"}
            )
        complainant_user_id = user.id if user else None
        name = data.complainant_name.strip()
        phone = data.complainant_phone

    complaint = await repository.create(
        db,
        cooperative_id=data.cooperative_id,
        tenant_id=tenant_id,
        complainant_user_id=complainant_user_id,
        complainant_name=name,
        complainant_phone=phone,
        complainant_email=data.complainant_email,
        is_anonymous=data.is_anonymous,
        category=data.category,
        priority=data.priority,
        subject=data.subject,
        description=data.description,
        evidence_url=data.evidence_url,
    )
    await db.commit()
    await db.refresh(complaint)

    logger.info(
        f"Complaint {complaint.complaint_number} filed "
        f"({complaint.category.value}/{complaint.priority.value}, anonymous={complaint.is_anonymous})"
    )

    if complaint.cooperative_id is not None:
        admin_ids = await RoleGrantRepository.list_holder_ids(
            db, Role.COOPERATIVE_ADMIN, cooperative_id=complaint.cooperative_id
        )
        for admin_id in admin_ids:
            await notify_safely(
                db,
                Notice(
                    user_id=admin_id,
                    title="New Complaint Filed",
                    message=(
                        f"A new {complaint.priority.value} priority complaint has been filed: "
                        f"{complaint.subject}"
                    ),
                    type=NotificationType.WARNING,
                    link=f"/complaints/{complaint.id}",
                ),
            )

    return complaint


async def assign_investigator(
    db: AsyncSession,
    complaint_id: UUID,
    investigator_id: UUID,
    actor: CurrentUser,
) -> Complaint:
    """
    Assign an investigator: RECEIVED -> INVESTIGATING.

    The investigator is notified ("Complaint Assigned to You") unless they
    assigned themselves.

    Raises:
        NotFoundError: If the complaint or investigator does not exist
        RequestAlreadyDecidedError: If the complaint is closed
    """
    complaint = await get_complaint(db, complaint_id, actor)
    await user_service.get_user(db, investigator_id)

    await reviews.assign(
        db,
        COMPLAINT_WORKFLOW,
        complaint,
        investigator_id,
        actor.id,
        notice=Notice(
            user_id=investigator_id,
            title="Complaint Assigned to You",
            message=f"You have been assigned to investigate complaint: {complaint.subject}",
            type=NotificationType.INFO,
            link=f"/complaints/{complaint.id}",
        ),
    )
    await db.refresh(complaint)
    return complaint


async def update_status(
    db: AsyncSession,
    complaint_id: UUID,
    status: ComplaintStatus,
    actor: CurrentUser,
    notes: str | None = None,
) -> Complaint:
    """
    Move a complaint forward and tell the complainant.

    INVESTIGATING assigns the actor; RESOLVED and DISMISSED close the
    complaint, stamping ``resolved_by``/``resolved_at`` and ``resolution``.

    Raises:
        NotesRequiredError: If dismissing without a reason
        RequestAlreadyDecidedError: If the complaint is already closed
    """
    complaint = await get_complaint(db, complaint_id, actor)

    if status == ComplaintStatus.INVESTIGATING:
        await reviews.assign(db, COMPLAINT_WORKFLOW, complaint, actor.id, actor.id)
        notice = _complainant_notice(
            complaint,
            "Complaint Under Investigation",
            f'Your complaint "{complaint.subject}" is now being investigated.',
            NotificationType.INFO,
        )
        if notice is not None:
            await notify_safely(db, notice)
    elif status == ComplaintStatus.RESOLVED:
        await reviews.decide(
            db,
            COMPLAINT_WORKFLOW,
            complaint,
            status,
            actor.id,
            notes,
            notice=_complainant_notice(
                complaint,
                "Complaint Resolved",
                f'Your complaint "{complaint.subject}" has been resolved.',
                NotificationType.SUCCESS,
            ),
        )
    else:
        await reviews.decide(
            db,
            COMPLAINT_WORKFLOW,
            complaint,
            status,
            actor.id,
            notes,
            notice=_complainant_notice(
                complaint,
                "Complaint Dismissed",
                f'Your complaint "{complaint.subject}" has been dismissed. {notes or ""}'.strip(),
                NotificationType.WARNING,
            ),
        )

    await db.refresh(complaint)
    return complaint


async def add_investigation_notes(
    db: AsyncSession,
    complaint_id: UUID,
    notes: str,
    actor: CurrentUser,
) -> Complaint:
    """
    Replace the investigation notes on an open complaint.

    Raises:
        RequestAlreadyDecidedError: If the complaint is closed
    """
    complaint = await get_complaint(db, complaint_id, actor)

    if COMPLAINT_WORKFLOW.is_terminal(complaint.status):
        raise RequestAlreadyDecidedError(COMPLAINT_WORKFLOW.entity, complaint.status)

    complaint.investigation_notes = notes.strip()
    await db.commit()
    await db.refresh(complaint)

    logger.info(f"Investigation notes updated on complaint {complaint.complaint_number} by {actor.id}")
    return complaint

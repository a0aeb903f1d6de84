"""
Auditors Service

Auditor accreditation workflow and the public auditor directory.

Approval creates (or reactivates) the directory profile in the same
transaction as the status change. It does not grant the AUDITOR role:
that role carries national read access and is assigned by a super admin.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, can_review_auditors
from coop_portal.modules.auditors import repository
from coop_portal.modules.auditors.models import (
    AuditorApplication,
    AuditorApplicationStatus,
    AuditorProfile,
    AuditorQualification,
    AuditorSpecialization,
)
from coop_portal.modules.auditors.repository import (
    AUDITOR_APPLICATION_SCOPE,
    AUDITOR_WORKFLOW,
    OPEN_STATUSES,
)
from coop_portal.modules.auditors.schemas import AuditorApplicationCreate
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.reviews.service import RequestAlreadyDecidedError
from coop_portal.modules.shared.errors import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query

logger = logging.getLogger(__name__)


class OpenAuditorApplicationError(ConflictError):
    def __init__(self, application_number: str):
        super().__init__(
            message=f"You already have an auditor application in progress ({application_number}).",
            error_code="AUDITOR_APPLICATION_OPEN",
        )


class AlreadyAuditorError(ConflictError):
    def __init__(self):
        super().__init__(
            message="You are already listed as an accredited auditor.",
            error_code="ALREADY_AUDITOR",
        )


async def get_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> AuditorApplication:
    """Reviewers see every application; applicants only their own."""
    application = await repository.get_by_id(db, application_id)
    if application is None or (
        not can_review_auditors(user.role) and application.user_id != user.id
    ):
        raise NotFoundError("Auditor application", application_id)
    return application


async def list_applications(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: AuditorApplicationStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(equals={"status": status}, search=search, page=page, page_size=page_size)
    scope = ListScope.for_user(user)
    if not can_review_auditors(user.role):
        scope = ListScope(role=Role.CITIZEN, user_id=user.id)

    items, total = await scoped_query(db, AUDITOR_APPLICATION_SCOPE, scope, filters)
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def apply(
    db: AsyncSession,
    data: AuditorApplicationCreate,
    user: CurrentUser,
) -> AuditorApplication:
    """
    Submit an auditor application.

    Raises:
        ValidationFailedError: If the terms were not accepted
        OpenAuditorApplicationError: If one is already pending or under review
        AlreadyAuditorError: If the user already has an active directory profile
    """
    if not data.terms_accepted:
        raise ValidationFailedError(
            {"terms_accepted": "You must accept the terms and conditions to apply"}
        )

    existing = await repository.get_open_for_user(db, user.id)
    if existing is not None:
        raise OpenAuditorApplicationError(existing.application_number)

    profile = await repository.get_profile_by_user(db, user.id)
    if profile is not None and profile.is_active:
        raise AlreadyAuditorError()

    now = datetime.now(UTC)
    fields = data.model_dump()
    fields["specializations"] = [s.value for s in data.specializations]

    application = await repository.create_application(
        db,
        user_id=user.id,
        terms_accepted_at=now,
        submitted_at=now,
        **fields,
    )
    await db.commit()
    await db.refresh(application)

    logger.info(f"Auditor application {application.application_number} submitted by {user.id}")
    return application


async def start_review(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
) -> AuditorApplication:
    application = await get_application(db, application_id, reviewer)

    await reviews.assign(db, AUDITOR_WORKFLOW, application, reviewer.id, reviewer.id)
    await db.refresh(application)
    return application


async def add_verification_notes(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    notes: str,
) -> AuditorApplication:
    """
    Record the outcome of checking credentials with the certification body.

    Raises:
        RequestAlreadyDecidedError: If the application is already approved or rejected
    """
    application = await get_application(db, application_id, reviewer)
    if application.status not in OPEN_STATUSES:
        raise RequestAlreadyDecidedError(AUDITOR_WORKFLOW.entity, application.status)

    application.verification_notes = notes
    await db.commit()
    await db.refresh(application)

    logger.info(f"Verification notes added to {application.application_number} by {reviewer.id}")
    return application


async def approve(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    notes: str | None = None,
) -> tuple[AuditorApplication, AuditorProfile]:
    """
    Approve an auditor application and list the auditor in the directory.

    Returns:
        Tuple of (application, profile)
    """
    application = await get_application(db, application_id, reviewer)

    try:
        await reviews.decide(
            db,
            AUDITOR_WORKFLOW,
            application,
            AuditorApplicationStatus.APPROVED,
            reviewer.id,
            notes,
            commit=False,
        )

        profile = await repository.get_profile_by_user(db, application.user_id)
        if profile is None:
            profile = await repository.create_profile(db, application)
        else:
            repository.copy_credentials(profile, application)
            profile.is_active = True

        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.error(f"Approval of auditor application {application_id} rolled back", exc_info=True)
        raise

    await db.refresh(application)
    await db.refresh(profile)

    logger.info(f"Auditor application {application.application_number} approved by {reviewer.id}")

    await notify_safely(
        db,
        Notice(
            user_id=application.user_id,
            title="Auditor Application Approved",
            message=(
                f"Your auditor application {application.application_number} has been approved. "
                "You are now listed in the auditor directory."
            ),
            type=NotificationType.SUCCESS,
            link="/auditors",
        ),
    )
    return application, profile


async def reject(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    reason: str | None,
) -> AuditorApplication:
    application = await get_application(db, application_id, reviewer)

    await reviews.decide(
        db,
        AUDITOR_WORKFLOW,
        application,
        AuditorApplicationStatus.REJECTED,
        reviewer.id,
        reason,
        notice=Notice(
            user_id=application.user_id,
            title="Auditor Application Rejected",
            message=(
                f"Your auditor application {application.application_number} was not approved. "
                f"Reason: {reason}"
            ),
            type=NotificationType.WARNING,
        ),
    )
    await db.refresh(application)
    return application


async def list_directory(
    db: AsyncSession,
    *,
    qualification: AuditorQualification | None = None,
    specialization: AuditorSpecialization | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 12,
) -> dict:
    page_size = min(max(1, page_size), 100)
    items, total = await repository.list_directory(
        db,
        qualification=qualification,
        specialization=specialization,
        search=search,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": items, "total_count": total, "page": page, "page_size": page_size}


async def get_profile(db: AsyncSession, profile_id: UUID) -> AuditorProfile:
    profile = await repository.get_profile(db, profile_id)
    if profile is None or not profile.is_active:
        raise NotFoundError("Auditor", profile_id)
    return profile

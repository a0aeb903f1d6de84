"""
Trainers Service

Trainer accreditation workflow and the public trainer directory.

Approval is atomic: the application status change, the directory profile
and the TRAINER role grant are committed together or not at all.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.permissions import Role, can_review_trainers
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.shared.errors import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query
from coop_portal.modules.trainers import repository
from coop_portal.modules.trainers.models import (
    EducationLevel,
    InstructionLanguage,
    TrainerApplication,
    TrainerApplicationStatus,
    TrainerProfile,
    TrainerSpecialization,
)
from coop_portal.modules.trainers.repository import TRAINER_APPLICATION_SCOPE, TRAINER_WORKFLOW
from coop_portal.modules.trainers.schemas import TrainerApplicationCreate
from coop_portal.modules.users import service as user_service

logger = logging.getLogger(__name__)


class OpenTrainerApplicationError(ConflictError):
    def __init__(self, application_number: str):
        super().__init__(
            message=f"You already have a trainer application in progress ({application_number}).",
            error_code="TRAINER_APPLICATION_OPEN",
        )


class AlreadyTrainerError(ConflictError):
    def __init__(self):
        super().__init__(
            message="You are already a registered trainer.",
            error_code="ALREADY_TRAINER",
        )


async def get_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> TrainerApplication:
    """Reviewers see every application; applicants only their own."""
    application = await repository.get_by_id(db, application_id)
    if application is None or (
        not can_review_trainers(user.role) and application.user_id != user.id
    ):
        raise NotFoundError("Trainer application", application_id)
    return application


async def list_applications(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: TrainerApplicationStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(equals={"status": status}, search=search, page=page, page_size=page_size)
    scope = ListScope.for_user(user)
    if not can_review_trainers(user.role):
        # Applicants see their own applications regardless of other roles they hold
        scope = ListScope(role=Role.CITIZEN, user_id=user.id)

    items, total = await scoped_query(db, TRAINER_APPLICATION_SCOPE, scope, filters)
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def apply(
    db: AsyncSession,
    data: TrainerApplicationCreate,
    user: CurrentUser,
) -> TrainerApplication:
    """
    Submit a trainer application.

    Raises:
        ValidationFailedError: If the terms were not accepted
        OpenTrainerApplicationError: If one is already pending or under review
        AlreadyTrainerError: If the user already has an active profile
    """
    if not data.terms_accepted:
        raise ValidationFailedError(
            {"terms_accepted": "You must accept the terms and conditions to apply"}
        )

    existing = await repository.get_open_for_user(db, user.id)
    if existing is not None:
        raise OpenTrainerApplicationError(existing.application_number)

    profile = await repository.get_profile_by_user(db, user.id)
    if profile is not None and profile.is_active:
        raise AlreadyTrainerError()

    now = datetime.now(UTC)
    fields = data.model_dump()
    fields["specializations"] = [s.value for s in data.specializations]
    fields["languages"] = [lang.value for lang in data.languages]

    application = await repository.create_application(
        db,
        user_id=user.id,
        terms_accepted_at=now,
        submitted_at=now,
        **fields,
    )
    await db.commit()
    await db.refresh(application)

    logger.info(f"Trainer application {application.application_number} submitted by {user.id}")
    return application


async def start_review(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
) -> TrainerApplication:
    application = await get_application(db, application_id, reviewer)

    await reviews.assign(db, TRAINER_WORKFLOW, application, reviewer.id, reviewer.id)
    await db.refresh(application)
    return application


async def approve(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    notes: str | None = None,
) -> tuple[TrainerApplication, TrainerProfile]:
    """
    Approve a trainer application.

    In one transaction: mark the application APPROVED, create (or reactivate)
    the trainer's directory profile and grant the TRAINER role. Any failure
    rolls everything back.

    Returns:
        Tuple of (application, profile)
    """
    application = await get_application(db, application_id, reviewer)

    try:
        await reviews.decide(
            db,
            TRAINER_WORKFLOW,
            application,
            TrainerApplicationStatus.APPROVED,
            reviewer.id,
            notes,
            commit=False,
        )

        profile = await repository.get_profile_by_user(db, application.user_id)
        if profile is None:
            profile = await repository.create_profile(db, application)
        else:
            profile.application_id = application.id
            profile.education_level = application.education_level
            profile.institution = application.institution
            profile.years_experience = application.years_experience
            profile.specializations = list(application.specializations or [])
            profile.languages = list(application.languages or [])
            profile.is_active = True

        await user_service.grant_role(
            db,
            user_id=application.user_id,
            role=Role.TRAINER,
            tenant_id=None,
            cooperative_id=None,
            assigned_by=reviewer.id,
        )

        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.error(f"Approval of trainer application {application_id} rolled back", exc_info=True)
        raise

    await db.refresh(application)
    await db.refresh(profile)

    logger.info(f"Trainer application {application.application_number} approved by {reviewer.id}")

    await notify_safely(
        db,
        Notice(
            user_id=application.user_id,
            title="Trainer Application Approved",
            message=(
                f"Your trainer application {application.application_number} has been approved. "
                "You are now listed in the trainer directory."
            ),
            type=NotificationType.SUCCESS,
            link="/trainers",
        ),
    )
    return application, profile


async def reject(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    reason: str | None,
) -> TrainerApplication:
    """
    Raises:
        NotesRequiredError: If no reason is given
        RequestAlreadyDecidedError: If already decided
    """
    application = await get_application(db, application_id, reviewer)

    await reviews.decide(
        db,
        TRAINER_WORKFLOW,
        application,
        TrainerApplicationStatus.REJECTED,
        reviewer.id,
        reason,
        notice=Notice(
            user_id=application.user_id,
            title="Trainer Application Rejected",
            message=(
                f"Your trainer application {application.application_number} was not approved. "
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
    education_level: EducationLevel | None = None,
    specialization: TrainerSpecialization | None = None,
    language: InstructionLanguage | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 12,
) -> dict:
    page_size = min(max(1, page_size), 100)
    items, total = await repository.list_directory(
        db,
        education_level=education_level,
        specialization=specialization,
        language=language,
        search=search,
        skip=(max(1, page) - 1) * page_size,
        limit=page_size,
    )
    return {"items": items, "total_count": total, "page": page, "page_size": page_size}


async def get_profile(db: AsyncSession, profile_id: UUID) -> TrainerProfile:
    profile = await repository.get_profile(db, profile_id)
    if profile is None or not profile.is_active:
        raise NotFoundError("Trainer", profile_id)
    return profile

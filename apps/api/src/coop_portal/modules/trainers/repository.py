"""
Trainers Repository

Trainer applications (with their review state machine) and the trainer
directory.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.reviews.workflow import ReviewWorkflow
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import (
    EducationLevel,
    InstructionLanguage,
    TrainerApplication,
    TrainerApplicationStatus,
    TrainerProfile,
    TrainerSpecialization,
)

S = TrainerApplicationStatus

VALID_STATUS_TRANSITIONS: dict[TrainerApplicationStatus, frozenset[TrainerApplicationStatus]] = {
    S.PENDING: frozenset({S.UNDER_REVIEW, S.APPROVED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.REJECTED}),
    S.APPROVED: frozenset(),
    S.REJECTED: frozenset(),
}

TRAINER_WORKFLOW = ReviewWorkflow(
    model=TrainerApplication,
    entity="Trainer application",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.APPROVED}),
    negative_outcomes=frozenset({S.REJECTED}),
    assigned_status=S.UNDER_REVIEW,
    outcome_notes_fields={S.REJECTED: "rejection_reason"},
    outcome_stamps={S.APPROVED: ("approved_by", "approved_at")},
)

TRAINER_APPLICATION_SCOPE = ScopeSpec(
    model=TrainerApplication,
    cooperative_column=None,
    owner_column="user_id",
    search_columns=("full_name", "email"),
)

OPEN_STATUSES = (S.PENDING, S.UNDER_REVIEW)


def _json_contains(column, value: str):
    # JSON arrays of enum values; a quoted substring match works on every backend
    return cast(column, String).like(f'%"{value}"%')


async def get_by_id(db: AsyncSession, id: UUID) -> TrainerApplication | None:
    return await db.get(TrainerApplication, id)


async def get_open_for_user(db: AsyncSession, user_id: UUID) -> TrainerApplication | None:
    result = await db.execute(
        select(TrainerApplication)
        .where(
            TrainerApplication.user_id == user_id,
            TrainerApplication.status.in_(OPEN_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_application(db: AsyncSession, **fields) -> TrainerApplication:
    """Insert a PENDING application numbered ``TRN-{year}-{seq:04d}``. Flushes only."""
    year = datetime.now(UTC).year

    def build(number: str) -> TrainerApplication:
        return TrainerApplication(
            application_number=number,
            status=TrainerApplicationStatus.PENDING,
            **fields,
        )

    async def next_number() -> str:
        return await generate_number(db, TrainerApplication.application_number, "TRN", year, 4)

    return await insert_with_number(db, build, next_number, prefix="TRN")


async def get_profile_by_user(db: AsyncSession, user_id: UUID) -> TrainerProfile | None:
    result = await db.execute(select(TrainerProfile).where(TrainerProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, profile_id: UUID) -> TrainerProfile | None:
    return await db.get(TrainerProfile, profile_id)


async def create_profile(db: AsyncSession, application: TrainerApplication) -> TrainerProfile:
    """Insert the directory profile for an approved application. Flushes only."""
    profile = TrainerProfile(
        user_id=application.user_id,
        application_id=application.id,
        full_name=application.full_name,
        email=application.email,
        phone=application.phone,
        education_level=application.education_level,
        institution=application.institution,
        years_experience=application.years_experience,
        specializations=list(application.specializations or []),
        languages=list(application.languages or []),
        is_active=True,
    )
    db.add(profile)
    await db.flush()
    return profile


async def list_directory(
    db: AsyncSession,
    *,
    education_level: EducationLevel | None = None,
    specialization: TrainerSpecialization | None = None,
    language: InstructionLanguage | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 12,
) -> tuple[list[TrainerProfile], int]:
    """
    Active trainer profiles, most experienced in delivery first.

    Returns:
        Tuple of (profiles, total count)
    """
    query = select(TrainerProfile).where(TrainerProfile.is_active.is_(True))

    if education_level:
        query = query.where(TrainerProfile.education_level == education_level)
    if specialization:
        query = query.where(_json_contains(TrainerProfile.specializations, specialization.value))
    if language:
        query = query.where(_json_contains(TrainerProfile.languages, language.value))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                TrainerProfile.full_name.ilike(pattern),
                TrainerProfile.institution.ilike(pattern),
            )
        )

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    query = (
        query.order_by(TrainerProfile.total_programs_delivered.desc(), TrainerProfile.full_name)
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total

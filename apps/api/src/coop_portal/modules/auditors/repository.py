"""
Auditors Repository

Auditor applications (with their review state machine) and the auditor
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
    AuditorApplication,
    AuditorApplicationStatus,
    AuditorProfile,
    AuditorQualification,
    AuditorSpecialization,
)

S = AuditorApplicationStatus

VALID_STATUS_TRANSITIONS: dict[AuditorApplicationStatus, frozenset[AuditorApplicationStatus]] = {
    S.PENDING: frozenset({S.UNDER_REVIEW, S.APPROVED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.REJECTED}),
    S.APPROVED: frozenset(),
    S.REJECTED: frozenset(),
}

AUDITOR_WORKFLOW = ReviewWorkflow(
    model=AuditorApplication,
    entity="Auditor application",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.APPROVED}),
    negative_outcomes=frozenset({S.REJECTED}),
    assigned_status=S.UNDER_REVIEW,
    outcome_notes_fields={S.REJECTED: "rejection_reason"},
    outcome_stamps={S.APPROVED: ("approved_by", "approved_at")},
)

AUDITOR_APPLICATION_SCOPE = ScopeSpec(
    model=AuditorApplication,
    cooperative_column=None,
    owner_column="user_id",
    search_columns=("full_name", "certificate_number", "email"),
)

OPEN_STATUSES = (S.PENDING, S.UNDER_REVIEW)


async def get_by_id(db: AsyncSession, id: UUID) -> AuditorApplication | None:
    return await db.get(AuditorApplication, id)


async def get_open_for_user(db: AsyncSession, user_id: UUID) -> AuditorApplication | None:
    result = await db.execute(
        select(AuditorApplication)
        .where(
            AuditorApplication.user_id == user_id,
            AuditorApplication.status.in_(OPEN_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_application(db: AsyncSession, **fields) -> AuditorApplication:
    """Insert a PENDING application numbered ``AUD-{year}-{seq:04d}``. Flushes only."""
    year = datetime.now(UTC).year

    def build(number: str) -> AuditorApplication:
        return AuditorApplication(
            application_number=number,
            status=AuditorApplicationStatus.PENDING,
            **fields,
        )

    async def next_number() -> str:
        return await generate_number(db, AuditorApplication.application_number, "AUD", year, 4)

    return await insert_with_number(db, build, next_number, prefix="AUD")


async def get_profile_by_user(db: AsyncSession, user_id: UUID) -> AuditorProfile | None:
    result = await db.execute(select(AuditorProfile).where(AuditorProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, profile_id: UUID) -> AuditorProfile | None:
    return await db.get(AuditorProfile, profile_id)


def copy_credentials(profile: AuditorProfile, application: AuditorApplication) -> None:
    profile.application_id = application.id
    profile.full_name = application.full_name
    profile.email = application.email
    profile.phone = application.phone
    profile.qualification = application.qualification
    profile.certification_body = application.certification_body
    profile.certificate_number = application.certificate_number
    profile.years_experience = application.years_experience
    profile.specializations = list(application.specializations or [])


async def create_profile(db: AsyncSession, application: AuditorApplication) -> AuditorProfile:
    """Insert the directory profile for an approved application. Flushes only."""
    profile = AuditorProfile(user_id=application.user_id, is_active=True)
    copy_credentials(profile, application)
    db.add(profile)
    await db.flush()
    return profile


async def list_directory(
    db: AsyncSession,
    *,
    qualification: AuditorQualification | None = None,
    specialization: AuditorSpecialization | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 12,
) -> tuple[list[AuditorProfile], int]:
    """
    Active auditor profiles, most audits completed first.

    Returns:
        Tuple of (profiles, total count)
    """
    query = select(AuditorProfile).where(AuditorProfile.is_active.is_(True))

    if qualification:
        query = query.where(AuditorProfile.qualification == qualification)
    if specialization:
        # JSON array of enum values
        query = query.where(
            cast(AuditorProfile.specializations, String).like(f'%"{specialization.value}"%')
        )
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                AuditorProfile.full_name.ilike(pattern),
                AuditorProfile.certificate_number.ilike(pattern),
                AuditorProfile.certification_body.ilike(pattern),
            )
        )

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    query = (
        query.order_by(AuditorProfile.total_audits_completed.desc(), AuditorProfile.full_name)
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total

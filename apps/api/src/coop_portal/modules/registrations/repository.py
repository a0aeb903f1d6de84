"""
Registration Applications Repository

Database operations for registration drafts and applications, plus the
review state machine for applications.

Design Principles:
- All queries are parameterized (no SQL injection)
- Writes flush; the service decides when to commit
- Timezone-aware datetime handling (UTC)
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.reviews.workflow import ReviewWorkflow
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import RegistrationApplication, RegistrationStatus

S = RegistrationStatus

VALID_STATUS_TRANSITIONS: dict[RegistrationStatus, frozenset[RegistrationStatus]] = {
    S.DRAFT: frozenset({S.SUBMITTED, S.WITHDRAWN}),
    S.SUBMITTED: frozenset(
        {
            S.UNDER_REVIEW,  # Reviewer picked it up
            S.APPROVED,  # Fast-track approval
            S.REJECTED,  # Fast-track rejection
            S.ADDITIONAL_INFO_REQUIRED,
            S.WITHDRAWN,  # Applicant withdrew
        }
    ),
    S.UNDER_REVIEW: frozenset({S.ADDITIONAL_INFO_REQUIRED, S.APPROVED, S.REJECTED}),
    S.ADDITIONAL_INFO_REQUIRED: frozenset({S.SUBMITTED, S.WITHDRAWN}),
    # Terminal states - no transitions allowed
    S.APPROVED: frozenset(),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

REGISTRATION_WORKFLOW = ReviewWorkflow(
    model=RegistrationApplication,
    entity="Application",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.APPROVED}),
    negative_outcomes=frozenset({S.REJECTED}),
    info_outcomes=frozenset({S.ADDITIONAL_INFO_REQUIRED}),
    assigned_status=S.UNDER_REVIEW,
    outcome_notes_fields={S.REJECTED: "rejection_reason"},
    outcome_stamps={S.APPROVED: ("approved_by", "approved_at")},
)

REGISTRATION_SCOPE = ScopeSpec(
    model=RegistrationApplication,
    cooperative_column=None,
    tenant_column="tenant_id",
    owner_column="applicant_user_id",
    search_columns=("application_number", "proposed_name"),
)

# Statuses that reserve a proposed name
NAME_RESERVING_STATUSES = (S.SUBMITTED, S.UNDER_REVIEW, S.APPROVED)

# Columns the applicant may write through the wizard
FORM_FIELDS = (
    "proposed_name",
    "type_id",
    "proposed_members",
    "proposed_share_capital",
    "primary_activity",
    "operating_area",
    "address",
    "contact_person",
    "contact_phone",
    "contact_email",
    "bylaws_url",
    "member_list_url",
    "minutes_url",
    "id_copies_url",
)


async def get_by_id(db: AsyncSession, id: UUID) -> RegistrationApplication | None:
    """Get application by ID."""
    return await db.get(RegistrationApplication, id)


async def get_draft_for_user(db: AsyncSession, user_id: UUID) -> RegistrationApplication | None:
    """Get the applicant's single DRAFT, if any."""
    result = await db.execute(
        select(RegistrationApplication).where(
            RegistrationApplication.applicant_user_id == user_id,
            RegistrationApplication.status == RegistrationStatus.DRAFT,
        )
    )
    return result.scalar_one_or_none()


async def list_for_applicant(db: AsyncSession, user_id: UUID) -> list[RegistrationApplication]:
    """All of an applicant's applications, newest first."""
    result = await db.execute(
        select(RegistrationApplication)
        .where(RegistrationApplication.applicant_user_id == user_id)
        .order_by(RegistrationApplication.created_at.desc())
    )
    return list(result.scalars().all())


async def pending_name_exists(
    db: AsyncSession,
    name: str,
    exclude_application_id: UUID | None = None,
) -> bool:
    """Case-insensitive match against submitted, in-review and approved applications."""
    query = select(RegistrationApplication.id).where(
        func.lower(RegistrationApplication.proposed_name) == name.strip().lower(),
        RegistrationApplication.status.in_(NAME_RESERVING_STATUSES),
    )
    if exclude_application_id is not None:
        query = query.where(RegistrationApplication.id != exclude_application_id)

    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


def apply_form(application: RegistrationApplication, form: dict[str, Any]) -> None:
    """Copy wizard fields onto an application, ignoring anything else."""
    for key in FORM_FIELDS:
        if key in form:
            setattr(application, key, form[key])


async def create_draft(
    db: AsyncSession,
    *,
    applicant_user_id: UUID,
    tenant_id: UUID,
    form: dict[str, Any],
    current_step: int = 1,
) -> RegistrationApplication:
    """
    Insert a new DRAFT with a freshly allocated ``REG-{year}-{seq:04d}`` number.

    Flushes only.
    """
    year = datetime.now(UTC).year

    def build(number: str) -> RegistrationApplication:
        application = RegistrationApplication(
            application_number=number,
            applicant_user_id=applicant_user_id,
            tenant_id=tenant_id,
            status=RegistrationStatus.DRAFT,
            current_step=current_step,
        )
        apply_form(application, form)
        return application

    async def next_number() -> str:
        return await generate_number(
            db, RegistrationApplication.application_number, "REG", year, 4
        )

    return await insert_with_number(db, build, next_number, prefix="REG")


async def get_status_counts(db: AsyncSession, tenant_id: UUID | None = None) -> dict[str, int]:
    """
    Count non-draft applications per status.

    Args:
        db: Database session
        tenant_id: Limit to one county (None for all)

    Returns:
        Mapping of status value to count, with every non-draft status present
    """
    query = (
        select(RegistrationApplication.status, func.count())
        .where(RegistrationApplication.status != RegistrationStatus.DRAFT)
        .group_by(RegistrationApplication.status)
    )
    if tenant_id is not None:
        query = query.where(RegistrationApplication.tenant_id == tenant_id)

    result = await db.execute(query)
    counts = {status.value: 0 for status in RegistrationStatus if status != RegistrationStatus.DRAFT}
    for status, count in result.all():
        counts[status.value] = count
    return counts

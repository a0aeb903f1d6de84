"""
Amendment Requests Repository

Database access and the review state machine for amendment requests.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.reviews.workflow import ReviewWorkflow
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import AmendmentRequest, AmendmentStatus

S = AmendmentStatus

VALID_STATUS_TRANSITIONS: dict[AmendmentStatus, frozenset[AmendmentStatus]] = {
    S.SUBMITTED: frozenset(
        {S.UNDER_REVIEW, S.APPROVED, S.REJECTED, S.ADDITIONAL_INFO_REQUIRED, S.WITHDRAWN}
    ),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.REJECTED, S.ADDITIONAL_INFO_REQUIRED}),
    S.ADDITIONAL_INFO_REQUIRED: frozenset({S.SUBMITTED, S.WITHDRAWN}),
    S.APPROVED: frozenset(),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

AMENDMENT_WORKFLOW = ReviewWorkflow(
    model=AmendmentRequest,
    entity="Amendment",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.APPROVED}),
    negative_outcomes=frozenset({S.REJECTED}),
    info_outcomes=frozenset({S.ADDITIONAL_INFO_REQUIRED}),
    assigned_status=S.UNDER_REVIEW,
    outcome_stamps={S.APPROVED: ("approved_by", "approved_at")},
)

AMENDMENT_SCOPE = ScopeSpec(
    model=AmendmentRequest,
    owner_column="submitted_by",
    search_columns=("request_number", "title"),
)


async def get_by_id(db: AsyncSession, id: UUID) -> AmendmentRequest | None:
    return await db.get(AmendmentRequest, id)


async def create(db: AsyncSession, **fields) -> AmendmentRequest:
    """
    Insert a SUBMITTED amendment with an ``AMD-{year}-{seq:04d}`` number.

    Flushes only.
    """
    year = datetime.now(UTC).year

    def build(number: str) -> AmendmentRequest:
        return AmendmentRequest(request_number=number, **fields)

    async def next_number() -> str:
        return await generate_number(db, AmendmentRequest.request_number, "AMD", year, 4)

    return await insert_with_number(db, build, next_number, prefix="AMD")

"""
Complaints Repository

Database access and the investigation state machine for complaints.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.reviews.workflow import ReviewWorkflow
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import Complaint, ComplaintStatus

S = ComplaintStatus

VALID_STATUS_TRANSITIONS: dict[ComplaintStatus, frozenset[ComplaintStatus]] = {
    S.RECEIVED: frozenset({S.INVESTIGATING, S.RESOLVED, S.DISMISSED}),
    S.INVESTIGATING: frozenset({S.RESOLVED, S.DISMISSED}),
    S.RESOLVED: frozenset(),
    S.DISMISSED: frozenset(),
}

COMPLAINT_WORKFLOW = ReviewWorkflow(
    model=Complaint,
    entity="Complaint",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.RESOLVED}),
    negative_outcomes=frozenset({S.DISMISSED}),
    assigned_status=S.INVESTIGATING,
    assignee_field="assigned_to",
    assigned_at_field="assigned_at",
    reviewer_field="resolved_by",
    reviewed_at_field="resolved_at",
    notes_field="resolution",
)

COMPLAINT_SCOPE = ScopeSpec(
    model=Complaint,
    tenant_column="tenant_id",
    owner_column="complainant_user_id",
    search_columns=("complaint_number", "subject"),
    submitted_column=None,
)


async def get_by_id(db: AsyncSession, id: UUID) -> Complaint | None:
    return await db.get(Complaint, id)


async def create(db: AsyncSession, **fields) -> Complaint:
    """
    Insert a RECEIVED complaint numbered ``CPL-{year}-{seq:06d}``.

    Flushes only.
    """
    year = datetime.now(UTC).year

    def build(number: str) -> Complaint:
        return Complaint(complaint_number=number, status=ComplaintStatus.RECEIVED, **fields)

    async def next_number() -> str:
        return await generate_number(db, Complaint.complaint_number, "CPL", year, 6)

    return await insert_with_number(db, build, next_number, prefix="CPL")

"""
Compliance Reports Repository
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.cooperatives.models import Cooperative
from coop_portal.modules.reviews.workflow import ReviewWorkflow
from coop_portal.modules.shared.numbering import generate_number, insert_with_number
from coop_portal.modules.shared.scoping import ScopeSpec

from .models import ComplianceReport, ReportReviewStatus
from .scoring import score_report

S = ReportReviewStatus

VALID_STATUS_TRANSITIONS: dict[ReportReviewStatus, frozenset[ReportReviewStatus]] = {
    S.SUBMITTED: frozenset({S.UNDER_REVIEW, S.APPROVED, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.APPROVED, S.REJECTED}),
    S.APPROVED: frozenset(),
    S.REJECTED: frozenset(),
}

COMPLIANCE_WORKFLOW = ReviewWorkflow(
    model=ComplianceReport,
    entity="Compliance report",
    transitions=VALID_STATUS_TRANSITIONS,
    positive_outcomes=frozenset({S.APPROVED}),
    negative_outcomes=frozenset({S.REJECTED}),
    assigned_status=S.UNDER_REVIEW,
    status_field="review_status",
)

COMPLIANCE_SCOPE = ScopeSpec(
    model=ComplianceReport,
    owner_column="submitted_by",
    search_columns=("report_number", "financial_year"),
)


async def get_by_id(db: AsyncSession, id: UUID) -> ComplianceReport | None:
    return await db.get(ComplianceReport, id)


async def exists_for_year(db: AsyncSession, cooperative_id: UUID, financial_year: str) -> bool:
    """Whether a live (not rejected) report already covers this financial year."""
    result = await db.execute(
        select(ComplianceReport.id)
        .where(
            ComplianceReport.cooperative_id == cooperative_id,
            ComplianceReport.financial_year == financial_year,
            ComplianceReport.review_status != ReportReviewStatus.REJECTED,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create(db: AsyncSession, **fields) -> ComplianceReport:
    """
    Insert a SUBMITTED report numbered ``CR-{year}-{seq:06d}``, scored from its checks.

    Flushes only.
    """
    year = datetime.now(UTC).year

    def build(number: str) -> ComplianceReport:
        report = ComplianceReport(
            report_number=number,
            review_status=ReportReviewStatus.SUBMITTED,
            **fields,
        )
        score_report(report)
        return report

    async def next_number() -> str:
        return await generate_number(db, ComplianceReport.report_number, "CR", year, 6)

    return await insert_with_number(db, build, next_number, prefix="CR")


async def cooperative_names(db: AsyncSession, ids: set[UUID]) -> dict[UUID, str]:
    if not ids:
        return {}
    result = await db.execute(select(Cooperative.id, Cooperative.name).where(Cooperative.id.in_(ids)))
    return {row.id: row.name for row in result.all()}

"""
Compliance Service

Cooperatives file a yearly compliance report; county staff and auditors
review it. The score and compliance status are always recomputed from the
four checks by ``scoring.score_report``.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.modules.compliance import repository
from coop_portal.modules.compliance.models import (
    ComplianceReport,
    ComplianceStatus,
    ReportReviewStatus,
)
from coop_portal.modules.compliance.repository import COMPLIANCE_SCOPE, COMPLIANCE_WORKFLOW
from coop_portal.modules.compliance.schemas import ComplianceReportCreate, ComplianceReportUpdate
from coop_portal.modules.compliance.scoring import score_report
from coop_portal.modules.cooperatives import service as cooperative_service
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.shared.errors import ConflictError, NotFoundError, PermissionDeniedError
from coop_portal.modules.shared.exports import to_csv
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query

logger = logging.getLogger(__name__)

COMPLIANCE_CSV_HEADERS = (
    "Report Number",
    "Cooperative",
    "Financial Year",
    "Status",
    "Score",
    "AGM Held",
    "Submitted Date",
)


class DuplicateReportError(ConflictError):
    def __init__(self, financial_year: str):
        super().__init__(
            message=f"A compliance report for {financial_year} has already been submitted.",
            error_code="DUPLICATE_COMPLIANCE_REPORT",
        )


async def get_report(db: AsyncSession, report_id: UUID, user: CurrentUser) -> ComplianceReport:
    """
    Raises:
        NotFoundError: If missing or outside the caller's scope
    """
    report = await repository.get_by_id(db, report_id)
    if report is None:
        raise NotFoundError("Compliance report", report_id)

    if report.submitted_by != user.id:
        try:
            await cooperative_service.get_cooperative(db, report.cooperative_id, user)
        except NotFoundError:
            raise NotFoundError("Compliance report", report_id) from None

    return report


async def list_reports(
    db: AsyncSession,
    user: CurrentUser,
    *,
    review_status: ReportReviewStatus | None = None,
    compliance_status: ComplianceStatus | None = None,
    cooperative_id: UUID | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    filters = ListFilters(
        equals={"review_status": review_status, "compliance_status": compliance_status},
        search=search,
        page=page,
        page_size=page_size,
    )
    items, total = await scoped_query(
        db, COMPLIANCE_SCOPE, ListScope.for_user(user, cooperative_id), filters
    )
    return {"items": items, "total_count": total, "page": page, "page_size": filters.limit}


async def export_reports_csv(db: AsyncSession, user: CurrentUser, **filters) -> str:
    """CSV of the current filtered page."""
    result = await list_reports(db, user, **filters)
    reports = result["items"]
    names = await repository.cooperative_names(db, {r.cooperative_id for r in reports})

    rows = (
        (
            r.report_number,
            names.get(r.cooperative_id, ""),
            r.financial_year,
            r.compliance_status,
            r.compliance_score,
            r.agm_held,
            r.submitted_at,
        )
        for r in reports
    )
    return to_csv(COMPLIANCE_CSV_HEADERS, rows)


async def submit_report(
    db: AsyncSession,
    data: ComplianceReportCreate,
    user: CurrentUser,
) -> ComplianceReport:
    """
    File a compliance report for one of the caller's cooperatives.

    Raises:
        NotFoundError: If the cooperative is missing or not the caller's
        DuplicateReportError: If a live report already covers the year
    """
    cooperative = await cooperative_service.get_cooperative(db, data.cooperative_id, user)

    if await repository.exists_for_year(db, cooperative.id, data.financial_year):
        raise DuplicateReportError(data.financial_year)

    report = await repository.create(
        db,
        **data.model_dump(),
        submitted_by=user.id,
        submitted_at=datetime.now(UTC),
    )
    await db.commit()
    await db.refresh(report)

    logger.info(
        f"Compliance report {report.report_number} for cooperative {cooperative.id} "
        f"({report.financial_year}): score {report.compliance_score} "
        f"({report.compliance_status.value})"
    )
    return report


async def update_report(
    db: AsyncSession,
    report_id: UUID,
    data: ComplianceReportUpdate,
    user: CurrentUser,
) -> ComplianceReport:
    """
    Edit a report before review starts; the score is recomputed.

    Raises:
        PermissionDeniedError: If the caller did not submit it or review has started
    """
    report = await get_report(db, report_id, user)

    if report.submitted_by != user.id:
        raise PermissionDeniedError("Only the submitter can edit this report.")
    if report.review_status != ReportReviewStatus.SUBMITTED:
        raise PermissionDeniedError("This report can no longer be edited.")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(report, key, value)
    score_report(report)

    await db.commit()
    await db.refresh(report)
    return report


async def start_review(
    db: AsyncSession,
    report_id: UUID,
    reviewer: CurrentUser,
) -> ComplianceReport:
    report = await get_report(db, report_id, reviewer)

    await reviews.assign(db, COMPLIANCE_WORKFLOW, report, reviewer.id, reviewer.id)
    await db.refresh(report)
    return report


async def approve_report(
    db: AsyncSession,
    report_id: UUID,
    reviewer: CurrentUser,
    notes: str | None = None,
) -> ComplianceReport:
    report = await get_report(db, report_id, reviewer)

    await reviews.decide(
        db,
        COMPLIANCE_WORKFLOW,
        report,
        ReportReviewStatus.APPROVED,
        reviewer.id,
        notes,
        notice=Notice(
            user_id=report.submitted_by,
            title="Compliance Report Approved",
            message=f"Compliance report {report.report_number} ({report.financial_year}) has been approved.",
            type=NotificationType.SUCCESS,
            link=f"/compliance/{report.id}",
        ),
    )
    await db.refresh(report)
    return report


async def reject_report(
    db: AsyncSession,
    report_id: UUID,
    reviewer: CurrentUser,
    notes: str | None,
) -> ComplianceReport:
    """
    Raises:
        NotesRequiredError: If no notes are given
    """
    report = await get_report(db, report_id, reviewer)

    await reviews.decide(
        db,
        COMPLIANCE_WORKFLOW,
        report,
        ReportReviewStatus.REJECTED,
        reviewer.id,
        notes,
        notice=Notice(
            user_id=report.submitted_by,
            title="Compliance Issues Detected",
            message=(
                f"Compliance report {report.report_number} has issues that need attention: {notes}"
            ),
            type=NotificationType.ERROR,
            link=f"/compliance/{report.id}",
        ),
    )
    await db.refresh(report)
    return report

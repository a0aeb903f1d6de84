"""
Registration Service

Business logic for cooperative registration:

Applicant side (draft store):
1. save_draft - idempotent upsert of the applicant's single DRAFT
2. submit - validate steps 1-2 and the document checklist, DRAFT -> SUBMITTED
3. withdraw / resubmit

Reviewer side:
4. start_review - SUBMITTED -> UNDER_REVIEW
5. request_additional_info / reject - notes required
6. approve - creates the cooperative, grants the applicant COOPERATIVE_ADMIN
   and marks the application APPROVED in one transaction

The first save (and submit) places applicants without a county into the
default county with a CITIZEN role.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.core.auth import CurrentUser
from coop_portal.core.email import (
    send_additional_info_required,
    send_registration_approved,
    send_registration_rejected,
)
from coop_portal.core.permissions import Role, is_county_role, is_unscoped_role
from coop_portal.modules.cooperatives import service as cooperative_service
from coop_portal.modules.cooperatives.models import Cooperative
from coop_portal.modules.notifications.models import NotificationType
from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.registrations import repository, validation
from coop_portal.modules.registrations.models import RegistrationApplication, RegistrationStatus
from coop_portal.modules.registrations.repository import (
    FORM_FIELDS,
    REGISTRATION_SCOPE,
    REGISTRATION_WORKFLOW,
)
from coop_portal.modules.reviews import service as reviews
from coop_portal.modules.shared.errors import NotFoundError, ServiceError, ValidationFailedError
from coop_portal.modules.shared.exports import to_csv
from coop_portal.modules.shared.numbering import NumberingConflictError
from coop_portal.modules.shared.scoping import ListFilters, ListScope, scoped_query
from coop_portal.modules.users import service as user_service

logger = logging.getLogger(__name__)

APPLICATION_CSV_HEADERS = ("Application Number", "Proposed Name", "Status", "Submitted Date")


# ============================================================================
# Exceptions
# ============================================================================


class ApplicationNotEditableError(ServiceError):
    """Raised when an applicant edits an application that is not waiting on them."""

    def __init__(self, status: RegistrationStatus):
        super().__init__(
            message=f"This application cannot be changed while it is {status.value}.",
            error_code="APPLICATION_NOT_EDITABLE",
            status_code=409,
        )


# ============================================================================
# Helper Functions
# ============================================================================


def _snapshot(application: RegistrationApplication | None) -> dict[str, Any]:
    if application is None:
        return {}
    return {key: getattr(application, key) for key in FORM_FIELDS}


def _merged_form(application: RegistrationApplication | None, form: dict[str, Any]) -> dict[str, Any]:
    merged = _snapshot(application)
    merged.update({k: v for k, v in form.items() if k in FORM_FIELDS})
    return merged


async def _validate_submission(
    db: AsyncSession,
    data: dict[str, Any],
    application_id: UUID | None,
) -> None:
    """
    Raises:
        ValidationFailedError: If a step or the document checklist fails, or the name is taken
    """
    errors = validation.validate_for_submission(data)

    if "proposed_name" not in errors:
        available = await validation.is_name_available(db, data["proposed_name"], application_id)
        if not available:
            errors["proposed_name"] = validation.NAME_TAKEN_MESSAGE

    if errors:
        logger.warning(f"Submission rejected: {sorted(errors)}")
        raise ValidationFailedError(errors, message="Please complete all required fields.")


def _can_view(user: CurrentUser, application: RegistrationApplication) -> bool:
    if application.applicant_user_id == user.id:
        return True
    if is_unscoped_role(user.role):
        return True
    if is_county_role(user.role):
        return application.tenant_id == user.tenant_id
    return False


def _applicant_notice(
    application: RegistrationApplication,
    title: str,
    message: str,
    type: NotificationType,
) -> Notice:
    return Notice(
        user_id=application.applicant_user_id,
        title=title,
        message=message,
        type=type,
        link=f"/applications/{application.id}",
    )


# ============================================================================
# Applicant: draft store
# ============================================================================


async def load_draft(db: AsyncSession, user_id: UUID) -> RegistrationApplication | None:
    """Get the applicant's current draft, if any."""
    return await repository.get_draft_for_user(db, user_id)


async def save_draft(
    db: AsyncSession,
    user_id: UUID,
    form: dict[str, Any],
    current_step: int = 1,
) -> RegistrationApplication:
    """
    Create or update the applicant's single DRAFT.

    The first save allocates the application number. Later saves only update
    the form fields and the wizard step.

    Args:
        db: Database session
        user_id: Applicant
        form: Wizard fields (partial)
        current_step: Wizard step the applicant is on

    Returns:
        The saved draft
    """
    tenant_id = await user_service.ensure_user_has_tenant(db, user_id)

    draft = await repository.get_draft_for_user(db, user_id)

    if draft is None:
        try:
            draft = await repository.create_draft(
                db,
                applicant_user_id=user_id,
                tenant_id=tenant_id,
                form=form,
                current_step=current_step,
            )
            logger.info(f"Draft {draft.application_number} created for user {user_id}")
        except NumberingConflictError:
            # A concurrent first save may have created the draft
            draft = await repository.get_draft_for_user(db, user_id)
            if draft is None:
                raise

    repository.apply_form(draft, form)
    draft.current_step = current_step

    await db.commit()
    await db.refresh(draft)

    logger.debug(f"Draft {draft.application_number} saved at step {current_step}")
    return draft


def validate_step(step: int, form: dict[str, Any]) -> dict[str, str]:
    return validation.validate_step(step, form)


async def check_name_availability(
    db: AsyncSession,
    name: str,
    user_id: UUID | None = None,
) -> bool:
    exclude_id = None
    if user_id is not None:
        draft = await repository.get_draft_for_user(db, user_id)
        exclude_id = draft.id if draft else None
    return await validation.is_name_available(db, name, exclude_id)


async def submit(
    db: AsyncSession,
    user_id: UUID,
    form: dict[str, Any],
) -> RegistrationApplication:
    """
    Submit the applicant's draft for county review.

    Nothing is written when validation fails.

    Returns:
        The submitted application (status SUBMITTED, submitted_at set)

    Raises:
        ValidationFailedError: If steps 1-2 are invalid, documents are missing,
            or the proposed name is taken
    """
    draft = await repository.get_draft_for_user(db, user_id)

    await _validate_submission(db, _merged_form(draft, form), draft.id if draft else None)

    tenant_id = await user_service.ensure_user_has_tenant(db, user_id)

    if draft is None:
        draft = await repository.create_draft(
            db, applicant_user_id=user_id, tenant_id=tenant_id, form=form, current_step=3
        )
    else:
        repository.apply_form(draft, form)
        draft.current_step = 3

    await reviews.transition(
        db,
        REGISTRATION_WORKFLOW,
        draft,
        RegistrationStatus.SUBMITTED,
        values={"submitted_at": datetime.now(UTC)},
    )
    await db.refresh(draft)

    logger.info(f"Application {draft.application_number} submitted by {user_id}")
    return draft


async def _get_own_application(
    db: AsyncSession,
    user_id: UUID,
    application_id: UUID,
) -> RegistrationApplication:
    application = await repository.get_by_id(db, application_id)
    if not application or application.applicant_user_id != user_id:
        logger.warning(f"Application {application_id} not found for applicant {user_id}")
        raise NotFoundError("Application", application_id)
    return application


async def withdraw(db: AsyncSession, user_id: UUID, application_id: UUID) -> RegistrationApplication:
    """Withdraw an application that is waiting on the county or the applicant."""
    application = await _get_own_application(db, user_id, application_id)

    await reviews.transition(db, REGISTRATION_WORKFLOW, application, RegistrationStatus.WITHDRAWN)
    await db.refresh(application)

    logger.info(f"Application {application.application_number} withdrawn by applicant")
    return application


async def resubmit(
    db: AsyncSession,
    user_id: UUID,
    application_id: UUID,
    form: dict[str, Any],
) -> RegistrationApplication:
    """
    Send an application back for review after the county asked for more information.

    Raises:
        ApplicationNotEditableError: If the application is not waiting on the applicant
        ValidationFailedError: If the updated application is incomplete
    """
    application = await _get_own_application(db, user_id, application_id)

    if application.status != RegistrationStatus.ADDITIONAL_INFO_REQUIRED:
        raise ApplicationNotEditableError(application.status)

    await _validate_submission(db, _merged_form(application, form), application.id)

    repository.apply_form(application, form)
    await reviews.transition(
        db,
        REGISTRATION_WORKFLOW,
        application,
        RegistrationStatus.SUBMITTED,
        values={"submitted_at": datetime.now(UTC)},
    )
    await db.refresh(application)

    logger.info(f"Application {application.application_number} resubmitted")
    return application


async def list_my_applications(db: AsyncSession, user_id: UUID) -> list[RegistrationApplication]:
    return await repository.list_for_applicant(db, user_id)


# ============================================================================
# Shared read access
# ============================================================================


async def get_application(
    db: AsyncSession,
    application_id: UUID,
    user: CurrentUser,
) -> RegistrationApplication:
    """
    Get an application visible to the caller (applicant, county staff of its
    county, or national roles).

    Raises:
        NotFoundError: If missing or not visible
    """
    application = await repository.get_by_id(db, application_id)

    if not application or not _can_view(user, application):
        logger.warning(f"Application {application_id} not found for user {user.id}")
        raise NotFoundError("Application", application_id)

    return application


# ============================================================================
# Reviewer: listing and decisions
# ============================================================================


def _review_filters(
    status: RegistrationStatus | None,
    search: str | None,
    page: int,
    page_size: int,
) -> ListFilters:
    return ListFilters(
        equals={"status": status},
        not_equals={"status": RegistrationStatus.DRAFT},
        search=search,
        page=page,
        page_size=page_size,
    )


async def list_applications(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: RegistrationStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    """List submitted applications in the caller's scope (drafts are never shown)."""
    filters = _review_filters(status, search, page, page_size)
    items, total = await scoped_query(db, REGISTRATION_SCOPE, ListScope.for_user(user), filters)

    return {
        "items": items,
        "total_count": total,
        "page": page,
        "page_size": filters.limit,
    }


async def export_applications_csv(
    db: AsyncSession,
    user: CurrentUser,
    *,
    status: RegistrationStatus | None = None,
    search: str | None = None,
    page: int = 1,
    page_size: int = 100,
) -> str:
    result = await list_applications(
        db, user, status=status, search=search, page=page, page_size=page_size
    )
    rows = (
        (a.application_number, a.proposed_name, a.status, a.submitted_at)
        for a in result["items"]
    )
    return to_csv(APPLICATION_CSV_HEADERS, rows)


async def get_stats(db: AsyncSession, user: CurrentUser) -> dict:
    tenant_id = user.tenant_id if is_county_role(user.role) else None
    counts = await repository.get_status_counts(db, tenant_id)
    return {"counts": counts, "total": sum(counts.values())}


async def start_review(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
) -> RegistrationApplication:
    """SUBMITTED -> UNDER_REVIEW, stamping the reviewer."""
    application = await get_application(db, application_id, reviewer)

    await reviews.assign(db, REGISTRATION_WORKFLOW, application, reviewer.id, reviewer.id)
    await db.refresh(application)
    return application


async def request_additional_info(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    notes: str | None,
) -> RegistrationApplication:
    """
    Send the application back to the applicant.

    Raises:
        NotesRequiredError: If notes are empty
        RequestAlreadyDecidedError: If already decided
    """
    application = await get_application(db, application_id, reviewer)

    await reviews.decide(
        db,
        REGISTRATION_WORKFLOW,
        application,
        RegistrationStatus.ADDITIONAL_INFO_REQUIRED,
        reviewer.id,
        notes,
        notice=_applicant_notice(
            application,
            "Additional Information Required",
            f"The county needs more information about {application.proposed_name}: {notes}",
            NotificationType.INFO,
        ),
    )
    await db.refresh(application)

    if application.contact_email:
        await send_additional_info_required(
            to_email=application.contact_email,
            contact_person=application.contact_person or "Applicant",
            cooperative_name=application.proposed_name or application.application_number,
            review_notes=application.review_notes or "",
        )

    return application


async def reject(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    reason: str | None,
) -> RegistrationApplication:
    """
    Reject the application; the reason is stored as ``rejection_reason``.

    Raises:
        NotesRequiredError: If the reason is empty
        RequestAlreadyDecidedError: If already decided
    """
    application = await get_application(db, application_id, reviewer)

    await reviews.decide(
        db,
        REGISTRATION_WORKFLOW,
        application,
        RegistrationStatus.REJECTED,
        reviewer.id,
        reason,
        notice=_applicant_notice(
            application,
            "Application Rejected",
            f"Your application for {application.proposed_name} was not approved. Reason: {reason}",
            NotificationType.WARNING,
        ),
    )
    await db.refresh(application)

    if application.contact_email:
        await send_registration_rejected(
            to_email=application.contact_email,
            contact_person=application.contact_person or "Applicant",
            cooperative_name=application.proposed_name or application.application_number,
            rejection_reason=application.rejection_reason or "",
        )

    return application


async def approve(
    db: AsyncSession,
    application_id: UUID,
    reviewer: CurrentUser,
    notes: str | None = None,
) -> tuple[RegistrationApplication, Cooperative]:
    """
    Approve an application.

    In a single transaction: mark the application APPROVED, create the
    cooperative with a county-scoped registration number, link it to the
    application and grant the applicant COOPERATIVE_ADMIN on it. If any step
    fails nothing is written.

    Returns:
        Tuple of (application, new cooperative)

    Raises:
        RequestAlreadyDecidedError: If already decided
        ConcurrentModificationError: If another reviewer decided first
        NumberingConflictError: If no registration number could be allocated
    """
    application = await get_application(db, application_id, reviewer)

    try:
        await reviews.decide(
            db,
            REGISTRATION_WORKFLOW,
            application,
            RegistrationStatus.APPROVED,
            reviewer.id,
            notes,
            commit=False,
        )

        cooperative = await cooperative_service.create_from_application(db, application)
        application.cooperative_id = cooperative.id

        await user_service.grant_role(
            db,
            user_id=application.applicant_user_id,
            role=Role.COOPERATIVE_ADMIN,
            tenant_id=application.tenant_id,
            cooperative_id=cooperative.id,
            assigned_by=reviewer.id,
        )

        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.error(f"Approval of application {application_id} rolled back", exc_info=True)
        raise

    await db.refresh(application)
    await db.refresh(cooperative)

    logger.info(
        f"Application {application.application_number} approved by {reviewer.id}: "
        f"cooperative {cooperative.registration_number}"
    )

    await notify_safely(
        db,
        _applicant_notice(
            application,
            "Application Approved!",
            f"{cooperative.name} has been registered as {cooperative.registration_number}.",
            NotificationType.SUCCESS,
        ),
    )

    if application.contact_email:
        await send_registration_approved(
            to_email=application.contact_email,
            contact_person=application.contact_person or "Applicant",
            cooperative_name=cooperative.name,
            registration_number=cooperative.registration_number,
        )

    return application, cooperative

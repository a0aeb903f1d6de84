"""
Review Service

Generic assign / decide operations shared by every reviewable entity.

Rules enforced here for all entities:
- Transitions must be allowed by the entity's ``ReviewWorkflow``
- Decisions on a request that already reached a terminal state are rejected
- Negative and "more information" decisions require non-empty notes
- Status updates are compare-and-swap; a concurrent change loses with 409
- Exactly one notification per assignment/decision, sent after commit
"""

import enum
import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.notifications.service import Notice, notify_safely
from coop_portal.modules.reviews import repository
from coop_portal.modules.reviews.workflow import InvalidStatusTransitionError, ReviewWorkflow
from coop_portal.modules.shared.errors import ServiceError

logger = logging.getLogger(__name__)


# ============================================================================
# Exceptions
# ============================================================================


class RequestAlreadyDecidedError(ServiceError):
    """Raised when acting on a request that is already in a terminal state."""

    def __init__(self, entity: str, status: enum.Enum):
        super().__init__(
            message=f"This {entity.lower()} has already been {status.value.lower()}.",
            error_code="REQUEST_ALREADY_DECIDED",
            status_code=409,
        )


class InvalidReviewTransitionError(ServiceError):
    """Raised when the requested transition is not allowed from the current state."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INVALID_STATUS_TRANSITION",
            status_code=409,
        )


class NotesRequiredError(ServiceError):
    """Raised when a negative decision has no explanation."""

    def __init__(self, outcome: enum.Enum):
        super().__init__(
            message=f"Notes are required when the outcome is {outcome.value}.",
            error_code="NOTES_REQUIRED",
            status_code=422,
        )


class ConcurrentModificationError(ServiceError):
    """Raised when another reviewer changed the request first."""

    def __init__(self, entity: str):
        super().__init__(
            message=f"This {entity.lower()} was modified by someone else. Please reload and try again.",
            error_code="CONCURRENT_MODIFICATION",
            status_code=409,
        )


# ============================================================================
# Transitions
# ============================================================================


async def transition(
    db: AsyncSession,
    workflow: ReviewWorkflow,
    record: Any,
    new_status: enum.Enum,
    *,
    values: dict[str, Any] | None = None,
    commit: bool = True,
) -> Any:
    """
    Move a record to ``new_status`` with compare-and-swap on its current status.

    Args:
        db: Database session
        workflow: Entity workflow
        record: Loaded record
        new_status: Target status
        values: Extra columns to set in the same UPDATE
        commit: Commit immediately; pass False to compose with other writes

    Returns:
        The record with the new values applied

    Raises:
        RequestAlreadyDecidedError: If the record is in a terminal state
        InvalidReviewTransitionError: If the transition is not allowed
        ConcurrentModificationError: If the row changed since it was read
    """
    current = getattr(record, workflow.status_field)

    if workflow.is_terminal(current):
        logger.warning(f"{workflow.entity} {record.id} already {current.value}; refusing {new_status.value}")
        raise RequestAlreadyDecidedError(workflow.entity, current)

    try:
        workflow.check_transition(current, new_status)
    except InvalidStatusTransitionError as e:
        logger.warning(str(e))
        raise InvalidReviewTransitionError(str(e)) from e

    updates = {workflow.status_field: new_status, **(values or {})}

    swapped = await repository.compare_and_set_status(
        db, workflow.model, record.id, workflow.status_field, current, updates
    )
    if not swapped:
        await db.rollback()
        logger.warning(f"{workflow.entity} {record.id} changed concurrently (expected {current.value})")
        raise ConcurrentModificationError(workflow.entity)

    for key, value in updates.items():
        setattr(record, key, value)

    if commit:
        await db.commit()

    logger.info(f"{workflow.entity} {record.id}: {current.value} -> {new_status.value}")
    return record


async def assign(
    db: AsyncSession,
    workflow: ReviewWorkflow,
    record: Any,
    assignee_id: UUID,
    actor_id: UUID,
    *,
    notice: Notice | None = None,
) -> Any:
    """
    Assign a reviewer and move the record to the workflow's assigned state.

    The assignee is notified unless they assigned themselves.

    Args:
        db: Database session
        workflow: Entity workflow (must declare ``assigned_status``)
        record: Loaded record
        assignee_id: User picking up the request
        actor_id: User performing the assignment
        notice: Notification for the assignee

    Returns:
        Updated record
    """
    if workflow.assigned_status is None:
        raise InvalidReviewTransitionError(f"{workflow.entity} cannot be assigned.")

    now = datetime.now(UTC)
    values: dict[str, Any] = {workflow.assignee_field or workflow.reviewer_field: assignee_id}
    if workflow.assigned_at_field:
        values[workflow.assigned_at_field] = now
    elif not workflow.assignee_field:
        values[workflow.reviewed_at_field] = now

    await transition(db, workflow, record, workflow.assigned_status, values=values)

    if notice is not None and assignee_id != actor_id:
        await notify_safely(db, notice)

    return record


def decision_values(
    workflow: ReviewWorkflow,
    outcome: enum.Enum,
    reviewer_id: UUID,
    notes: str | None,
) -> dict[str, Any]:
    """
    Build the columns stamped by a decision.

    Raises:
        InvalidReviewTransitionError: If ``outcome`` is not a decision
        NotesRequiredError: If the outcome needs notes and none were given
    """
    if outcome not in workflow.decision_outcomes:
        raise InvalidReviewTransitionError(
            f"{outcome.value} is not a valid decision for a {workflow.entity.lower()}."
        )

    notes = (notes or "").strip() or None
    if outcome in workflow.notes_required and not notes:
        raise NotesRequiredError(outcome)

    now = datetime.now(UTC)
    values: dict[str, Any] = {
        workflow.reviewer_field: reviewer_id,
        workflow.reviewed_at_field: now,
    }
    if notes:
        values[workflow.notes_column(outcome)] = notes

    by_field, at_field = workflow.outcome_stamps.get(outcome, (None, None))
    if by_field:
        values[by_field] = reviewer_id
    if at_field:
        values[at_field] = now

    return values


async def decide(
    db: AsyncSession,
    workflow: ReviewWorkflow,
    record: Any,
    outcome: enum.Enum,
    reviewer_id: UUID,
    notes: str | None = None,
    *,
    extra: dict[str, Any] | None = None,
    notice: Notice | None = None,
    commit: bool = True,
) -> Any:
    """
    Record a review decision.

    Args:
        db: Database session
        workflow: Entity workflow
        record: Loaded record
        outcome: Decision status (approve / reject / request info ...)
        reviewer_id: Deciding user
        notes: Decision notes (required for negative outcomes)
        extra: Additional columns to set (e.g. effective_date)
        notice: Notification for the submitter, sent after commit
        commit: Commit immediately; pass False when the decision is part of a
            larger transaction (the caller commits and notifies)

    Returns:
        Updated record

    Raises:
        RequestAlreadyDecidedError: If already decided
        NotesRequiredError: If notes are missing for a negative outcome
        InvalidReviewTransitionError: If the outcome is not reachable
        ConcurrentModificationError: If another reviewer decided first
    """
    current = getattr(record, workflow.status_field)
    if workflow.is_terminal(current):
        logger.warning(f"{workflow.entity} {record.id} already decided ({current.value})")
        raise RequestAlreadyDecidedError(workflow.entity, current)

    values = decision_values(workflow, outcome, reviewer_id, notes)
    if extra:
        values.update(extra)

    await transition(db, workflow, record, outcome, values=values, commit=commit)

    if commit and notice is not None:
        await notify_safely(db, notice)

    return record

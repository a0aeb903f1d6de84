"""
Review Workflows

Declarative description of a reviewable entity's state machine: which
transitions are allowed, which states are decisions, and which columns record
who decided, when, and why.

One ``ReviewWorkflow`` is declared next to each reviewable model
(registration applications, amendments, complaints, trainer and auditor
applications, compliance reports) and handed to ``reviews.service``.
"""

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        entity: str,
        current_status: enum.Enum,
        new_status: enum.Enum,
        valid_transitions: frozenset[enum.Enum],
    ):
        self.entity = entity
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            f"Invalid {entity.lower()} status transition: "
            f"{current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


@dataclass(frozen=True)
class ReviewWorkflow:
    """
    State machine and column mapping for one reviewable entity.

    Attributes:
        model: Mapped class being reviewed
        entity: Human readable name used in errors and logs
        transitions: Allowed next states per state; terminal states map to nothing
        positive_outcomes: Decisions that accept the request
        negative_outcomes: Decisions that turn the request down (notes required)
        info_outcomes: Decisions that send the request back to the submitter (notes required)
        assigned_status: State entered when a reviewer picks the request up
        status_field: Column holding the workflow state
        assignee_field: Column holding the assigned reviewer/investigator
        assigned_at_field: Column stamped when assigned
        reviewer_field: Column stamped with the deciding user
        reviewed_at_field: Column stamped with the decision time
        notes_field: Column receiving decision notes
        outcome_notes_fields: Per-outcome override of ``notes_field``
        outcome_stamps: Per-outcome extra (by, at) columns, e.g. approved_by/approved_at
    """

    model: Any
    entity: str
    transitions: Mapping[enum.Enum, frozenset[enum.Enum]]
    positive_outcomes: frozenset[enum.Enum]
    negative_outcomes: frozenset[enum.Enum]
    info_outcomes: frozenset[enum.Enum] = frozenset()
    assigned_status: enum.Enum | None = None
    status_field: str = "status"
    assignee_field: str | None = None
    assigned_at_field: str | None = None
    reviewer_field: str = "reviewed_by"
    reviewed_at_field: str = "reviewed_at"
    notes_field: str = "review_notes"
    outcome_notes_fields: Mapping[enum.Enum, str] = field(default_factory=dict)
    outcome_stamps: Mapping[enum.Enum, tuple[str | None, str | None]] = field(
        default_factory=dict
    )

    @property
    def decision_outcomes(self) -> frozenset[enum.Enum]:
        return self.positive_outcomes | self.negative_outcomes | self.info_outcomes

    @property
    def notes_required(self) -> frozenset[enum.Enum]:
        return self.negative_outcomes | self.info_outcomes

    def valid_transitions(self, current: enum.Enum) -> frozenset[enum.Enum]:
        return self.transitions.get(current, frozenset())

    def is_terminal(self, status: enum.Enum) -> bool:
        return not self.valid_transitions(status)

    def can_transition(self, current: enum.Enum, new: enum.Enum) -> bool:
        return new == current or new in self.valid_transitions(current)

    def check_transition(self, current: enum.Enum, new: enum.Enum) -> None:
        """
        Raises:
            InvalidStatusTransitionError: If ``current -> new`` is not allowed
        """
        if not self.can_transition(current, new):
            raise InvalidStatusTransitionError(
                self.entity, current, new, self.valid_transitions(current)
            )

    def notes_column(self, outcome: enum.Enum) -> str:
        return self.outcome_notes_fields.get(outcome, self.notes_field)

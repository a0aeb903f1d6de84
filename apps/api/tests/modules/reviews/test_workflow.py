"""
Unit tests for review workflow declarations and decision stamping.
"""

from uuid import uuid4

import pytest

from coop_portal.modules.amendments.models import AmendmentStatus
from coop_portal.modules.amendments.repository import AMENDMENT_WORKFLOW
from coop_portal.modules.complaints.models import ComplaintStatus
from coop_portal.modules.complaints.repository import COMPLAINT_WORKFLOW
from coop_portal.modules.registrations.models import RegistrationStatus
from coop_portal.modules.registrations.repository import REGISTRATION_WORKFLOW
from coop_portal.modules.reviews.service import (
    InvalidReviewTransitionError,
    NotesRequiredError,
    decision_values,
)
from coop_portal.modules.reviews.workflow import InvalidStatusTransitionError


class TestRegistrationTransitions:
    """Tests for the registration application state machine."""

    @pytest.mark.parametrize(
        "current,new",
        [
            (RegistrationStatus.DRAFT, RegistrationStatus.SUBMITTED),
            (RegistrationStatus.SUBMITTED, RegistrationStatus.UNDER_REVIEW),
            (RegistrationStatus.SUBMITTED, RegistrationStatus.APPROVED),
            (RegistrationStatus.UNDER_REVIEW, RegistrationStatus.ADDITIONAL_INFO_REQUIRED),
            (RegistrationStatus.ADDITIONAL_INFO_REQUIRED, RegistrationStatus.SUBMITTED),
            (RegistrationStatus.ADDITIONAL_INFO_REQUIRED, RegistrationStatus.WITHDRAWN),
        ],
    )
    def test_allowed_transitions(self, current, new):
        assert REGISTRATION_WORKFLOW.can_transition(current, new)

    @pytest.mark.parametrize(
        "current,new",
        [
            (RegistrationStatus.DRAFT, RegistrationStatus.APPROVED),
            (RegistrationStatus.UNDER_REVIEW, RegistrationStatus.WITHDRAWN),
            (RegistrationStatus.APPROVED, RegistrationStatus.REJECTED),
            (RegistrationStatus.REJECTED, RegistrationStatus.SUBMITTED),
        ],
    )
    def test_rejected_transitions(self, current, new):
        with pytest.raises(InvalidStatusTransitionError):
            REGISTRATION_WORKFLOW.check_transition(current, new)

    @pytest.mark.parametrize(
        "status",
        [RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, RegistrationStatus.WITHDRAWN],
    )
    def test_terminal_states(self, status):
        assert REGISTRATION_WORKFLOW.is_terminal(status)

    def test_draft_is_not_terminal(self):
        assert not REGISTRATION_WORKFLOW.is_terminal(RegistrationStatus.DRAFT)


class TestDecisionValues:
    """Tests for the columns stamped by a decision."""

    def test_rejection_requires_notes(self):
        with pytest.raises(NotesRequiredError):
            decision_values(REGISTRATION_WORKFLOW, RegistrationStatus.REJECTED, uuid4(), "   ")

    def test_info_request_requires_notes(self):
        with pytest.raises(NotesRequiredError):
            decision_values(
                REGISTRATION_WORKFLOW, RegistrationStatus.ADDITIONAL_INFO_REQUIRED, uuid4(), None
            )

    def test_approval_without_notes_is_allowed(self):
        reviewer = uuid4()
        values = decision_values(REGISTRATION_WORKFLOW, RegistrationStatus.APPROVED, reviewer, None)

        assert values["reviewed_by"] == reviewer
        assert values["approved_by"] == reviewer
        assert values["approved_at"] == values["reviewed_at"]
        assert "review_notes" not in values

    def test_rejection_reason_goes_to_its_own_column(self):
        values = decision_values(
            REGISTRATION_WORKFLOW, RegistrationStatus.REJECTED, uuid4(), " Incomplete bylaws "
        )

        assert values["rejection_reason"] == "Incomplete bylaws"
        assert "review_notes" not in values

    def test_non_decision_outcome_is_refused(self):
        with pytest.raises(InvalidReviewTransitionError):
            decision_values(REGISTRATION_WORKFLOW, RegistrationStatus.UNDER_REVIEW, uuid4(), None)

    def test_amendment_approval_stamps_approved_at(self):
        values = decision_values(AMENDMENT_WORKFLOW, AmendmentStatus.APPROVED, uuid4(), None)
        assert "approved_at" in values

    def test_complaint_dismissal_writes_resolution(self):
        reviewer = uuid4()
        values = decision_values(
            COMPLAINT_WORKFLOW, ComplaintStatus.DISMISSED, reviewer, "No evidence provided"
        )

        assert values["resolution"] == "No evidence provided"
        assert values["resolved_by"] == reviewer

"""
Unit tests for registration wizard validation.
"""

from unittest.mock import AsyncMock, patch

import pytest

from coop_portal.modules.registrations.validation import (
    missing_documents,
    validate_for_submission,
    validate_step,
    validate_step1,
    validate_step2,
    is_name_available,
)


@pytest.fixture
def complete_form():
    return {
        "proposed_name": "Umoja Dairy Farmers Cooperative",
        "type_id": "4f1b0c8e-2a7a-4bb8-9d0c-1b9e6a1d2f33",
        "proposed_members": 25,
        "primary_activity": "Milk collection and chilling",
        "operating_area": "Kiambu",
        "address": "P.O. Box 123, Kiambu",
        "contact_person": "Jane Wanjiku",
        "contact_phone": "+254712345678",
        "contact_email": "jane@umoja.co.ke",
        "bylaws_url": "registrations/u1/bylaws.pdf",
        "member_list_url": "registrations/u1/members.pdf",
        "minutes_url": "registrations/u1/minutes.pdf",
        "id_copies_url": "registrations/u1/ids.pdf",
    }


class TestStepOne:
    """Tests for cooperative details."""

    def test_valid(self, complete_form):
        assert validate_step1(complete_form) == {}

    def test_zero_members(self, complete_form):
        complete_form["proposed_members"] = 0
        errors = validate_step1(complete_form)
        assert errors == {"proposed_members": "At least 1 member is required"}

    def test_blank_fields(self):
        errors = validate_step1({"proposed_name": "   "})
        assert set(errors) == {
            "proposed_name",
            "type_id",
            "proposed_members",
            "primary_activity",
            "operating_area",
        }


class TestStepTwo:
    """Tests for contact details."""

    def test_email_is_optional(self, complete_form):
        complete_form["contact_email"] = None
        assert validate_step2(complete_form) == {}

    def test_malformed_email(self, complete_form):
        complete_form["contact_email"] = "jane.umoja"
        assert validate_step2(complete_form) == {"contact_email": "Invalid email format"}

    def test_missing_contact(self, complete_form):
        complete_form["contact_phone"] = ""
        assert "contact_phone" in validate_step2(complete_form)


class TestSubmission:
    """Tests for the full submission check."""

    def test_step_three_has_no_step_rules(self):
        assert validate_step(3, {}) == {}

    def test_missing_documents_in_order(self, complete_form):
        complete_form["bylaws_url"] = None
        complete_form["id_copies_url"] = ""
        assert missing_documents(complete_form) == ["Proposed Bylaws", "ID Copies of Officials"]

    def test_complete_form_passes(self, complete_form):
        assert validate_for_submission(complete_form) == {}

    def test_missing_documents_are_listed(self, complete_form):
        complete_form["minutes_url"] = None
        errors = validate_for_submission(complete_form)
        assert "Minutes of Formation Meeting" in errors["documents"]


# ============================================================================
# Name availability
# ============================================================================


@pytest.mark.asyncio
async def test_blank_name_is_unavailable(mock_db):
    assert await is_name_available(mock_db, "  ") is False


@pytest.mark.asyncio
async def test_registered_cooperative_name_is_taken(mock_db):
    with (
        patch("coop_portal.modules.registrations.validation.cooperative_repository") as mock_coops,
        patch("coop_portal.modules.registrations.validation.repository") as mock_repo,
    ):
        mock_coops.name_exists = AsyncMock(return_value=True)
        mock_repo.pending_name_exists = AsyncMock(return_value=False)

        assert await is_name_available(mock_db, "Umoja SACCO") is False

    mock_repo.pending_name_exists.assert_not_called()


@pytest.mark.asyncio
async def test_pending_application_reserves_name(mock_db):
    with (
        patch("coop_portal.modules.registrations.validation.cooperative_repository") as mock_coops,
        patch("coop_portal.modules.registrations.validation.repository") as mock_repo,
    ):
        mock_coops.name_exists = AsyncMock(return_value=False)
        mock_repo.pending_name_exists = AsyncMock(return_value=True)

        assert await is_name_available(mock_db, "Umoja SACCO") is False


@pytest.mark.asyncio
async def test_free_name_is_available(mock_db):
    with (
        patch("coop_portal.modules.registrations.validation.cooperative_repository") as mock_coops,
        patch("coop_portal.modules.registrations.validation.repository") as mock_repo,
    ):
        mock_coops.name_exists = AsyncMock(return_value=False)
        mock_repo.pending_name_exists = AsyncMock(return_value=False)

        assert await is_name_available(mock_db, "Umoja SACCO") is True

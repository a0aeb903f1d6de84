"""
Registration Validation

Per-step rules for the registration wizard. Each rule set returns a map of
field name to message; an empty map means the step is valid.

Step 3 (documents) is only enforced at submission.
"""

import re
from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from coop_portal.modules.cooperatives import repository as cooperative_repository
from coop_portal.modules.registrations import repository

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

NAME_TAKEN_MESSAGE = "This name is already taken or pending approval"

# Document field -> label shown to the applicant
REQUIRED_DOCUMENTS: dict[str, str] = {
    "bylaws_url": "Proposed Bylaws",
    "member_list_url": "List of Proposed Members",
    "minutes_url": "Minutes of Formation Meeting",
    "id_copies_url": "ID Copies of Officials",
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_step1(data: Mapping[str, Any]) -> dict[str, str]:
    """Cooperative details."""
    errors: dict[str, str] = {}

    if _blank(data.get("proposed_name")):
        errors["proposed_name"] = "Proposed name is required"
    if _blank(data.get("type_id")):
        errors["type_id"] = "Cooperative type is required"
    if (data.get("proposed_members") or 0) < 1:
        errors["proposed_members"] = "At least 1 member is required"
    if _blank(data.get("primary_activity")):
        errors["primary_activity"] = "Primary activity is required"
    if _blank(data.get("operating_area")):
        errors["operating_area"] = "Operating area is required"

    return errors


def validate_step2(data: Mapping[str, Any]) -> dict[str, str]:
    """Contact details. The email is optional but must be well formed."""
    errors: dict[str, str] = {}

    if _blank(data.get("address")):
        errors["address"] = "Address is required"
    if _blank(data.get("contact_person")):
        errors["contact_person"] = "Contact person is required"
    if _blank(data.get("contact_phone")):
        errors["contact_phone"] = "Contact phone is required"

    email = data.get("contact_email")
    if not _blank(email) and not EMAIL_PATTERN.match(str(email)):
        errors["contact_email"] = "Invalid email format"

    return errors


STEP_VALIDATORS = {
    1: validate_step1,
    2: validate_step2,
}


def validate_step(step: int, data: Mapping[str, Any]) -> dict[str, str]:
    validator = STEP_VALIDATORS.get(step)
    return validator(data) if validator else {}


def missing_documents(data: Mapping[str, Any]) -> list[str]:
    """Labels of required documents that have not been uploaded, in wizard order."""
    return [label for field, label in REQUIRED_DOCUMENTS.items() if _blank(data.get(field))]


def validate_for_submission(data: Mapping[str, Any]) -> dict[str, str]:
    """Steps 1 and 2 plus the document checklist."""
    errors = {**validate_step1(data), **validate_step2(data)}

    missing = missing_documents(data)
    if missing:
        errors["documents"] = (
            "Please upload all required documents before submitting. "
            f"Missing: {', '.join(missing)}"
        )

    return errors


async def is_name_available(
    db: AsyncSession,
    name: str,
    exclude_application_id: UUID | None = None,
) -> bool:
    """
    Case-insensitive check against registered cooperatives and applications
    that are submitted, under review or approved.

    Advisory only: two applicants can still race for the same name.
    """
    if _blank(name):
        return False

    if await cooperative_repository.name_exists(db, name):
        return False

    return not await repository.pending_name_exists(db, name, exclude_application_id)

"""
Roles and Capabilities

Closed set of portal roles plus the capability checks used by routers and
services. Routers never compare role strings directly; they ask one of the
``can_*`` functions below.
"""

from enum import Enum


class Role(str, Enum):
    """Roles a user can hold (per tenant / cooperative grant)."""

    SUPER_ADMIN = "SUPER_ADMIN"
    COUNTY_ADMIN = "COUNTY_ADMIN"
    COUNTY_OFFICER = "COUNTY_OFFICER"
    COOPERATIVE_ADMIN = "COOPERATIVE_ADMIN"
    AUDITOR = "AUDITOR"
    TRAINER = "TRAINER"
    CITIZEN = "CITIZEN"


# Highest first. Used to pick the active role at login.
ROLE_PRECEDENCE: tuple[Role, ...] = (
    Role.SUPER_ADMIN,
    Role.COUNTY_ADMIN,
    Role.COUNTY_OFFICER,
    Role.COOPERATIVE_ADMIN,
    Role.AUDITOR,
    Role.TRAINER,
    Role.CITIZEN,
)

COUNTY_ROLES = frozenset({Role.COUNTY_ADMIN, Role.COUNTY_OFFICER})
UNSCOPED_ROLES = frozenset({Role.SUPER_ADMIN, Role.AUDITOR})


def is_county_role(role: Role) -> bool:
    return role in COUNTY_ROLES


def is_unscoped_role(role: Role) -> bool:
    return role in UNSCOPED_ROLES


def can_review_applications(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER}


def can_review_amendments(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN}


def can_submit_amendments(role: Role) -> bool:
    return role == Role.COOPERATIVE_ADMIN


def can_manage_complaints(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER}


def can_review_trainers(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN}


def can_review_auditors(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN}


def can_manage_documents(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER, Role.COOPERATIVE_ADMIN}


def can_submit_compliance(role: Role) -> bool:
    return role in {Role.COOPERATIVE_ADMIN, Role.SUPER_ADMIN}


def can_review_compliance(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER, Role.AUDITOR}


def can_manage_members(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COOPERATIVE_ADMIN}


def can_manage_cooperatives(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN}


def can_manage_counties(role: Role) -> bool:
    return role == Role.SUPER_ADMIN


def can_manage_users(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN}


def can_run_verifications(role: Role) -> bool:
    return role in {Role.SUPER_ADMIN, Role.COUNTY_ADMIN, Role.COUNTY_OFFICER}


def pick_primary_role(roles: list[Role]) -> Role:
    """Return the highest-precedence role, defaulting to CITIZEN."""
    for role in ROLE_PRECEDENCE:
        if role in roles:
            return role
    return Role.CITIZEN

"""initial portal schema

Revision ID: a1c0e7f2b9d4
Revises:
Create Date: 2026-02-02 09:00:00.000000

This migration creates the whole portal schema:
1. Counties (tenants), users and scoped role grants
2. Cooperative types, cooperatives and members
3. Registration applications (one DRAFT per applicant, partial unique index)
4. Amendments, complaints, trainer applications/profiles, compliance reports
5. Notifications
6. Mock agency registries, payment ledger and verification log

Enum types are created once with checkfirst; ``education_level`` is shared
by trainer_applications and trainer_profiles.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c0e7f2b9d4"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


ENUMS = {
    "app_role": _enum(
        "app_role",
        "SUPER_ADMIN",
        "COUNTY_ADMIN",
        "COUNTY_OFFICER",
        "COOPERATIVE_ADMIN",
        "AUDITOR",
        "TRAINER",
        "CITIZEN",
    ),
    "tenant_type": _enum("tenant_type", "COUNTY"),
    "cooperative_status": _enum(
        "cooperative_status", "REGISTERED", "ACTIVE", "DORMANT", "SUSPENDED", "DEREGISTERED"
    ),
    "notification_type": _enum("notification_type", "INFO", "SUCCESS", "WARNING", "ERROR"),
    "registration_status": _enum(
        "registration_status",
        "DRAFT",
        "SUBMITTED",
        "UNDER_REVIEW",
        "ADDITIONAL_INFO_REQUIRED",
        "APPROVED",
        "REJECTED",
        "WITHDRAWN",
    ),
    "amendment_type": _enum(
        "amendment_type",
        "BYLAW_AMENDMENT",
        "NAME_CHANGE",
        "ADDRESS_CHANGE",
        "OFFICIAL_CHANGE",
        "MEMBERSHIP_RULES",
        "SHARE_CAPITAL_CHANGE",
        "OTHER",
    ),
    "amendment_status": _enum(
        "amendment_status",
        "SUBMITTED",
        "UNDER_REVIEW",
        "ADDITIONAL_INFO_REQUIRED",
        "APPROVED",
        "REJECTED",
        "WITHDRAWN",
    ),
    "complaint_category": _enum(
        "complaint_category",
        "GOVERNANCE",
        "FINANCIAL_MISMANAGEMENT",
        "MEMBER_DISPUTE",
        "SERVICE_DELIVERY",
        "FRAUD",
        "CORRUPTION",
        "OTHER",
    ),
    "complaint_priority": _enum("complaint_priority", "LOW", "MEDIUM", "HIGH", "URGENT"),
    "complaint_status": _enum(
        "complaint_status", "RECEIVED", "INVESTIGATING", "RESOLVED", "DISMISSED"
    ),
    "education_level": _enum("education_level", "DIPLOMA", "DEGREE", "MASTERS", "PHD"),
    "trainer_application_status": _enum(
        "trainer_application_status", "PENDING", "UNDER_REVIEW", "APPROVED", "REJECTED"
    ),
    "compliance_status": _enum(
        "compliance_status", "COMPLIANT", "PARTIALLY_COMPLIANT", "NON_COMPLIANT"
    ),
    "report_review_status": _enum(
        "report_review_status", "SUBMITTED", "UNDER_REVIEW", "APPROVED", "REJECTED"
    ),
    "iprs_validation_status": _enum(
        "iprs_validation_status", "VERIFIED", "NOT_FOUND", "EXPIRED", "INVALID"
    ),
    "kra_compliance_status": _enum(
        "kra_compliance_status", "COMPLIANT", "NON_COMPLIANT", "PENDING"
    ),
    "sasra_license_status": _enum(
        "sasra_license_status", "LICENSED", "SUSPENDED", "EXPIRED", "NOT_LICENSED"
    ),
    "payment_method": _enum("payment_method", "MPESA", "CARD"),
    "payment_status": _enum(
        "payment_status", "PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED"
    ),
    "payment_service_type": _enum(
        "payment_service_type",
        "COOPERATIVE_REGISTRATION",
        "AMENDMENT_REQUEST",
        "OFFICIAL_SEARCH",
        "CERTIFICATE_COPY",
    ),
    "agency": _enum("agency", "IPRS", "KRA", "SASRA"),
}


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps (from BaseModel)."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _review_columns() -> list[sa.Column]:
    return [
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    """Create every portal table."""
    bind = op.get_bind()
    for enum_type in ENUMS.values():
        enum_type.create(bind, checkfirst=True)

    # ------------------------------------------------------------------
    # Tenancy and accounts
    # ------------------------------------------------------------------
    op.create_table(
        "tenants",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("county_code", sa.String(length=10), nullable=False),
        sa.Column("tenant_type", ENUMS["tenant_type"], nullable=False, server_default="COUNTY"),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tenants_county_code"), "tenants", ["county_code"], unique=True)

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("id_number", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("must_change_password", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="SET NULL"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_tenant_id"), "users", ["tenant_id"], unique=False)

    # ------------------------------------------------------------------
    # Cooperatives
    # ------------------------------------------------------------------
    op.create_table(
        "cooperative_types",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "cooperatives",
        *_base_columns(),
        sa.Column("registration_number", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "status", ENUMS["cooperative_status"], nullable=False, server_default="REGISTERED"
        ),
        sa.Column("registration_date", sa.Date(), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("total_members", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_share_capital", sa.Numeric(15, 2), nullable=False, server_default="0"
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["type_id"], ["cooperative_types.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint(
            "tenant_id", "registration_number", name="uq_cooperatives_tenant_number"
        ),
    )
    op.create_index(op.f("ix_cooperatives_name"), "cooperatives", ["name"], unique=False)
    op.create_index(op.f("ix_cooperatives_tenant_id"), "cooperatives", ["tenant_id"], unique=False)

    op.create_table(
        "user_roles",
        *_base_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", ENUMS["app_role"], nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("assigned_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="SET NULL"),
        sa.UniqueConstraint(
            "user_id",
            "role",
            "tenant_id",
            "cooperative_id",
            name="uq_user_roles_scope",
            postgresql_nulls_not_distinct=True,
        ),
    )
    op.create_index(op.f("ix_user_roles_user_id"), "user_roles", ["user_id"], unique=False)

    op.create_table(
        "members",
        *_base_columns(),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("member_number", sa.String(length=50), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("id_number", sa.String(length=20), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("shares_owned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("share_value", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("date_joined", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "cooperative_id", "member_number", name="uq_members_cooperative_number"
        ),
    )
    op.create_index(op.f("ix_members_cooperative_id"), "members", ["cooperative_id"], unique=False)

    op.create_table(
        "notifications",
        *_base_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", ENUMS["notification_type"], nullable=False, server_default="INFO"),
        sa.Column("link", sa.String(length=500), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(op.f("ix_notifications_user_id"), "notifications", ["user_id"], unique=False)
    op.create_index(
        "ix_notifications_user_unread", "notifications", ["user_id", "is_read"], unique=False
    )

    # ------------------------------------------------------------------
    # Registration applications
    # ------------------------------------------------------------------
    op.create_table(
        "registration_applications",
        *_base_columns(),
        sa.Column("application_number", sa.String(length=20), nullable=False),
        sa.Column("applicant_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", ENUMS["registration_status"], nullable=False, server_default="DRAFT"),
        sa.Column("current_step", sa.Integer(), nullable=False, server_default="1"),
        # Step 1: basic information
        sa.Column("proposed_name", sa.String(length=200), nullable=True),
        sa.Column("type_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("proposed_members", sa.Integer(), nullable=True),
        sa.Column("proposed_share_capital", sa.Numeric(15, 2), nullable=True),
        # Step 2: operations and contact
        sa.Column("primary_activity", sa.Text(), nullable=True),
        sa.Column("operating_area", sa.String(length=200), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("contact_person", sa.String(length=200), nullable=True),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        # Step 3: documents
        sa.Column("bylaws_url", sa.String(length=500), nullable=True),
        sa.Column("member_list_url", sa.String(length=500), nullable=True),
        sa.Column("minutes_url", sa.String(length=500), nullable=True),
        sa.Column("id_copies_url", sa.String(length=500), nullable=True),
        # Review
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_review_columns(),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["applicant_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["type_id"], ["cooperative_types.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("application_number"),
    )
    op.create_index(
        op.f("ix_registration_applications_applicant_user_id"),
        "registration_applications",
        ["applicant_user_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_registration_applications_tenant_id"),
        "registration_applications",
        ["tenant_id"],
        unique=False,
    )
    op.create_index(
        "ix_registration_applications_status", "registration_applications", ["status"]
    )
    op.create_index(
        "ix_registration_applications_submitted_at", "registration_applications", ["submitted_at"]
    )
    # At most one DRAFT per applicant
    op.create_index(
        "uq_registration_applications_one_draft",
        "registration_applications",
        ["applicant_user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'DRAFT'"),
    )

    # ------------------------------------------------------------------
    # Amendments
    # ------------------------------------------------------------------
    op.create_table(
        "amendment_requests",
        *_base_columns(),
        sa.Column("request_number", sa.String(length=20), nullable=False),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amendment_type", ENUMS["amendment_type"], nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("current_value", sa.Text(), nullable=True),
        sa.Column("proposed_value", sa.Text(), nullable=True),
        sa.Column("supporting_document_url", sa.String(length=500), nullable=True),
        sa.Column("status", ENUMS["amendment_status"], nullable=False, server_default="SUBMITTED"),
        sa.Column("submitted_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_review_columns(),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("effective_date", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("request_number"),
    )
    op.create_index(
        op.f("ix_amendment_requests_cooperative_id"), "amendment_requests", ["cooperative_id"]
    )
    op.create_index("ix_amendment_requests_status", "amendment_requests", ["status"])
    op.create_index("ix_amendment_requests_submitted_at", "amendment_requests", ["submitted_at"])

    # ------------------------------------------------------------------
    # Complaints
    # ------------------------------------------------------------------
    op.create_table(
        "complaints",
        *_base_columns(),
        sa.Column("complaint_number", sa.String(length=20), nullable=False),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("complainant_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("complainant_name", sa.String(length=200), nullable=False),
        sa.Column("complainant_phone", sa.String(length=20), nullable=True),
        sa.Column("complainant_email", sa.String(length=255), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("category", ENUMS["complaint_category"], nullable=False),
        sa.Column("priority", ENUMS["complaint_priority"], nullable=False, server_default="MEDIUM"),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("evidence_url", sa.String(length=500), nullable=True),
        sa.Column("status", ENUMS["complaint_status"], nullable=False, server_default="RECEIVED"),
        sa.Column("assigned_to", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("investigation_notes", sa.Text(), nullable=True),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("resolved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["complainant_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("complaint_number"),
    )
    op.create_index(op.f("ix_complaints_cooperative_id"), "complaints", ["cooperative_id"])
    op.create_index(op.f("ix_complaints_tenant_id"), "complaints", ["tenant_id"])
    op.create_index(op.f("ix_complaints_complainant_user_id"), "complaints", ["complainant_user_id"])
    op.create_index("ix_complaints_status", "complaints", ["status"])
    op.create_index("ix_complaints_priority", "complaints", ["priority"])

    # ------------------------------------------------------------------
    # Trainers
    # ------------------------------------------------------------------
    op.create_table(
        "trainer_applications",
        *_base_columns(),
        sa.Column("application_number", sa.String(length=20), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("id_number", sa.String(length=20), nullable=False),
        sa.Column("education_level", ENUMS["education_level"], nullable=False),
        sa.Column("institution", sa.String(length=200), nullable=False),
        sa.Column("years_experience", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("specializations", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("languages", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("cv_url", sa.String(length=500), nullable=True),
        sa.Column("certificates_url", sa.String(length=500), nullable=True),
        sa.Column("id_copy_url", sa.String(length=500), nullable=True),
        sa.Column("recommendation_url", sa.String(length=500), nullable=True),
        sa.Column("training_portfolio_url", sa.String(length=500), nullable=True),
        sa.Column("terms_accepted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("terms_accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status", ENUMS["trainer_application_status"], nullable=False, server_default="PENDING"
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_review_columns(),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("application_number"),
    )
    op.create_index(op.f("ix_trainer_applications_user_id"), "trainer_applications", ["user_id"])
    op.create_index("ix_trainer_applications_status", "trainer_applications", ["status"])

    op.create_table(
        "trainer_profiles",
        *_base_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("education_level", ENUMS["education_level"], nullable=False),
        sa.Column("institution", sa.String(length=200), nullable=True),
        sa.Column("years_experience", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("specializations", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("languages", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("total_programs_delivered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["application_id"], ["trainer_applications.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("user_id"),
    )

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------
    op.create_table(
        "compliance_reports",
        *_base_columns(),
        sa.Column("report_number", sa.String(length=20), nullable=False),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("financial_year", sa.String(length=9), nullable=False),
        sa.Column("agm_held", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("agm_date", sa.Date(), nullable=True),
        sa.Column("agm_minutes_url", sa.String(length=500), nullable=True),
        sa.Column("financial_statement_url", sa.String(length=500), nullable=True),
        sa.Column("audit_report_url", sa.String(length=500), nullable=True),
        sa.Column("annual_return_url", sa.String(length=500), nullable=True),
        sa.Column("bylaws_compliant", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("meetings_compliant", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("records_compliant", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("financial_compliant", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("compliance_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "compliance_status",
            ENUMS["compliance_status"],
            nullable=False,
            server_default="NON_COMPLIANT",
        ),
        sa.Column("submitted_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "review_status",
            ENUMS["report_review_status"],
            nullable=False,
            server_default="SUBMITTED",
        ),
        *_review_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("report_number"),
    )
    op.create_index(
        op.f("ix_compliance_reports_cooperative_id"), "compliance_reports", ["cooperative_id"]
    )
    op.create_index("ix_compliance_reports_review_status", "compliance_reports", ["review_status"])
    op.create_index(
        "ix_compliance_reports_coop_year", "compliance_reports", ["cooperative_id", "financial_year"]
    )

    # ------------------------------------------------------------------
    # Mock agencies and payments
    # ------------------------------------------------------------------
    op.create_table(
        "mock_iprs_records",
        *_base_columns(),
        sa.Column("id_number", sa.String(length=8), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(length=10), nullable=True),
        sa.Column("citizenship_status", sa.String(length=50), nullable=True),
        sa.Column("id_issue_date", sa.Date(), nullable=True),
        sa.Column("id_expiry_date", sa.Date(), nullable=True),
        sa.Column(
            "validation_status",
            ENUMS["iprs_validation_status"],
            nullable=False,
            server_default="VERIFIED",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("id_number"),
    )

    op.create_table(
        "mock_kra_records",
        *_base_columns(),
        sa.Column("kra_pin", sa.String(length=11), nullable=False),
        sa.Column("taxpayer_name", sa.String(length=200), nullable=False),
        sa.Column(
            "compliance_status",
            ENUMS["kra_compliance_status"],
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column("outstanding_tax_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("last_filing_date", sa.Date(), nullable=True),
        sa.Column("vat_obligation", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("paye_obligation", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "corporation_tax_obligation", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("kra_pin"),
    )

    op.create_table(
        "mock_sasra_compliance",
        *_base_columns(),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("license_number", sa.String(length=20), nullable=True),
        sa.Column(
            "license_status",
            ENUMS["sasra_license_status"],
            nullable=False,
            server_default="NOT_LICENSED",
        ),
        sa.Column("license_expiry_date", sa.Date(), nullable=True),
        sa.Column("last_audit_date", sa.Date(), nullable=True),
        sa.Column("capital_adequacy_ratio", sa.Numeric(6, 2), nullable=True),
        sa.Column("liquidity_ratio", sa.Numeric(6, 2), nullable=True),
        sa.Column("npl_ratio", sa.Numeric(6, 2), nullable=True),
        sa.Column("compliance_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("regulatory_alerts", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("supervisor_name", sa.String(length=200), nullable=True),
        sa.Column("supervisor_phone", sa.String(length=20), nullable=True),
        sa.Column("supervisor_email", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("cooperative_id"),
    )

    op.create_table(
        "payment_transactions",
        *_base_columns(),
        sa.Column("bill_reference", sa.String(length=20), nullable=False),
        sa.Column("receipt_number", sa.String(length=40), nullable=True),
        sa.Column("payment_method", ENUMS["payment_method"], nullable=False),
        sa.Column(
            "payment_status", ENUMS["payment_status"], nullable=False, server_default="PENDING"
        ),
        sa.Column("service_type", ENUMS["payment_service_type"], nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payer_user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("payer_name", sa.String(length=200), nullable=False),
        sa.Column("payer_phone", sa.String(length=20), nullable=True),
        sa.Column("payer_email", sa.String(length=255), nullable=True),
        sa.Column("mpesa_number", sa.String(length=20), nullable=True),
        sa.Column("card_last_four", sa.String(length=4), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("initiated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["payer_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("bill_reference"),
        sa.UniqueConstraint("receipt_number"),
    )
    op.create_index(
        op.f("ix_payment_transactions_payer_user_id"), "payment_transactions", ["payer_user_id"]
    )

    op.create_table(
        "agency_verifications",
        *_base_columns(),
        sa.Column("agency", ENUMS["agency"], nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("outcome", sa.String(length=50), nullable=False),
        sa.Column("reference", sa.String(length=50), nullable=True),
        sa.Column("verified_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["verified_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index(op.f("ix_agency_verifications_subject"), "agency_verifications", ["subject"])


def downgrade() -> None:
    """Drop every portal table and enum type."""
    for table in (
        "agency_verifications",
        "payment_transactions",
        "mock_sasra_compliance",
        "mock_kra_records",
        "mock_iprs_records",
        "compliance_reports",
        "trainer_profiles",
        "trainer_applications",
        "complaints",
        "amendment_requests",
        "registration_applications",
        "notifications",
        "members",
        "user_roles",
        "cooperatives",
        "cooperative_types",
        "users",
        "tenants",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in ENUMS.values():
        enum_type.drop(bind, checkfirst=True)

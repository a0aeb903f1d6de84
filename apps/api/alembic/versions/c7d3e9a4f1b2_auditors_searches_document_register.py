"""auditors, official searches and document register

Revision ID: c7d3e9a4f1b2
Revises: a1c0e7f2b9d4
Create Date: 2026-10-18 09:00:00.000000

1. Auditor applications and the auditor directory
2. Official search requests (reuse the payment_method / payment_status types)
3. Document register and its access log
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "c7d3e9a4f1b2"
down_revision: str | Sequence[str] | None = "a1c0e7f2b9d4"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


ENUMS = {
    "auditor_qualification": _enum(
        "auditor_qualification",
        "CERTIFIED_PUBLIC_ACCOUNTANT",
        "CHARTERED_ACCOUNTANT",
        "COOPERATIVE_AUDITOR",
        "OTHER",
    ),
    "auditor_application_status": _enum(
        "auditor_application_status", "PENDING", "UNDER_REVIEW", "APPROVED", "REJECTED"
    ),
    "document_status": _enum("document_status", "ACTIVE", "ARCHIVED", "DELETED"),
    "document_action": _enum("document_action", "UPLOAD", "UPDATE", "ARCHIVE", "DELETE", "VIEW"),
}

# Created by the initial schema
PAYMENT_METHOD = _enum("payment_method", "MPESA", "CARD")
PAYMENT_STATUS = _enum(
    "payment_status", "PENDING", "PROCESSING", "COMPLETED", "FAILED", "CANCELLED"
)


def _base_columns() -> list[sa.Column]:
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


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS.values():
        enum_type.create(bind, checkfirst=True)

    # ------------------------------------------------------------------
    # Auditors
    # ------------------------------------------------------------------
    op.create_table(
        "auditor_applications",
        *_base_columns(),
        sa.Column("application_number", sa.String(length=20), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("id_number", sa.String(length=20), nullable=False),
        sa.Column("qualification", ENUMS["auditor_qualification"], nullable=False),
        sa.Column("certification_body", sa.String(length=200), nullable=False),
        sa.Column("certificate_number", sa.String(length=100), nullable=False),
        sa.Column("certificate_issue_date", sa.Date(), nullable=True),
        sa.Column("years_experience", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("specializations", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("professional_certificate_url", sa.String(length=500), nullable=True),
        sa.Column("academic_certificates_url", sa.String(length=500), nullable=True),
        sa.Column("practicing_certificate_url", sa.String(length=500), nullable=True),
        sa.Column("id_copy_url", sa.String(length=500), nullable=True),
        sa.Column("cv_url", sa.String(length=500), nullable=True),
        sa.Column("terms_accepted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("terms_accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status", ENUMS["auditor_application_status"], nullable=False, server_default="PENDING"
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("application_number"),
    )
    op.create_index(op.f("ix_auditor_applications_user_id"), "auditor_applications", ["user_id"])
    op.create_index("ix_auditor_applications_status", "auditor_applications", ["status"])

    op.create_table(
        "auditor_profiles",
        *_base_columns(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("qualification", ENUMS["auditor_qualification"], nullable=False),
        sa.Column("certification_body", sa.String(length=200), nullable=False),
        sa.Column("certificate_number", sa.String(length=100), nullable=False),
        sa.Column("years_experience", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("specializations", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("total_audits_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cooperatives_audited", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("certification_expiry_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["application_id"], ["auditor_applications.id"], ondelete="SET NULL"
        ),
        sa.UniqueConstraint("user_id"),
    )

    # ------------------------------------------------------------------
    # Official searches
    # ------------------------------------------------------------------
    op.create_table(
        "search_requests",
        *_base_columns(),
        sa.Column("search_number", sa.String(length=20), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requester_name", sa.String(length=200), nullable=False),
        sa.Column("requester_id_number", sa.String(length=20), nullable=True),
        sa.Column("requester_email", sa.String(length=255), nullable=True),
        sa.Column("requester_phone", sa.String(length=20), nullable=True),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("payment_reference", sa.String(length=30), nullable=True),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", PAYMENT_STATUS, nullable=False, server_default="PENDING"),
        sa.Column("payment_method", PAYMENT_METHOD, nullable=True),
        sa.Column(
            "certificate_generated", sa.Boolean(), nullable=False, server_default="false"
        ),
        sa.Column("certificate_number", sa.String(length=20), nullable=True),
        sa.Column("certificate_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("search_number"),
        sa.UniqueConstraint("certificate_number"),
    )
    op.create_index(op.f("ix_search_requests_user_id"), "search_requests", ["user_id"])
    op.create_index(
        op.f("ix_search_requests_cooperative_id"), "search_requests", ["cooperative_id"]
    )
    op.create_index(
        op.f("ix_search_requests_payment_reference"), "search_requests", ["payment_reference"]
    )

    # ------------------------------------------------------------------
    # Document register
    # ------------------------------------------------------------------
    op.create_table(
        "documents",
        *_base_columns(),
        sa.Column("document_number", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("document_type", sa.String(length=50), nullable=False),
        sa.Column("sectoral_category", sa.String(length=50), nullable=True),
        sa.Column("tags", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("cooperative_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("storage_path", sa.String(length=500), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column("uploaded_by", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", ENUMS["document_status"], nullable=False, server_default="ACTIVE"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["cooperative_id"], ["cooperatives.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("document_number"),
    )
    op.create_index(op.f("ix_documents_tenant_id"), "documents", ["tenant_id"])
    op.create_index(op.f("ix_documents_cooperative_id"), "documents", ["cooperative_id"])
    op.create_index("ix_documents_status", "documents", ["status"])

    op.create_table(
        "document_access_logs",
        *_base_columns(),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", ENUMS["document_action"], nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(
        op.f("ix_document_access_logs_document_id"), "document_access_logs", ["document_id"]
    )


def downgrade() -> None:
    for table in (
        "document_access_logs",
        "documents",
        "search_requests",
        "auditor_profiles",
        "auditor_applications",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in ENUMS.values():
        enum_type.drop(bind, checkfirst=True)

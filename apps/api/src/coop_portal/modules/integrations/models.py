"""
Government Agency Integration Models

Mock registries standing in for IPRS (national ID), KRA iTax (tax PIN) and
SASRA (SACCO licensing), the eCitizen payment ledger, and the audit log of
every verification run against them.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel

# ============================================================================
# IPRS
# ============================================================================


class IprsValidationStatus(str, enum.Enum):
    VERIFIED = "VERIFIED"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class IprsRecord(BaseModel):
    __tablename__ = "mock_iprs_records"

    id_number: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    citizenship_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    id_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    id_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    validation_status: Mapped[IprsValidationStatus] = mapped_column(
        Enum(IprsValidationStatus, name="iprs_validation_status"),
        nullable=False,
        default=IprsValidationStatus.VERIFIED,
    )


# ============================================================================
# KRA
# ============================================================================


class KraComplianceStatus(str, enum.Enum):
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"
    PENDING = "PENDING"


class KraRecord(BaseModel):
    __tablename__ = "mock_kra_records"

    kra_pin: Mapped[str] = mapped_column(String(11), unique=True, nullable=False)
    taxpayer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    compliance_status: Mapped[KraComplianceStatus] = mapped_column(
        Enum(KraComplianceStatus, name="kra_compliance_status"),
        nullable=False,
        default=KraComplianceStatus.PENDING,
    )
    outstanding_tax_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )
    last_filing_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    vat_obligation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paye_obligation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    corporation_tax_obligation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# ============================================================================
# SASRA
# ============================================================================


class SasraLicenseStatus(str, enum.Enum):
    LICENSED = "LICENSED"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"
    NOT_LICENSED = "NOT_LICENSED"


class SasraCompliance(BaseModel):
    __tablename__ = "mock_sasra_compliance"

    cooperative_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    license_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    license_status: Mapped[SasraLicenseStatus] = mapped_column(
        Enum(SasraLicenseStatus, name="sasra_license_status"),
        nullable=False,
        default=SasraLicenseStatus.NOT_LICENSED,
    )
    license_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_audit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    capital_adequacy_ratio: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    liquidity_ratio: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    npl_ratio: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    compliance_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    regulatory_alerts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    supervisor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    supervisor_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    supervisor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)


# ============================================================================
# eCitizen payments
# ============================================================================


class PaymentMethod(str, enum.Enum):
    MPESA = "MPESA"
    CARD = "CARD"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class ServiceType(str, enum.Enum):
    COOPERATIVE_REGISTRATION = "COOPERATIVE_REGISTRATION"
    AMENDMENT_REQUEST = "AMENDMENT_REQUEST"
    OFFICIAL_SEARCH = "OFFICIAL_SEARCH"
    CERTIFICATE_COPY = "CERTIFICATE_COPY"


class PaymentTransaction(BaseModel):
    __tablename__ = "payment_transactions"

    bill_reference: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    receipt_number: Mapped[str | None] = mapped_column(String(40), unique=True, nullable=True)
    payment_method: Mapped[PaymentMethod] = mapped_column(
        Enum(PaymentMethod, name="payment_method"),
        nullable=False,
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType, name="payment_service_type"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    payer_user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    payer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    payer_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    payer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    mpesa_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    card_last_four: Mapped[str | None] = mapped_column(String(4), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    initiated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ============================================================================
# Verification audit log
# ============================================================================


class Agency(str, enum.Enum):
    IPRS = "IPRS"
    KRA = "KRA"
    SASRA = "SASRA"


class AgencyVerification(BaseModel):
    """One verification performed against a mock agency."""

    __tablename__ = "agency_verifications"

    agency: Mapped[Agency] = mapped_column(Enum(Agency, name="agency"), nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    outcome: Mapped[str] = mapped_column(String(50), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(50), nullable=True)
    verified_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

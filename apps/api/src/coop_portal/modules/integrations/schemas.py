"""
Integration Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from coop_portal.modules.integrations.models import (
    Agency,
    IprsValidationStatus,
    KraComplianceStatus,
    PaymentMethod,
    PaymentStatus,
    SasraLicenseStatus,
    ServiceType,
)


class NationalIdVerifyRequest(BaseModel):
    id_number: str = Field(..., max_length=20)


class KraPinVerifyRequest(BaseModel):
    kra_pin: str = Field(..., max_length=20)


class IprsRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id_number: str
    full_name: str
    date_of_birth: date | None = None
    gender: str | None = None
    citizenship_status: str | None = None
    id_issue_date: date | None = None
    id_expiry_date: date | None = None
    validation_status: IprsValidationStatus


class KraRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kra_pin: str
    taxpayer_name: str
    compliance_status: KraComplianceStatus
    compliance_certificate_number: str | None = None
    outstanding_tax_amount: Decimal
    last_filing_date: date | None = None
    vat_obligation: bool
    paye_obligation: bool
    corporation_tax_obligation: bool


class SasraComplianceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cooperative_id: UUID
    license_number: str | None = None
    license_status: SasraLicenseStatus
    license_expiry_date: date | None = None
    last_audit_date: date | None = None
    capital_adequacy_ratio: Decimal | None = None
    liquidity_ratio: Decimal | None = None
    npl_ratio: Decimal | None = None
    compliance_score: int
    regulatory_alerts: list[str] = []
    supervisor_name: str | None = None
    supervisor_phone: str | None = None
    supervisor_email: str | None = None


class VerificationLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    agency: Agency
    subject: str
    success: bool
    outcome: str
    reference: str | None = None
    verified_by: UUID | None = None
    created_at: datetime


class ServiceFeeResponse(BaseModel):
    service_type: ServiceType
    amount: Decimal


class PaymentInitiateRequest(BaseModel):
    service_type: ServiceType
    payment_method: PaymentMethod
    payer_name: str = Field(..., min_length=2, max_length=200)
    payer_phone: str | None = Field(None, max_length=20)
    payer_email: EmailStr | None = None
    mpesa_number: str | None = Field(None, pattern=r"^(\+?254|0)[17]\d{8}$")
    card_last_four: str | None = Field(None, pattern=r"^\d{4}$")

    @model_validator(mode="after")
    def check_method_details(self):
        if self.payment_method == PaymentMethod.MPESA and not self.mpesa_number:
            raise ValueError("mpesa_number is required for M-Pesa payments")
        if self.payment_method == PaymentMethod.CARD and not self.card_last_four:
            raise ValueError("card_last_four is required for card payments")
        return self


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    bill_reference: str
    receipt_number: str | None = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    service_type: ServiceType
    amount: Decimal
    payer_name: str
    payer_phone: str | None = None
    payer_email: str | None = None
    mpesa_number: str | None = None
    card_last_four: str | None = None
    failure_reason: str | None = None
    initiated_at: datetime
    completed_at: datetime | None = None

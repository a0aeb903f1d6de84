"""
Official Search Schemas
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from coop_portal.modules.integrations.models import PaymentMethod, PaymentStatus


class CertificateRequestCreate(BaseModel):
    cooperative_id: UUID
    requester_name: str = Field(..., min_length=2, max_length=200)
    requester_id_number: str = Field(..., min_length=6, max_length=20)
    requester_email: EmailStr
    requester_phone: str = Field(..., min_length=10, max_length=20)
    purpose: str = Field(..., min_length=3, max_length=2000)
    payment_method: PaymentMethod
    mpesa_number: str | None = Field(None, pattern=r"^(\+?254|0)[17]\d{8}$")
    card_last_four: str | None = Field(None, pattern=r"^\d{4}$")

    @model_validator(mode="after")
    def check_method_details(self):
        if self.payment_method == PaymentMethod.MPESA and not self.mpesa_number:
            raise ValueError("mpesa_number is required for M-Pesa payments")
        if self.payment_method == PaymentMethod.CARD and not self.card_last_four:
            raise ValueError("card_last_four is required for card payments")
        return self


class SearchRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    search_number: str
    user_id: UUID | None = None
    cooperative_id: UUID
    requester_name: str
    requester_id_number: str | None = None
    requester_email: str | None = None
    requester_phone: str | None = None
    purpose: str | None = None
    payment_reference: str | None = None
    payment_amount: Decimal
    payment_status: PaymentStatus
    payment_method: PaymentMethod | None = None
    certificate_generated: bool
    certificate_number: str | None = None
    certificate_generated_at: datetime | None = None
    created_at: datetime


class SearchRequestListResponse(BaseModel):
    items: list[SearchRequestResponse]
    total_count: int
    page: int
    page_size: int

"""
Member Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class MemberCreate(BaseModel):
    member_number: str = Field(..., min_length=1, max_length=50)
    full_name: str = Field(..., min_length=2, max_length=200)
    id_number: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    address: str | None = None
    shares_owned: int = Field(0, ge=0)
    share_value: Decimal = Field(Decimal("0"), ge=0)
    date_joined: date | None = None


class MemberUpdate(BaseModel):
    member_number: str | None = Field(None, min_length=1, max_length=50)
    full_name: str | None = Field(None, min_length=2, max_length=200)
    id_number: str | None = Field(None, max_length=20)
    phone: str | None = Field(None, max_length=20)
    email: EmailStr | None = None
    address: str | None = None
    shares_owned: int | None = Field(None, ge=0)
    share_value: Decimal | None = Field(None, ge=0)
    is_active: bool | None = None


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    cooperative_id: UUID
    member_number: str
    full_name: str
    id_number: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    shares_owned: int
    share_value: Decimal
    date_joined: date
    is_active: bool
    created_at: datetime


class MemberListResponse(BaseModel):
    items: list[MemberResponse]
    total_count: int
    page: int
    page_size: int

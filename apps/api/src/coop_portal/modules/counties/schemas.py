"""
County Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coop_portal.modules.counties.models import TenantType


class CountyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    county_code: str = Field(..., min_length=1, max_length=10, pattern=r"^\d{1,10}$")
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=20)
    address: str | None = None


class CountyUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=200)
    contact_email: EmailStr | None = None
    contact_phone: str | None = Field(None, max_length=20)
    address: str | None = None
    is_active: bool | None = None


class CountyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    county_code: str
    tenant_type: TenantType
    contact_email: str | None = None
    contact_phone: str | None = None
    address: str | None = None
    is_active: bool
    created_at: datetime


class CountyListResponse(BaseModel):
    items: list[CountyResponse]
    total_count: int
    page: int
    page_size: int


class CountyStatsResponse(BaseModel):
    county_id: UUID
    total_cooperatives: int
    active_cooperatives: int
    total_officers: int

"""
Cooperative Schemas
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from coop_portal.modules.cooperatives.models import CooperativeStatus


class CooperativeTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str | None = None
    description: str | None = None


class CooperativeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    registration_number: str
    name: str
    type_id: UUID | None = None
    tenant_id: UUID
    application_id: UUID | None = None
    status: CooperativeStatus
    registration_date: date
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    total_members: int
    total_share_capital: Decimal
    is_active: bool
    created_at: datetime


class CooperativeListResponse(BaseModel):
    items: list[CooperativeResponse]
    total_count: int
    page: int
    page_size: int


class RegistryEntry(BaseModel):
    """Public registry row; contact details are not exposed."""

    id: UUID
    registration_number: str
    name: str
    status: CooperativeStatus
    registration_date: date
    county_name: str | None = None
    type_name: str | None = None
    total_members: int


class RegistrySearchResponse(BaseModel):
    items: list[RegistryEntry]
    total_count: int
    page: int
    page_size: int


class CooperativeStatusUpdate(BaseModel):
    status: CooperativeStatus

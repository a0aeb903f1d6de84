"""
County Models

Counties are the portal's tenants. Every cooperative, county officer and
registration application belongs to exactly one county.
"""

import enum

from sqlalchemy import Boolean, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class TenantType(str, enum.Enum):
    """Kinds of tenant. Only counties exist today."""

    COUNTY = "COUNTY"


class Tenant(BaseModel):
    """
    County tenant.

    Soft deleted by clearing ``is_active``; rows are never removed because
    cooperatives and applications keep referencing them.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    county_code: Mapped[str] = mapped_column(String(10), unique=True, index=True, nullable=False)
    tenant_type: Mapped[TenantType] = mapped_column(
        Enum(TenantType, name="tenant_type"), nullable=False, default=TenantType.COUNTY
    )

    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, code={self.county_code}, name={self.name})>"

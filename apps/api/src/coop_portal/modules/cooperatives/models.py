"""
Cooperative Models

Registered cooperative societies and the catalogue of cooperative types.
A cooperative row is created when a registration application is approved.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class CooperativeStatus(str, enum.Enum):
    """Lifecycle of a registered cooperative."""

    REGISTERED = "REGISTERED"
    ACTIVE = "ACTIVE"
    DORMANT = "DORMANT"
    SUSPENDED = "SUSPENDED"
    DEREGISTERED = "DEREGISTERED"


class CooperativeType(BaseModel):
    """Kind of cooperative (SACCO, dairy, housing ...)."""

    __tablename__ = "cooperative_types"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Cooperative(BaseModel):
    """
    Registered cooperative society.

    Registration numbers are sequential per county (``COOP-{year}-{seq:05d}``).
    """

    __tablename__ = "cooperatives"

    registration_number: Mapped[str] = mapped_column(String(30), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    type_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperative_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Application that produced this cooperative (NULL for imported records)
    application_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    status: Mapped[CooperativeStatus] = mapped_column(
        Enum(CooperativeStatus, name="cooperative_status"),
        nullable=False,
        default=CooperativeStatus.REGISTERED,
    )
    registration_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Contact
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Membership (total_members is kept equal to the count of active members)
    total_members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_share_capital: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0")
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "registration_number", name="uq_cooperatives_tenant_number"),
    )

    def __repr__(self) -> str:
        return f"<Cooperative(id={self.id}, number={self.registration_number}, name={self.name})>"

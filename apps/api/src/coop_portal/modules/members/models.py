"""
Member Models

Cooperative membership roster.
"""

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.shared import BaseModel


class Member(BaseModel):
    """
    A member of a cooperative.

    Member numbers are chosen by the cooperative and unique within it.
    Leaving members are deactivated, never deleted.
    """

    __tablename__ = "members"

    cooperative_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_number: Mapped[str] = mapped_column(String(50), nullable=False)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    id_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)

    shares_owned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_value: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    date_joined: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("cooperative_id", "member_number", name="uq_members_cooperative_number"),
    )

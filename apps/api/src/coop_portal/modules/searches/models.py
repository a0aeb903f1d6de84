"""
Official Search Models
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.modules.integrations.models import PaymentMethod, PaymentStatus
from coop_portal.modules.shared import BaseModel


class SearchRequest(BaseModel):
    """
    A paid request for an official search certificate on one cooperative.

    ``payment_reference`` is the eCitizen bill reference; ``payment_status``
    mirrors the bill and is refreshed whenever the requester confirms payment.
    Requests from the public carry no ``user_id``.
    """

    __tablename__ = "search_requests"

    search_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    cooperative_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Requester
    requester_name: Mapped[str] = mapped_column(String(200), nullable=False)
    requester_id_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    requester_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requester_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Payment
    payment_reference: Mapped[str | None] = mapped_column(String(30), nullable=True, index=True)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod, name="payment_method"),
        nullable=True,
    )

    # Certificate
    certificate_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    certificate_number: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)
    certificate_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<SearchRequest(number={self.search_number}, payment={self.payment_status.value})>"

"""
User Models

Database models for portal accounts and their role grants.
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from coop_portal.core.permissions import Role
from coop_portal.modules.shared import BaseModel


class User(BaseModel):
    """
    Portal account.

    What a user may do is decided by their active ``UserRoleGrant`` rows, not
    by the account itself. ``tenant_id`` is the county the user belongs to;
    citizens get one assigned the first time they start a registration.
    """

    __tablename__ = "users"

    # ON DELETE SET NULL: If the county is removed, users remain unassigned
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Authentication fields
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Profile fields
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    id_number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    must_change_password: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class UserRoleGrant(BaseModel):
    """
    A role held by a user, optionally scoped to a county or a cooperative.

    Grants are never deleted; removing a role clears ``is_active`` so the
    history of who held what stays queryable.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[Role] = mapped_column(
        ENUM(Role, name="app_role", create_type=True),
        nullable=False,
    )
    tenant_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
    )
    cooperative_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("cooperatives.id", ondelete="SET NULL"),
        nullable=True,
    )
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "role",
            "tenant_id",
            "cooperative_id",
            name="uq_user_roles_scope",
            postgresql_nulls_not_distinct=True,
        ),
    )

    def __repr__(self) -> str:
        return f"<UserRoleGrant(user_id={self.user_id}, role={self.role.value})>"

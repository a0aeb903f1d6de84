"""
User Schemas

Pydantic models for user administration.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from coop_portal.core.permissions import Role


class UserCreate(BaseModel):
    """Request body for creating an account on behalf of someone."""

    email: EmailStr
    full_name: str = Field(..., min_length=2, max_length=200)
    phone: str | None = Field(None, max_length=20)
    id_number: str | None = Field(None, max_length=20)
    tenant_id: UUID | None = None
    role: Role | None = Field(None, description="Optional initial role grant")
    cooperative_id: UUID | None = None


class RoleAssignRequest(BaseModel):
    role: Role
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None


class RoleGrantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    role: Role
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None
    is_active: bool
    created_at: datetime


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    phone: str | None = None
    id_number: str | None = None
    tenant_id: UUID | None = None
    is_active: bool
    must_change_password: bool
    created_at: datetime


class UserWithRolesResponse(UserResponse):
    roles: list[RoleGrantResponse] = Field(default_factory=list)


class UserCreatedResponse(BaseModel):
    """Returned once after creation; the temporary password is not stored in clear."""

    user: UserResponse
    temporary_password: str
    email_sent: bool


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total_count: int
    page: int
    page_size: int

"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from coop_portal.core.permissions import Role


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RoleGrantInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    role: Role
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None


class UserResponse(BaseModel):
    """User response schema for login."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    phone: str | None = None
    tenant_id: UUID | None = None
    is_active: bool
    must_change_password: bool
    created_at: datetime


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    role: Role
    user: UserResponse
    roles: list[RoleGrantInfo]


class CurrentUserResponse(BaseModel):
    id: UUID
    email: str
    name: str | None = None
    role: Role
    tenant_id: UUID | None = None
    cooperative_id: UUID | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)

    @model_validator(mode="after")
    def validate_passwords_differ(self):
        if self.current_password == self.new_password:
            raise ValueError("New password must be different from the current password")
        return self

"""Pydantic request/response schemas for kl_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.kl_common.enums import UserRole, UserStatus
from src.kl_gateway.user.models import User


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.USER

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        """At least one letter and one digit."""
        if not re.search(r"[A-Za-z]", v):
            raise ValueError("Password must contain at least one letter")
        if not re.search(r"\d", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @field_validator("role")
    @classmethod
    def no_self_granted_admin(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("The admin role can only be granted by an admin")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserInfo(BaseModel):
    user_id: str
    email: str
    role: str
    status: str
    created_at: str

    @classmethod
    def from_domain(cls, user: User) -> "UserInfo":
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
            status=user.status.value,
            created_at=user.created_at,
        )


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = 1800
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int = 1800


class ApproveUserRequest(BaseModel):
    role: UserRole | None = None


class SetStatusRequest(BaseModel):
    status: UserStatus


class SetRoleRequest(BaseModel):
    role: UserRole


class UserListResponse(BaseModel):
    items: list[UserInfo]

"""User account data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from marketplace.models.plugin import utcnow


@dataclass
class User:
    """User account.

    Attributes:
        id: Unique user ID.
        username: Unique display name.
        email: Unique lower-case email address.
        password_hash: Password hash.
        is_admin: Whether user is admin.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: str
    username: str
    email: str
    password_hash: str
    is_admin: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# Pydantic Models for API


class RegisterRequest(BaseModel):
    """Request to create an account."""

    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=256)


class LoginRequest(BaseModel):
    """Request to obtain a bearer token."""

    email: str
    password: str


class ProfileUpdate(BaseModel):
    """Request to update the caller's profile."""

    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)


class PasswordChange(BaseModel):
    """Request to change the caller's password."""

    current_password: str
    new_password: str = Field(..., min_length=6, max_length=256)


class UserSummary(BaseModel):
    """Summary model for user information."""

    id: str
    username: str
    email: str
    is_admin: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            is_admin=user.is_admin,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Response for a successful login."""

    token: str
    user: UserSummary

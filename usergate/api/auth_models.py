"""Request/response models for authentication and user endpoints."""

from datetime import datetime
from typing import List, Optional
from email_validator import validate_email
from pydantic import BaseModel, Field, field_validator

from usergate.models.constants import MAX_PASSWORD_BYTES
from usergate.models.user import UserRole


def check_email_format(value: Optional[str]) -> Optional[str]:
    """Reject malformed addresses but keep the value exactly as sent.

    Emails are matched case-sensitively, so the normalized form returned by
    the validator is discarded.
    """
    if value is not None:
        validate_email(value, check_deliverability=False)
    return value


def check_password_length(value: Optional[str]) -> Optional[str]:
    # bcrypt only accepts up to 72 bytes of input
    if value is not None and len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request model for self-service registration."""
    name: str = Field(..., min_length=1, examples=["John Doe"])
    email: str = Field(..., examples=["johndoe@example.com"])
    password: str = Field(..., min_length=6, examples=["admin123"])

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return check_email_format(v)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return check_password_length(v)


class LoginRequest(BaseModel):
    """Request model for credential login."""
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return check_email_format(v)


class RegistrationResponse(BaseModel):
    userId: str


class LoginUser(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole


class LoginResponse(BaseModel):
    """Response model for authentication."""
    user: LoginUser
    accessToken: str


class CreateUserRequest(BaseModel):
    """Request model for admin user creation."""
    name: str = Field(..., min_length=1)
    email: str
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[UserRole] = None
    externalId: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return check_email_format(v)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: Optional[str]) -> Optional[str]:
        return check_password_length(v)


class UpdateUserRequest(BaseModel):
    """Request model for partial user updates."""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[UserRole] = None
    externalId: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: Optional[str]) -> Optional[str]:
        return check_email_format(v)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: Optional[str]) -> Optional[str]:
        return check_password_length(v)


class UserResponse(BaseModel):
    """Sanitized user view (no password)."""
    id: str
    email: str
    name: str
    role: UserRole
    externalId: Optional[str] = None
    lastLoginAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UserListResponse(BaseModel):
    data: List[UserResponse]
    pagination: Pagination


class InactiveUsersResponse(BaseModel):
    data: List[UserResponse]
    count: int

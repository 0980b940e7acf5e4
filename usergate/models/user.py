"""User data models for usergate."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """User role enumeration."""
    USER = "USER"
    ADMIN = "ADMIN"


# Columns a caller may sort the user listing by (wire name -> model field)
SORTABLE_FIELDS = {
    "name": "name",
    "createdAt": "created_at",
}


class User(BaseModel):
    """Canonical User model."""

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    email: str = Field(..., description="User email address (login key)")
    password: Optional[str] = Field(None, description="bcrypt hash; absent for external-only accounts")
    name: str = Field(..., description="User display name")
    role: UserRole = Field(UserRole.USER, description="Role governing authorization decisions")
    external_id: Optional[str] = Field(None, alias="externalId", description="Google subject id when linked")
    last_login_at: Optional[datetime] = Field(None, alias="lastLoginAt", description="Last successful login")
    created_at: datetime = Field(..., alias="createdAt", description="User creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="User last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
        populate_by_name = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_public(self) -> Dict[str, Any]:
        """Sanitized view: every field except the password hash, keyed by wire names."""
        return self.model_dump(by_alias=True, exclude={"password"}, mode="json")


class UserCandidate(BaseModel):
    """Input for creating a user."""

    name: str
    email: str
    password: Optional[str] = None
    role: Optional[UserRole] = None
    external_id: Optional[str] = Field(None, alias="externalId")

    class Config:
        use_enum_values = True
        populate_by_name = True


class UserPatch(BaseModel):
    """Partial update; only fields that were actually supplied are applied."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    external_id: Optional[str] = Field(None, alias="externalId")

    class Config:
        use_enum_values = True
        populate_by_name = True

    def supplied_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class UserFilters(BaseModel):
    """Listing filters. `order`, `page` and `limit` must all be present (and non-zero) for a result."""

    role: Optional[UserRole] = None
    sort_by: Literal["name", "createdAt"] = Field("createdAt", alias="sortBy")
    order: Optional[Literal["asc", "desc"]] = None
    page: Optional[int] = Field(None, ge=0)
    limit: Optional[int] = Field(None, ge=0)

    class Config:
        use_enum_values = True
        populate_by_name = True

    @property
    def is_complete(self) -> bool:
        return bool(self.order and self.page and self.limit)

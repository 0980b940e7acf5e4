"""Data models for usergate."""

from usergate.models.user import User, UserRole, UserCandidate, UserPatch, UserFilters
from usergate.models.errors import (
    DomainError,
    ConflictError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ExternalIdentityError,
)

__all__ = [
    "User",
    "UserRole",
    "UserCandidate",
    "UserPatch",
    "UserFilters",
    "DomainError",
    "ConflictError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ExternalIdentityError",
]

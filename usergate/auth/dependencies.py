"""FastAPI dependencies for authentication and service wiring."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from usergate.database.database import get_db
from usergate.database.user_repository import UserRepository
from usergate.auth import authorization
from usergate.auth.jwt import get_user_id_from_token
from usergate.models.constants import MSG_ADMIN_ONLY
from usergate.models.errors import ForbiddenError
from usergate.models.user import User
from usergate.services.identity_service import IdentityService
from usergate.services.auth_service import AuthService
from usergate.services.external_identity import ExternalIdentityStrategy

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_identity_service(db: Session = Depends(get_db)) -> IdentityService:
    return IdentityService(UserRepository(db))


def get_auth_service(identity: IdentityService = Depends(get_identity_service)) -> AuthService:
    return AuthService(identity)


def get_external_identity_strategy(
    identity: IdentityService = Depends(get_identity_service),
) -> ExternalIdentityStrategy:
    return ExternalIdentityStrategy(identity)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object

    Raises:
        HTTPException: If token is invalid or user not found
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = get_user_id_from_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = UserRepository(db).get(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Current user, provided they are an admin."""
    if not authorization.is_admin(current_user):
        raise ForbiddenError(MSG_ADMIN_ONLY)
    return current_user

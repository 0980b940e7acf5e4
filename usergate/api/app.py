"""FastAPI web application for usergate."""

import logging
import os
import secrets
from contextlib import asynccontextmanager
from typing import Literal, Optional

from dotenv import load_dotenv
from fastapi import Cookie, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from usergate.api.auth_models import (
    CreateUserRequest,
    InactiveUsersResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegistrationResponse,
    UpdateUserRequest,
    UserListResponse,
    UserResponse,
)
from usergate.auth import authorization
from usergate.auth.dependencies import (
    get_admin_user,
    get_auth_service,
    get_current_user,
    get_external_identity_strategy,
    get_identity_service,
)
from usergate.auth.google_oauth import (
    GoogleOAuthError,
    build_authorization_url,
    fetch_google_profile,
    generate_state,
)
from usergate.database.database import init_db
from usergate.models.errors import DomainError
from usergate.models.user import User, UserCandidate, UserFilters, UserPatch, UserRole
from usergate.services.auth_service import AuthService
from usergate.services.external_identity import ExternalIdentityStrategy
from usergate.services.identity_service import IdentityService

load_dotenv()

logger = logging.getLogger(__name__)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
OAUTH_STATE_COOKIE = "oauth_state"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema (or run migrations) before serving requests."""
    init_db()
    yield


app = FastAPI(
    title="usergate API",
    description="User accounts, credential and Google login, and role-gated user management",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(GoogleOAuthError)
async def google_oauth_error_handler(request: Request, exc: GoogleOAuthError):
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


# ---------------- Authentication ----------------

@app.post("/auth/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Register a new user account."""
    return auth_service.register(payload.name, payload.email, payload.password)


@app.post("/auth/login", response_model=LoginResponse)
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Log in with email and password."""
    return auth_service.login(payload.email, payload.password)


@app.get("/auth/google/login")
def google_login():
    """Redirect the browser to the Google consent screen."""
    state = generate_state()
    response = RedirectResponse(build_authorization_url(state))
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return response


@app.get("/auth/google/callback", include_in_schema=False)
def google_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    oauth_state: Optional[str] = Cookie(default=None),
    strategy: ExternalIdentityStrategy = Depends(get_external_identity_strategy),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Finish the Google flow and redirect to the frontend with an access token."""
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing authorization code")
    if not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    profile = fetch_google_profile(code)
    if not profile:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Google token")

    outcome = strategy.validate(profile)
    if not outcome.ok:
        raise outcome.error

    result = auth_service.external_login(outcome.user)
    response = RedirectResponse(f"{FRONTEND_URL}/auth/success?token={result['accessToken']}")
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


# ---------------- Users ----------------

@app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: CreateUserRequest,
    admin: User = Depends(get_admin_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Create a user (admins only)."""
    user = identity.create(UserCandidate(**payload.model_dump()), acting_user=admin)
    return user.to_public()


@app.get("/users", response_model=Optional[UserListResponse])
def list_users(
    role: Optional[UserRole] = None,
    sort_by: Literal["name", "createdAt"] = Query("createdAt", alias="sortBy"),
    order: Optional[Literal["asc", "desc"]] = None,
    page: Optional[int] = Query(None, ge=0),
    limit: Optional[int] = Query(None, ge=0),
    current_user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """List users (admins only). Returns null unless order, page and limit are all given and non-zero."""
    filters = UserFilters(role=role, sort_by=sort_by, order=order, page=page, limit=limit)
    return identity.list(filters, current_user)


@app.get("/users/inactive", response_model=InactiveUsersResponse)
def list_inactive_users(
    admin: User = Depends(get_admin_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Users who have not logged in for 30 days (admins only)."""
    users = identity.list_inactive()
    return {"data": [user.to_public() for user in users], "count": len(users)}


@app.get("/users/me", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    """Current user's own profile."""
    return current_user.to_public()


@app.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Get a user by ID (self or admin)."""
    user = identity.find_by_id(user_id)
    authorization.can_view_user(current_user, user_id).enforce()
    return user.to_public()


@app.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    payload: UpdateUserRequest,
    current_user: User = Depends(get_current_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Partially update a user."""
    patch = UserPatch(**payload.model_dump(exclude_unset=True))
    user = identity.update(user_id, patch, current_user)
    return user.to_public()


@app.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    admin: User = Depends(get_admin_user),
    identity: IdentityService = Depends(get_identity_service),
):
    """Delete a user (admins only, never themselves)."""
    identity.remove(user_id, admin)
    return {"message": "User deleted"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3333)

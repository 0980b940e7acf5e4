"""Identity service: user lifecycle, lookup and authorization for user records.

Pure business logic with no HTTP dependencies. Raises domain errors that the
API layer maps to HTTP status codes.
"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from usergate.auth import authorization
from usergate.auth.passwords import hash_password
from usergate.database.user_repository import UserRepository
from usergate.models.constants import (
    DEFAULT_INACTIVE_THRESHOLD_DAYS,
    MSG_EMAIL_IN_USE,
    MSG_USER_NOT_FOUND,
)
from usergate.models.errors import ConflictError, NotFoundError
from usergate.models.user import (
    SORTABLE_FIELDS,
    User,
    UserCandidate,
    UserFilters,
    UserPatch,
    UserRole,
)

logger = logging.getLogger(__name__)


class IdentityService:
    """Owns the user entity lifecycle."""

    def __init__(self, repo: UserRepository, password_hasher: Callable[[str], str] = hash_password):
        self.repo = repo
        self.password_hasher = password_hasher

    def create(self, candidate: UserCandidate, acting_user: Optional[User] = None) -> User:
        """Persist a new user.

        The role defaults to USER; any other role requires an admin `acting_user`.

        Raises:
            ForbiddenError: non-admin tried to assign a role
            ConflictError: email (or external id, via the store) already in use
        """
        authorization.can_assign_role(acting_user, candidate.role).enforce()

        if self.repo.get_by_email(candidate.email):
            raise ConflictError(MSG_EMAIL_IN_USE)

        now = datetime.utcnow()
        user = User(
            id=str(uuid.uuid4()),
            email=candidate.email,
            password=self.password_hasher(candidate.password) if candidate.password else None,
            name=candidate.name,
            role=candidate.role or UserRole.USER,
            external_id=candidate.external_id,
            created_at=now,
            updated_at=now,
        )
        return self.repo.create(user)

    def find_by_id(self, user_id: str) -> User:
        user = self.repo.get(user_id)
        if not user:
            raise NotFoundError(MSG_USER_NOT_FOUND)
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.repo.get_by_email(email)

    def find_by_external_id(self, external_id: str) -> Optional[User]:
        return self.repo.get_by_external_id(external_id)

    def list(self, filters: UserFilters, acting_user: User) -> Optional[Dict[str, Any]]:
        """Paginated, optionally role-filtered listing for admins.

        Returns None when any of `order`, `page` or `limit` is missing.
        """
        authorization.can_list_users(acting_user).enforce()

        if not filters.is_complete:
            return None

        users, total = self.repo.list_page(
            role=filters.role,
            sort_column=SORTABLE_FIELDS[filters.sort_by],
            descending=filters.order == "desc",
            offset=(filters.page - 1) * filters.limit,
            limit=filters.limit,
        )
        return {
            "data": [user.to_public() for user in users],
            "pagination": {
                "page": filters.page,
                "limit": filters.limit,
                "total": total,
                "pages": math.ceil(total / filters.limit),
            },
        }

    def update(self, user_id: str, patch: UserPatch, acting_user: User) -> User:
        """Apply a partial update.

        Raises:
            NotFoundError: target does not exist
            ForbiddenError: not the owner, or a non-admin supplied a role
            ConflictError: new email belongs to another user
        """
        user = self.find_by_id(user_id)
        fields = patch.supplied_fields()

        authorization.can_update_user(acting_user, user_id, fields).enforce()

        new_email = fields.get("email")
        if new_email and new_email != user.email:
            existing = self.repo.get_by_email(new_email)
            if existing and existing.id != user_id:
                raise ConflictError(MSG_EMAIL_IN_USE)

        if "password" in fields:
            fields["password"] = self.password_hasher(fields["password"])

        return self.repo.save(user_id, fields)

    def remove(self, user_id: str, acting_user: User) -> None:
        authorization.can_delete_user(acting_user, user_id).enforce()

        self.find_by_id(user_id)
        self.repo.delete(user_id)
        logger.info(f"User {user_id} deleted by {acting_user.id}")

    def touch_last_login(self, user_id: str) -> None:
        self.repo.update_last_login(user_id, datetime.utcnow())

    def list_inactive(self, threshold_days: int = DEFAULT_INACTIVE_THRESHOLD_DAYS) -> List[User]:
        """Users not seen for `threshold_days`, including those who never logged in."""
        cutoff = datetime.utcnow() - timedelta(days=threshold_days)
        return self.repo.list_inactive(cutoff)

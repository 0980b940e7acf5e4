"""Authorization predicates for user-record operations.

Each predicate inspects the acting user and the target and returns an
`AccessDecision`. Services evaluate the relevant predicate before touching the
store and call `enforce()` to turn a denial into a ForbiddenError.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from usergate.models.user import User, UserRole
from usergate.models.errors import ForbiddenError
from usergate.models.constants import (
    MSG_LIST_ADMIN_ONLY,
    MSG_UPDATE_OWN_ONLY,
    MSG_ROLE_CHANGE_FORBIDDEN,
    MSG_ROLE_ASSIGN_ADMIN_ONLY,
    MSG_DELETE_ADMIN_ONLY,
    MSG_DELETE_SELF,
    MSG_VIEW_OWN_ONLY,
)


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: str = ""

    def enforce(self) -> None:
        if not self.allowed:
            raise ForbiddenError(self.reason)


ALLOW = AccessDecision(allowed=True)


def deny(reason: str) -> AccessDecision:
    return AccessDecision(allowed=False, reason=reason)


def is_admin(actor: Optional[User]) -> bool:
    return actor is not None and actor.role == UserRole.ADMIN


def can_list_users(actor: User) -> AccessDecision:
    return ALLOW if is_admin(actor) else deny(MSG_LIST_ADMIN_ONLY)


def can_view_user(actor: User, target_id: str) -> AccessDecision:
    if is_admin(actor) or actor.id == target_id:
        return ALLOW
    return deny(MSG_VIEW_OWN_ONLY)


def can_assign_role(actor: Optional[User], role: Optional[str]) -> AccessDecision:
    """Only admins may create an account with a role other than USER."""
    if role is None or role == UserRole.USER or is_admin(actor):
        return ALLOW
    return deny(MSG_ROLE_ASSIGN_ADMIN_ONLY)


def can_update_user(actor: User, target_id: str, fields: Iterable[str]) -> AccessDecision:
    """Admins may update anyone; others only themselves and never their role.

    A supplied `role` field is denied for non-admins even when it equals the current role.
    """
    if is_admin(actor):
        return ALLOW
    if actor.id != target_id:
        return deny(MSG_UPDATE_OWN_ONLY)
    if "role" in set(fields):
        return deny(MSG_ROLE_CHANGE_FORBIDDEN)
    return ALLOW


def can_delete_user(actor: User, target_id: str) -> AccessDecision:
    if not is_admin(actor):
        return deny(MSG_DELETE_ADMIN_ONLY)
    if actor.id == target_id:
        return deny(MSG_DELETE_SELF)
    return ALLOW

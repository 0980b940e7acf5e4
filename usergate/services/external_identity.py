"""External identity strategy: reconcile a Google profile with a local account.

The strategy finds the account linked to the provider subject id, or creates
one, and reports the result as a StrategyOutcome. All persistence goes through
IdentityService.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from usergate.models.constants import MSG_EXTERNAL_PROFILE_INVALID
from usergate.models.errors import ExternalIdentityError
from usergate.models.user import User, UserCandidate, UserPatch, UserRole
from usergate.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalProfile:
    provider_id: str
    display_name: str
    email: str


@dataclass(frozen=True)
class StrategyOutcome:
    """Either a resolved user or the error that stopped resolution."""

    user: Optional[User] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.user is not None


def extract_profile(payload: Dict[str, Any]) -> ExternalProfile:
    """Pull subject id, display name and email out of a provider payload.

    Accepts verified Google ID-token claims (`sub`/`id`, `name` or
    `given_name` + `family_name`, `email`) as well as passport-style profiles
    (`name: {givenName, familyName}`, `emails: [{value}]`).

    Raises:
        ExternalIdentityError: subject id or email is missing
    """
    if not isinstance(payload, dict):
        raise ExternalIdentityError(MSG_EXTERNAL_PROFILE_INVALID)

    provider_id = payload.get("id") or payload.get("sub")

    email = payload.get("email")
    if not email and payload.get("emails"):
        first = payload["emails"][0]
        email = first.get("value") if isinstance(first, dict) else first

    name = payload.get("name")
    if isinstance(name, dict):
        name = " ".join(p for p in (name.get("givenName"), name.get("familyName")) if p)
    if not name:
        name = " ".join(p for p in (payload.get("given_name"), payload.get("family_name")) if p)

    if not provider_id or not email:
        raise ExternalIdentityError(MSG_EXTERNAL_PROFILE_INVALID)

    return ExternalProfile(provider_id=str(provider_id), display_name=name or email, email=email)


class ExternalIdentityStrategy:
    def __init__(self, identity: IdentityService):
        self.identity = identity

    def resolve(self, payload: Dict[str, Any]) -> User:
        """Find-or-create the local account for a provider payload."""
        profile = extract_profile(payload)

        user = self.identity.find_by_external_id(profile.provider_id)
        if user:
            # Re-affirm the linkage; the write is idempotent.
            return self.identity.update(
                user.id, UserPatch(external_id=profile.provider_id), acting_user=user
            )

        user = self.identity.create(
            UserCandidate(
                name=profile.display_name,
                email=profile.email,
                role=UserRole.USER,
                external_id=profile.provider_id,
            )
        )
        logger.info(f"Created account {user.id} from external identity")
        return user

    def validate(self, payload: Dict[str, Any]) -> StrategyOutcome:
        try:
            return StrategyOutcome(user=self.resolve(payload))
        except Exception as e:
            logger.warning(f"External identity resolution failed: {type(e).__name__}: {str(e)}")
            return StrategyOutcome(error=e)

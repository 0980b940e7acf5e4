"""Auth service: registration, password login and external-identity login.

Never touches the store directly; all persistence goes through IdentityService.
"""

import logging
from typing import Any, Callable, Dict

from usergate.auth.jwt import build_claims, create_access_token
from usergate.auth.passwords import verify_password
from usergate.models.constants import MSG_INVALID_CREDENTIALS
from usergate.models.errors import UnauthorizedError
from usergate.models.user import User, UserCandidate, UserRole
from usergate.services.identity_service import IdentityService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        identity: IdentityService,
        token_signer: Callable[[Dict], str] = create_access_token,
        password_verifier: Callable[[str, str], bool] = verify_password,
    ):
        self.identity = identity
        self.token_signer = token_signer
        self.password_verifier = password_verifier

    def register(self, name: str, email: str, password: str) -> Dict[str, str]:
        """Register a new USER account.

        Returns only the new id; no token is issued.

        Raises:
            ConflictError: email already registered
        """
        user = self.identity.create(
            UserCandidate(name=name, email=email, password=password, role=UserRole.USER)
        )
        logger.info(f"User registered: {user.id}")
        return {"userId": user.id}

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Authenticate with email and password.

        The same UnauthorizedError is raised whether the email is unknown or the
        password is wrong.
        """
        user = self.identity.find_by_email(email)
        if not user or not self._password_matches(password, user):
            logger.warning("Login failed: invalid credentials")
            raise UnauthorizedError(MSG_INVALID_CREDENTIALS)

        self.identity.touch_last_login(user.id)
        token = self._generate_token(user)
        logger.info(f"User logged in: {user.id}")

        return {
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": user.role,
            },
            "accessToken": token,
        }

    def external_login(self, user: User) -> Dict[str, Any]:
        """Issue a token for a user already resolved by the external identity strategy.

        If the last-login write fails, no token is minted.
        """
        self.identity.touch_last_login(user.id)
        token = self._generate_token(user)
        logger.info(f"User logged in via external identity: {user.id}")

        return {
            "user": user.to_public(),
            "accessToken": token,
        }

    def _password_matches(self, password: str, user: User) -> bool:
        # Accounts created through an identity provider have no password.
        if not user.password:
            return False
        try:
            return bool(self.password_verifier(password, user.password))
        except Exception as e:
            logger.warning(f"Password verification error for user {user.id}: {type(e).__name__}")
            return False

    def _generate_token(self, user: User) -> str:
        return self.token_signer(build_claims(user))

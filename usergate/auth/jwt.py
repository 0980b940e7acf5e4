"""JWT token generation and validation for usergate."""

import os
import jwt
from datetime import datetime, timedelta
from typing import Optional, Dict
from dotenv import load_dotenv

from usergate.models.user import User

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "insecurekey")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_DAYS = int(os.getenv("JWT_EXPIRATION_DAYS", "7"))


def build_claims(user: User) -> Dict:
    """Claims carried by an access token: exactly email, sub and role."""
    return {
        "email": user.email,
        "sub": user.id,
        "role": getattr(user.role, "value", user.role),
    }


def create_access_token(claims: Dict) -> str:
    """Sign a claims payload into a JWT access token.

    Args:
        claims: Payload to sign (see `build_claims`)

    Returns:
        Encoded JWT token string
    """
    now = datetime.utcnow()
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(days=JWT_EXPIRATION_DAYS),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload, or None if invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_user_id_from_token(token: str) -> Optional[str]:
    """Extract user ID (`sub`) from a JWT token, or None if the token is invalid."""
    payload = decode_access_token(token)
    if payload:
        return payload.get("sub")
    return None

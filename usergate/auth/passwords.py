"""Password hashing for credential storage (bcrypt)."""

import os

import bcrypt
from dotenv import load_dotenv

load_dotenv()

# 2^12 iterations by default
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))


def hash_password(password: str) -> str:
    """Hash a plaintext password.

    Args:
        password: Plain text password

    Returns:
        bcrypt hash as string
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash.

    Raises ValueError if `hashed_password` is not a valid bcrypt hash.
    """
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))

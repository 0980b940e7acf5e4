"""Google OAuth2 client for user authentication (authorization-code flow)."""

import logging
import os
import secrets
from typing import Optional, Dict
from urllib.parse import urlencode

import requests
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Google OAuth configuration
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
GOOGLE_CALLBACK_URL = os.getenv(
    "GOOGLE_CALLBACK_URL", "http://localhost:3333/api/v1/auth/google/callback"
)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
SCOPES = ["openid", "email", "profile"]


class GoogleOAuthError(Exception):
    """Token exchange with Google failed."""


def generate_state() -> str:
    """Generate a random state token for CSRF protection.

    Returns:
        Random state token string
    """
    return secrets.token_urlsafe(32)


def build_authorization_url(state: str) -> str:
    """URL of the Google consent screen the browser is redirected to."""
    params = {
        "client_id": GOOGLE_CLIENT_ID or "",
        "redirect_uri": GOOGLE_CALLBACK_URL,
        "response_type": "code",
        "scope": " ".join(SCOPES),
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_code(code: str) -> Dict:
    """Exchange an authorization code for Google tokens.

    Raises:
        GoogleOAuthError: Google was unreachable, rejected the exchange or returned no ID token
    """
    try:
        resp = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": GOOGLE_CLIENT_ID,
                "client_secret": GOOGLE_CLIENT_SECRET,
                "redirect_uri": GOOGLE_CALLBACK_URL,
                "grant_type": "authorization_code",
            },
            timeout=10,
        )
    except requests.RequestException as e:
        logger.warning(f"Google token exchange request failed: {type(e).__name__}")
        raise GoogleOAuthError("Google token exchange failed") from e
    if not resp.ok:
        logger.warning(f"Google token exchange failed: status={resp.status_code}")
        raise GoogleOAuthError("Google token exchange failed")

    tokens = resp.json()
    if not tokens.get("id_token"):
        raise GoogleOAuthError("Google response did not include an ID token")
    return tokens


def verify_google_token(id_token_str: str) -> Optional[Dict]:
    """Verify a Google ID token and extract the profile claims.

    Args:
        id_token_str: Google ID token string from OAuth callback

    Returns:
        Dictionary with profile claims (id, email, name, given_name, family_name), or None if invalid
    """
    try:
        idinfo = id_token.verify_oauth2_token(
            id_token_str,
            google_requests.Request(),
            GOOGLE_CLIENT_ID
        )

        if idinfo['iss'] not in ['accounts.google.com', 'https://accounts.google.com']:
            return None

        return {
            'id': idinfo['sub'],
            'email': idinfo.get('email'),
            'name': idinfo.get('name'),
            'given_name': idinfo.get('given_name'),
            'family_name': idinfo.get('family_name'),
        }
    except ValueError:
        # Invalid token
        return None


def fetch_google_profile(code: str) -> Optional[Dict]:
    """Run the code exchange and return the verified profile claims (None if the ID token is invalid)."""
    tokens = exchange_code(code)
    return verify_google_token(tokens["id_token"])

"""Google ID token verification for sign-in."""

import os
import logging
from typing import Optional, Dict
from google.oauth2 import id_token
from google.auth.transport import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

GOOGLE_OAUTH_CLIENT_ID = os.getenv("GOOGLE_OAUTH_CLIENT_ID")

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


def verify_google_token(id_token_str: str) -> Optional[Dict]:
    """Verify a Google ID token and extract the profile used for sign-in.

    Args:
        id_token_str: Google ID token string from the client

    Returns:
        Dictionary with sub, email, name and picture, or None if the token is
        invalid, from another issuer, or carries no verified email
    """
    try:
        idinfo = id_token.verify_oauth2_token(
            id_token_str,
            requests.Request(),
            GOOGLE_OAUTH_CLIENT_ID,
        )
    except ValueError as e:
        logger.info(f"Rejected Google ID token: {type(e).__name__}")
        return None

    if idinfo.get("iss") not in GOOGLE_ISSUERS:
        return None
    if not idinfo.get("email"):
        return None

    return {
        "sub": idinfo["sub"],
        "email": idinfo["email"],
        "name": idinfo.get("name"),
        "picture": idinfo.get("picture"),
    }

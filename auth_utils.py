"""
OAuth2 helper functions for Google (Gmail) authentication.
Holds per-session token state and handles the authorization code flow.
"""
import logging
import threading
import urllib.parse
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from config import (
    GOOGLE_AUTH_URL,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_TOKEN_URL,
    GMAIL_SCOPES,
    REDIRECT_URI,
)

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_TIMEOUT = 15  # seconds


# ============================================================
# AUTH STATE
# ============================================================

@dataclass
class AuthState:
    """
    Access/refresh token pair for one session.

    Written by the OAuth callback, read by the mailbox client, cleared when
    Gmail answers 401.
    """
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def update(self, tokens: Dict[str, Any]):
        """
        Store tokens from a token endpoint response.

        Google only sends a refresh token on first consent, so an existing one
        is kept when the response doesn't include it.
        """
        with self._lock:
            self.access_token = tokens.get("access_token") or None
            if tokens.get("refresh_token"):
                self.refresh_token = tokens["refresh_token"]
                logger.info("Refresh token received and stored")
            else:
                logger.info("Refresh token not received, keeping existing (if any)")

    def clear(self):
        with self._lock:
            self.access_token = None
            self.refresh_token = None


# ============================================================
# GOOGLE OAUTH
# ============================================================

def get_google_auth_url(state: str = "") -> str:
    """Generate the Google consent screen URL. `state` carries the session id."""
    if not GOOGLE_CLIENT_ID:
        raise ValueError("GOOGLE_CLIENT_ID is required for Google login")

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(GMAIL_SCOPES),
        "access_type": "offline",  # Request a refresh token along with the access token
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urllib.parse.urlencode(params)}"


def exchange_google_code(code: str) -> Optional[Dict[str, Any]]:
    """
    Exchange an authorization code for tokens.

    Returns:
        Token response dict, or None if the exchange failed
    """
    if not GOOGLE_CLIENT_ID or not GOOGLE_CLIENT_SECRET:
        logger.error("Missing Google Client ID/Secret")
        return None

    data = {
        "client_id": GOOGLE_CLIENT_ID,
        "client_secret": GOOGLE_CLIENT_SECRET,
        "code": code,
        "grant_type": "authorization_code",
        "redirect_uri": REDIRECT_URI,
    }

    try:
        response = requests.post(GOOGLE_TOKEN_URL, data=data, timeout=TOKEN_EXCHANGE_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.HTTPError as e:
        logger.error(f"Google token exchange failed: {e} - {e.response.text if e.response is not None else ''}")
        return None
    except requests.RequestException as e:
        logger.error(f"Google token exchange failed: {e}")
        return None

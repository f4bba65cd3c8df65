"""
Google OAuth client
Authorization code flow used by the web UI login
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog

from lscs_core.core.config import Settings

logger = structlog.get_logger()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
OAUTH_SCOPES = "openid email profile"
DEFAULT_REDIRECT_PATH = "/"


class OAuthError(Exception):
    """Raised when Google rejects or fails a step of the flow"""


@dataclass(frozen=True)
class GoogleUserInfo:
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    verified_email: bool = False


def encode_state(remember_me: bool, redirect_path: str) -> str:
    return f"{'true' if remember_me else 'false'}|{redirect_path}"


def safe_redirect_path(path: Optional[str]) -> str:
    """Only same-site absolute paths are allowed after login"""
    if not path or not path.startswith("/") or path.startswith("//") or "\\" in path:
        return DEFAULT_REDIRECT_PATH
    return path


def parse_state(state: Optional[str]) -> tuple[bool, str]:
    """Split "<remember>|<redirect>" back into its parts"""
    if not state:
        return False, DEFAULT_REDIRECT_PATH
    remember, _, redirect_path = state.partition("|")
    return remember == "true", safe_redirect_path(redirect_path)


class GoogleOAuthClient:
    def __init__(self, settings: Settings, timeout: float = 10.0) -> None:
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_url = settings.OAUTH_REDIRECT_URL
        self.timeout = timeout

    def authorization_url(self, remember_me: bool = False, redirect_path: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
            "scope": OAUTH_SCOPES,
            "state": encode_state(remember_me, safe_redirect_path(redirect_path)),
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token"""
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_url,
            "grant_type": "authorization_code",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
        except httpx.HTTPError as e:
            raise OAuthError(f"Token exchange request failed: {e}") from e

        if response.status_code != 200:
            logger.error("Token exchange rejected", status_code=response.status_code)
            raise OAuthError(f"Token exchange failed with status {response.status_code}")

        access_token = response.json().get("access_token")
        if not access_token:
            raise OAuthError("Token response missing access_token")
        return access_token

    async def fetch_user_info(self, access_token: str) -> GoogleUserInfo:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(GOOGLE_USERINFO_URL, headers=headers)
        except httpx.HTTPError as e:
            raise OAuthError(f"User info request failed: {e}") from e

        if response.status_code != 200:
            logger.error("User info request rejected", status_code=response.status_code)
            raise OAuthError(f"Failed to get user info: status {response.status_code}")

        payload = response.json()
        email = payload.get("email")
        if not email:
            raise OAuthError("User info missing email")

        return GoogleUserInfo(
            email=email.lower().strip(),
            name=payload.get("name"),
            picture=payload.get("picture"),
            verified_email=bool(payload.get("verified_email", False)),
        )

"""
Google OAuth 2.0 HTTP Client

Exchanges an authorisation code for tokens and reads the signed-in user's
profile from Google's userinfo endpoint.

API Documentation: https://developers.google.com/identity/protocols/oauth2/web-server

Features:
- Async HTTP requests using httpx
- Timeout protection (10 seconds)
- Provider errors raised as OAuthError
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from foodie.core.config import settings


class OAuthError(Exception):
    """Raised when the provider rejects the code or returns an unusable profile."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


@dataclass
class OAuthProfile:
    provider: str
    provider_id: str
    email: str
    email_verified: bool = False
    first_name: str = ""
    last_name: str = ""
    picture: Optional[str] = None


class GoogleOAuthClient:
    """
    HTTP client for Google sign-in.

    Attributes:
        client_id / client_secret: OAuth client credentials (from settings)
        redirect_uri: Redirect URI registered with Google (from settings)
    """

    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
    PROVIDER = "google"

    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.OAUTH_REDIRECT_URI

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> Dict[str, Any]:
        """
        Exchange an authorisation code for Google tokens.

        Returns:
            Token response (access_token, id_token, expires_in, ...)

        Raises:
            OAuthError: Not configured, code rejected or Google unreachable
        """
        if not self.is_configured:
            raise OAuthError("Google sign-in is not configured", status_code=503)

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    self.TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": redirect_uri or self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                    headers={"Accept": "application/json"}
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise OAuthError(f"Google rejected the authorisation code: {e.response.text}", status_code=400)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise OAuthError(f"Cannot reach Google: {e}", status_code=502)

    async def fetch_profile(self, access_token: str) -> OAuthProfile:
        """
        Read the user's profile with a Google access token.

        Raises:
            OAuthError: Token rejected or profile without an email
        """
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"}
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise OAuthError(f"Google rejected the access token: {e.response.status_code}", status_code=400)
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            raise OAuthError(f"Cannot reach Google: {e}", status_code=502)

        if not data.get("sub") or not data.get("email"):
            raise OAuthError("Google profile has no email address", status_code=400)

        return OAuthProfile(
            provider=self.PROVIDER,
            provider_id=str(data["sub"]),
            email=data["email"].lower(),
            email_verified=bool(data.get("email_verified")),
            first_name=data.get("given_name") or "",
            last_name=data.get("family_name") or "",
            picture=data.get("picture"),
        )

    async def authenticate(self, code: str, redirect_uri: Optional[str] = None) -> OAuthProfile:
        """Exchange the code and return the user's profile."""
        tokens = await self.exchange_code(code, redirect_uri)
        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthError("Google returned no access token", status_code=400)
        return await self.fetch_profile(access_token)


# Singleton instance
google_oauth_client = GoogleOAuthClient()

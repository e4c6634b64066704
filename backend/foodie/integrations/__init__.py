"""
External Service Integrations

HTTP clients for services outside the application:
- Google OAuth 2.0 (sign in with Google)
"""

from foodie.integrations.google_oauth import GoogleOAuthClient, OAuthError, OAuthProfile, google_oauth_client

__all__ = [
    "GoogleOAuthClient",
    "OAuthError",
    "OAuthProfile",
    "google_oauth_client",
]

"""
User Pydantic Schemas
Request and response models for authentication and the current user.

These schemas define the structure of data sent to and received from the API.
They provide automatic validation, serialization, and documentation.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ============================================================================
# Authentication Schemas
# ============================================================================

class UserCreate(BaseModel):
    """
    Schema for user registration request.

    Used in POST /api/v1/auth/register endpoint.
    Registering with an invitation token joins the inviting household
    instead of creating a new one.

    Example:
        {
            "email": "sam@example.com",
            "password": "SecurePass123!",
            "first_name": "Sam",
            "last_name": "Taylor",
            "invite_token": null
        }
    """
    email: EmailStr = Field(
        ...,
        description="Valid email address for authentication",
        examples=["sam@example.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        description="Password (minimum 8 characters)",
        examples=["SecurePass123!"]
    )
    first_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Given name",
        examples=["Sam"]
    )
    last_name: str = Field(
        "",
        max_length=100,
        description="Family name",
        examples=["Taylor"]
    )
    invite_token: Optional[str] = Field(
        None,
        description="Household invitation token from an invite email"
    )


class LoginRequest(BaseModel):
    """
    Schema for user login request.

    Example:
        {
            "email": "sam@example.com",
            "password": "SecurePass123!"
        }
    """
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")


class Token(BaseModel):
    """
    Schema for JWT token response.

    Returned by /register, /login, /refresh and the OAuth callback.
    The access token is also set as an http-only session cookie.

    Example:
        {
            "access_token": "eyJhbGciOiJIUzI1NiIs...",
            "refresh_token": "eyJhbGciOiJIUzI1NiIs...",
            "token_type": "bearer"
        }
    """
    access_token: str = Field(
        ...,
        description="JWT access token for API authentication"
    )
    refresh_token: str = Field(
        ...,
        description="JWT refresh token for obtaining new access tokens"
    )
    token_type: str = Field(
        default="bearer",
        description="Token type (always 'bearer' for JWT)"
    )


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Valid refresh token")


class OAuthCallbackRequest(BaseModel):
    """
    Authorisation code returned by the OAuth provider.

    Example:
        {"code": "4/0AX4XfWh...", "redirect_uri": "http://localhost:3000/auth/callback"}
    """
    code: str = Field(..., min_length=1, description="Authorisation code")
    redirect_uri: Optional[str] = Field(
        None,
        description="Redirect URI used for the authorisation request (defaults to OAUTH_REDIRECT_URI)"
    )


# ============================================================================
# User Profile Schemas
# ============================================================================

class UserResponse(BaseModel):
    """
    Schema for user profile response. Never includes password_hash.

    Example:
        {
            "id": "550e8400-e29b-41d4-a716-446655440000",
            "email": "sam@example.com",
            "first_name": "Sam",
            "last_name": "Taylor",
            "household_id": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
            "is_admin": false,
            "is_active": true
        }
    """
    id: UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    household_id: UUID
    is_admin: bool = False
    is_active: bool = True
    email_verified: bool = False
    oauth_provider: Optional[str] = None
    profile_image_url: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    # Pydantic v2 configuration
    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """Current session: the user, their household and the admin flag."""
    authenticated: bool = True
    user: UserResponse
    household_id: UUID
    household_name: str
    is_admin: bool


# ============================================================================
# Helper Schemas
# ============================================================================

class TokenPayload(BaseModel):
    """
    Schema for JWT token payload (internal use).

    Token payload contains:
    - sub: Subject (user_id)
    - exp: Expiration timestamp
    - type: Token type (access or refresh)
    """
    sub: str = Field(..., description="Subject (user ID)")
    exp: int = Field(..., description="Expiration timestamp (Unix)")
    type: str = Field(..., description="Token type (access or refresh)")

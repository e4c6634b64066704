"""
Authentication Endpoints
Handles registration, login, logout, token refresh and Google sign-in.

Endpoints:
- POST /auth/register - Create an account (and a household, or join an invited one)
- POST /auth/login - Authenticate and get tokens (also sets the session cookie)
- POST /auth/logout - Clear the session cookie
- POST /auth/refresh - Exchange a refresh token for a new token pair
- GET /auth/session - Current user, household and admin flag
- GET /auth/me - Current user profile
- POST /auth/oauth/google - Sign in with a Google authorisation code
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.core.config import settings
from foodie.db.session import get_db
from foodie.integrations.google_oauth import OAuthError, google_oauth_client
from foodie.models import User
from foodie.schemas.user import (
    LoginRequest,
    OAuthCallbackRequest,
    RefreshTokenRequest,
    SessionResponse,
    Token,
    UserCreate,
    UserResponse,
)
from foodie.services import auth_service
from foodie.services.error_logging import error_logger


# Logger for auth events
auth_logger = logging.getLogger("auth")

router = APIRouter()


def _set_session_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        max_age=settings.JWT_EXPIRATION,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _issue_tokens(response: Response, user: User) -> Token:
    tokens = auth_service.create_token_pair(user.id)
    _set_session_cookie(response, tokens["access_token"])
    return Token(**tokens)


@router.post(
    "/register",
    response_model=Token,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    responses={
        400: {
            "description": "Email already registered or invalid invitation",
            "content": {"application/json": {"example": {"detail": "Email already registered"}}}
        },
        422: {"description": "Validation error (invalid email, short password, etc.)"}
    }
)
async def register(
    user_data: UserCreate,
    response: Response,
    db: Session = Depends(get_db)
) -> Token:
    """
    Register a new user account.

    Without an invitation the user gets a new household. With a valid
    invitation token for the same email the user joins that household.

    Returns:
    - access_token: Short-lived JWT for API requests (1 hour)
    - refresh_token: Long-lived JWT for refreshing access token (7 days)
    - token_type: Always "bearer"
    """
    try:
        user = auth_service.register_user(db, user_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except IntegrityError:
        # Concurrent registration with the same email
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    auth_logger.info(f"REGISTER | user={user.email}")
    return _issue_tokens(response, user)


@router.post(
    "/login",
    response_model=Token,
    summary="Login user",
    responses={
        401: {
            "description": "Invalid credentials",
            "content": {"application/json": {"example": {"detail": "Incorrect email or password"}}}
        }
    }
)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
) -> Token:
    """
    Authenticate with email and password.

    Sets an http-only session cookie carrying the access token and updates
    last_login. Inactive accounts cannot log in.
    """
    user = auth_service.authenticate_user(db, credentials.email, credentials.password)
    if user is None:
        client_ip = request.client.host if request.client else "unknown"
        auth_logger.warning(f"LOGIN_FAILED | email={credentials.email} | ip={client_ip}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    auth_service.record_login(db, user)
    auth_logger.info(f"LOGIN | user={user.email}")
    return _issue_tokens(response, user)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie. Bearer tokens simply expire."""
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"success": True, "message": "Logged out"}


@router.post("/refresh", response_model=Token, summary="Refresh access token")
async def refresh(
    data: RefreshTokenRequest,
    response: Response,
    db: Session = Depends(get_db)
) -> Token:
    """
    Exchange a valid refresh token for a new token pair.

    Errors:
    - 401: Invalid or expired refresh token, or the user is gone/inactive
    """
    user = auth_service.user_from_token(db, data.refresh_token, expected_type="refresh")
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return _issue_tokens(response, user)


@router.get("/session", response_model=SessionResponse)
def get_session(current_user: User = Depends(get_current_user)):
    return SessionResponse(
        authenticated=True,
        user=UserResponse.model_validate(current_user),
        household_id=current_user.household_id,
        household_name=current_user.household.name if current_user.household else "",
        is_admin=current_user.is_admin,
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/oauth/google", response_model=Token, summary="Sign in with Google")
async def google_login(
    data: OAuthCallbackRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db)
) -> Token:
    """
    Complete a Google sign-in.

    The authorisation code is exchanged with Google, the profile is linked
    to an existing user (by Google id, then email) or a new user is created.
    New users join a household that invited them, otherwise get their own.

    Errors:
    - 400: Google rejected the code
    - 403: Account deactivated
    - 502: Google unreachable
    - 503: Google sign-in not configured
    """
    try:
        profile = await google_oauth_client.authenticate(data.code, data.redirect_uri)
    except OAuthError as e:
        auth_logger.warning(f"OAUTH_FAILED | provider=google | error={e.message}")
        raise HTTPException(status_code=e.status_code or status.HTTP_400_BAD_REQUEST, detail=e.message)

    try:
        user = auth_service.get_or_create_oauth_user(db, profile)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, severity="error", context={"operation": "oauth_login"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error completing sign-in: {str(e)}"
        )

    auth_logger.info(f"LOGIN | provider=google | user={user.email}")
    return _issue_tokens(response, user)

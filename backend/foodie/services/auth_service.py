"""
Authentication Service
Handles JWT token creation, verification, and user authentication.

This service provides core authentication functionality:
- JWT token generation (access + refresh tokens)
- Token verification and decoding
- Email/password login
- Registration, creating a household or joining an invited one
- Linking or creating users signed in through OAuth
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.core.security import hash_password, verify_password
from foodie.integrations.google_oauth import OAuthProfile
from foodie.models import User
from foodie.schemas.user import TokenPayload, UserCreate
from foodie.services.household_service import find_invitation_for_signup, household_for_new_user


logger = logging.getLogger("auth")

# JWT Configuration
# Algorithm used for signing tokens (HS256 = HMAC with SHA-256)
ALGORITHM = "HS256"


# ============================================================================
# JWT Token Functions
# ============================================================================

def _create_token(user_id: UUID, token_type: str, lifetime_seconds: int) -> str:
    payload = {
        "sub": str(user_id),  # Subject (user ID)
        "exp": datetime.now(timezone.utc) + timedelta(seconds=lifetime_seconds),
        "type": token_type,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user_id: UUID) -> str:
    """
    Create a short-lived JWT access token (default: 1 hour).

    Example:
        token = create_access_token(user.id)
        # Use in header: Authorization: Bearer {token}
    """
    return _create_token(user_id, "access", settings.JWT_EXPIRATION)


def create_refresh_token(user_id: UUID) -> str:
    """Create a long-lived JWT refresh token (default: 7 days)."""
    return _create_token(user_id, "refresh", settings.REFRESH_TOKEN_EXPIRATION)


def create_token_pair(user_id: UUID) -> dict:
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": create_refresh_token(user_id),
        "token_type": "bearer",
    }


def verify_token(token: str, expected_type: str = "access") -> Optional[TokenPayload]:
    """
    Verify and decode a JWT token.

    Validates token signature, expiration, and type.

    Returns:
        TokenPayload if token is valid, None if invalid

    Example:
        payload = verify_token(token, "access")
        if payload:
            user_id = UUID(payload.sub)
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        # Bad signature, expired or malformed
        return None

    user_id = payload.get("sub")
    token_type = payload.get("type")
    exp = payload.get("exp")
    if not user_id or not exp or token_type != expected_type:
        return None

    return TokenPayload(sub=user_id, exp=exp, type=token_type)


# ============================================================================
# User lookups
# ============================================================================

def get_user_by_id(db: Session, user_id: UUID) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Case-insensitive email lookup."""
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def user_from_token(db: Session, token: str, expected_type: str = "access") -> Optional[User]:
    """Active user a token belongs to, or None."""
    payload = verify_token(token, expected_type)
    if payload is None:
        return None
    try:
        user_id = UUID(payload.sub)
    except ValueError:
        return None
    user = get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        return None
    return user


# ============================================================================
# Login / registration
# ============================================================================

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Check email and password.

    Returns:
        The user when the credentials match an active account, None otherwise
    """
    user = get_user_by_email(db, email)
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def record_login(db: Session, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    db.commit()


def register_user(db: Session, data: UserCreate) -> User:
    """
    Create a user and their household membership.

    Without an invitation a new household is created; with a valid
    invitation for the same email the user joins the inviting household.

    Raises:
        ValueError: Email already registered, or invalid invitation
    """
    email = data.email.strip().lower()
    if get_user_by_email(db, email) is not None:
        raise ValueError("Email already registered")

    try:
        invitation = find_invitation_for_signup(db, email, data.invite_token) if data.invite_token else None
        household_id = household_for_new_user(db, email, data.first_name.strip(), invitation)
        user = User(
            email=email,
            password_hash=hash_password(data.password),
            first_name=data.first_name.strip(),
            last_name=(data.last_name or "").strip(),
            household_id=household_id,
        )
        db.add(user)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    logger.info(f"Registered user {user.id} in household {user.household_id}")
    return user


def get_or_create_oauth_user(db: Session, profile: OAuthProfile) -> User:
    """
    User for an OAuth sign-in.

    Matches by provider id first, then by email (linking the provider to
    the existing account). New users join a pending invitation's household
    or get their own.

    Raises:
        PermissionError: Account deactivated
    """
    user = db.query(User).filter(
        User.oauth_provider == profile.provider,
        User.oauth_provider_id == profile.provider_id
    ).first()
    if user is None:
        user = get_user_by_email(db, profile.email)

    try:
        if user is None:
            invitation = find_invitation_for_signup(db, profile.email)
            household_id = household_for_new_user(db, profile.email, profile.first_name, invitation)
            user = User(
                email=profile.email,
                password_hash=None,
                first_name=profile.first_name,
                last_name=profile.last_name,
                household_id=household_id,
                is_active=True,
            )
            db.add(user)
            logger.info(f"Created {profile.provider} user {profile.email}")

        if not user.is_active:
            raise PermissionError("Account is deactivated")

        user.oauth_provider = profile.provider
        user.oauth_provider_id = profile.provider_id
        user.email_verified = user.email_verified or profile.email_verified
        if profile.picture:
            user.profile_image_url = profile.picture
        user.last_login = datetime.now(timezone.utc)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(user)
    return user

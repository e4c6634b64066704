"""
API Dependencies
Common dependencies used across API endpoints.

This module provides:
- User authentication (bearer token or session cookie)
- Admin permission check

Dependencies are injected into FastAPI endpoints using Depends().
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.db.session import get_db
from foodie.models import User
from foodie.services.auth_service import user_from_token


# HTTP Bearer token scheme for JWT authentication
# auto_error=False so the session cookie can be used when the header is missing
security = HTTPBearer(auto_error=False)


def _request_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the signed-in user.

    This dependency:
    1. Takes the token from "Authorization: Bearer <token>", falling back
       to the session cookie
    2. Validates token signature, expiration and type
    3. Loads the user, who must exist and be active

    Raises:
        HTTPException 401: Missing or invalid token, unknown or inactive user

    Usage in endpoint:
        @router.get("/me")
        def me(current_user: User = Depends(get_current_user)):
            return {"email": current_user.email}
    """
    token = _request_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = user_from_token(db, token, expected_type="access")
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    # Lets the error middleware attribute failures to the user
    request.state.user = user
    return user


def get_current_user_optional(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Same as get_current_user but returns None instead of raising 401.
    """
    try:
        return get_current_user(request=request, credentials=credentials, db=db)
    except HTTPException:
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Dependency that requires an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required"
        )
    return current_user

"""
Security Utilities
Password hashing and random token helpers.

Passwords are hashed with bcrypt through passlib. Invitation tokens and
stored file names use the secrets module so they cannot be guessed.
"""

import hashlib
import secrets
import time
from typing import Optional

from passlib.context import CryptContext


# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("mySecurePassword123")
        >>> print(hashed)  # $2b$12$...
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain text password against a stored hash.

    Users created through OAuth have no password hash and can never
    log in with a password.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def generate_invite_token() -> str:
    """URL-safe token for household invitations (43 chars)."""
    return secrets.token_urlsafe(32)


def generate_file_hash(seed: str = "") -> str:
    """
    32-character lowercase hex string used as a stored file name.

    The seed (usually a recipe or collection id) is mixed with random bytes
    and the current time so two uploads never collide.
    """
    material = f"{seed}:{time.time_ns()}:{secrets.token_hex(16)}".encode("utf-8")
    return hashlib.sha256(material).hexdigest()[:32]

"""
User Model
Represents people who sign in to Family Foodie.

Each user has:
- Unique email for authentication
- Optional bcrypt password hash (OAuth-only users have none)
- Profile information (first/last name, avatar)
- Exactly one household
- Admin and active flags used by the admin area
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from foodie.models.base import BaseModel


class User(BaseModel):
    """
    User model for authentication and profile management.

    Fields:
        email (str): Unique email address for login
        password_hash (str): Bcrypt hash, null for OAuth-only accounts
        first_name / last_name (str): Display names
        household_id (UUID): Household this user belongs to
        is_admin (bool): Access to /admin endpoints
        is_active (bool): Inactive users cannot authenticate
        last_login (datetime): Updated on every successful login
        oauth_provider / oauth_provider_id: Linked external identity
    """

    __tablename__ = "users"

    email = Column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User's email address for authentication"
    )

    password_hash = Column(
        String(255),
        nullable=True,
        comment="Bcrypt hashed password (null for OAuth-only users)"
    )

    first_name = Column(String(100), nullable=False, default="", comment="Given name")
    last_name = Column(String(100), nullable=False, default="", comment="Family name")

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Household the user belongs to"
    )

    is_admin = Column(Boolean, default=False, nullable=False, comment="Administrator flag")
    is_active = Column(Boolean, default=True, nullable=False, comment="Inactive users cannot log in")

    last_login = Column(DateTime(timezone=True), nullable=True)

    oauth_provider = Column(String(50), nullable=True, comment="e.g. 'google'")
    oauth_provider_id = Column(String(255), nullable=True, index=True)
    email_verified = Column(Boolean, default=False, nullable=False)
    profile_image_url = Column(String(500), nullable=True)

    household = relationship("Household", back_populates="users")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"

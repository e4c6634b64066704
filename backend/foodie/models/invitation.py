"""
HouseholdInvitation Model
Invitations for joining an existing household.

The invitation flow:
1. A member invites an email address and receives a token
2. The token is shared with the invitee (email, chat, ...)
3. The invitee registers (or signs in with OAuth) using that email
4. The invitation is marked accepted and the new user joins the household

Tokens expire after INVITATION_EXPIRATION_DAYS and can be used once.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from foodie.models.base import BaseModel


class HouseholdInvitation(BaseModel):
    """Invitation of an email address into a household."""

    __tablename__ = "household_invitations"

    email = Column(String(255), nullable=False, index=True, comment="Invited email address")

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    invited_by_user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    invite_token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    declined_at = Column(DateTime(timezone=True), nullable=True)

    household = relationship("Household", back_populates="invitations")

    @property
    def is_expired(self) -> bool:
        expires_at = self.expires_at
        # SQLite returns naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= datetime.now(timezone.utc)

    @property
    def status(self) -> str:
        if self.accepted_at is not None:
            return "accepted"
        if self.declined_at is not None:
            return "declined"
        if self.is_expired:
            return "expired"
        return "valid"

    def __repr__(self):
        return f"<HouseholdInvitation(id={self.id}, email={self.email}, status={self.status})>"

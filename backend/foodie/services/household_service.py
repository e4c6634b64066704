"""
Household Service
Household membership and invitations.

Invitations are addressed to an email and carry a random token. Whoever
registers (or signs in with Google for the first time) with that email
while the invitation is valid joins the inviting household instead of
getting a new one.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.core.security import generate_invite_token
from foodie.models import Household, HouseholdInvitation, User


logger = logging.getLogger("auth")


def get_household(db: Session, household_id: UUID) -> dict:
    household = db.get(Household, household_id)
    if household is None:
        raise LookupError("Household not found")
    return {
        "id": household.id,
        "name": household.name,
        "members": household.users,
        "created_at": household.created_at,
    }


def rename_household(db: Session, household_id: UUID, name: str) -> dict:
    name = (name or "").strip()
    if not name:
        raise ValueError("Household name is required")
    household = db.get(Household, household_id)
    if household is None:
        raise LookupError("Household not found")
    household.name = name
    db.commit()
    return get_household(db, household_id)


# ============================================================================
# Invitations
# ============================================================================

def list_pending_invitations(db: Session, household_id: UUID) -> List[HouseholdInvitation]:
    invitations = db.query(HouseholdInvitation).filter(
        HouseholdInvitation.household_id == household_id,
        HouseholdInvitation.accepted_at.is_(None),
        HouseholdInvitation.declined_at.is_(None)
    ).order_by(HouseholdInvitation.created_at.desc()).all()
    return [i for i in invitations if not i.is_expired]


def send_invitation(db: Session, inviter: User, email: str) -> HouseholdInvitation:
    """
    Invite an email address to the inviter's household.

    Raises:
        ValueError: The email already belongs to a member
        FileExistsError: A valid invitation for the email is already pending
    """
    email = email.strip().lower()

    member = db.query(User).filter(
        func.lower(User.email) == email,
        User.household_id == inviter.household_id
    ).first()
    if member is not None:
        raise ValueError(f"{email} is already a member of your household")

    pending = [
        i for i in list_pending_invitations(db, inviter.household_id)
        if i.email.lower() == email
    ]
    if pending:
        raise FileExistsError(f"An invitation for {email} is already pending")

    invitation = HouseholdInvitation(
        email=email,
        household_id=inviter.household_id,
        invited_by_user_id=inviter.id,
        invite_token=generate_invite_token(),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRATION_DAYS),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"User {inviter.id} invited {email} to household {inviter.household_id}")
    return invitation


def get_invitation_by_token(db: Session, token: str) -> HouseholdInvitation:
    invitation = db.query(HouseholdInvitation).filter(HouseholdInvitation.invite_token == token).first()
    if invitation is None:
        raise LookupError("Invitation not found")
    return invitation


def validate_invitation(db: Session, token: str) -> dict:
    """
    Public details of an invitation.

    Raises:
        LookupError: Unknown token
    """
    invitation = get_invitation_by_token(db, token)
    return {
        "email": invitation.email,
        "household_name": invitation.household.name,
        "status": invitation.status,
        "expires_at": invitation.expires_at,
    }


def decline_invitation(db: Session, token: str) -> None:
    """
    Raises:
        LookupError: Unknown token
        ValueError: Invitation no longer valid
    """
    invitation = get_invitation_by_token(db, token)
    if invitation.status != "valid":
        raise ValueError(f"Invitation is {invitation.status}")
    invitation.declined_at = datetime.now(timezone.utc)
    db.commit()


def find_invitation_for_signup(db: Session, email: str, token: Optional[str] = None) -> Optional[HouseholdInvitation]:
    """
    Invitation a new user should accept.

    With a token, that invitation must be valid and addressed to email
    (ValueError otherwise). Without one, the newest valid invitation for
    the email is used, if any.
    """
    email = email.strip().lower()
    if token:
        invitation = db.query(HouseholdInvitation).filter(HouseholdInvitation.invite_token == token).first()
        if invitation is None or invitation.status != "valid" or invitation.email.lower() != email:
            raise ValueError("Invalid or expired invitation")
        return invitation

    candidates = db.query(HouseholdInvitation).filter(
        func.lower(HouseholdInvitation.email) == email,
        HouseholdInvitation.accepted_at.is_(None),
        HouseholdInvitation.declined_at.is_(None)
    ).order_by(HouseholdInvitation.created_at.desc()).all()
    return next((i for i in candidates if not i.is_expired), None)


def household_for_new_user(db: Session, email: str, display_name: str,
                           invitation: Optional[HouseholdInvitation]) -> UUID:
    """
    Household a new user joins: the invitation's, or a new one.

    Marks the invitation accepted. Flushes only; the caller commits.
    """
    if invitation is not None:
        invitation.accepted_at = datetime.now(timezone.utc)
        db.flush()
        return invitation.household_id

    household = Household(name=f"{display_name or email.split('@')[0]}'s household")
    db.add(household)
    db.flush()
    return household.id

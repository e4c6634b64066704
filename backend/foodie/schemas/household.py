"""
Household Pydantic Schemas
Request and response models for households and invitations.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class HouseholdMember(BaseModel):
    id: UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    is_admin: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class HouseholdResponse(BaseModel):
    """
    Example:
        {
            "id": "uuid",
            "name": "Taylor household",
            "members": [{"id": "uuid", "email": "sam@example.com", ...}]
        }
    """
    id: UUID
    name: str
    members: List[HouseholdMember]
    created_at: Optional[datetime] = None


class HouseholdUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class InvitationCreate(BaseModel):
    email: EmailStr = Field(..., description="Email address to invite")


class InvitationResponse(BaseModel):
    """Invitation as seen by the inviting household (includes the token for the invite link)."""
    id: UUID
    email: str
    household_id: UUID
    invite_token: str
    expires_at: datetime
    status: str

    model_config = ConfigDict(from_attributes=True)


class InvitationList(BaseModel):
    invitations: List[InvitationResponse]


class InvitationValidation(BaseModel):
    """
    Public view of an invitation, used by the sign-up page.

    status is one of: valid, expired, accepted, declined.
    """
    email: str
    household_name: str
    status: str
    expires_at: datetime


class InvitationActionResponse(BaseModel):
    success: bool = True
    message: str

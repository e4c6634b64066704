"""
Household Invitation Endpoints

Endpoints:
- GET /invitations - Pending invitations of the current household
- POST /invitations - Invite an email address to the current household
- GET /invitations/{token} - Public details of an invitation (sign-up page)
- POST /invitations/{token}/decline - Decline an invitation

Accepting happens by registering (or signing in with Google) with the
invited email address.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.household import (
    InvitationActionResponse,
    InvitationCreate,
    InvitationList,
    InvitationResponse,
    InvitationValidation,
)
from foodie.services import household_service
from foodie.services.error_logging import error_logger


logger = logging.getLogger("auth")

router = APIRouter()


@router.get("", response_model=InvitationList)
def list_invitations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return InvitationList(invitations=household_service.list_pending_invitations(db, current_user.household_id))


@router.post("", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
def send_invitation(
    data: InvitationCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Invite someone to the household.

    Errors:
    - 400: The email already belongs to a member
    - 409: A pending invitation for the email exists
    """
    try:
        return household_service.send_invitation(db, current_user, data.email)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FileExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        db.rollback()
        error_logger.log_error(e, request=request, user=current_user, context={"operation": "send_invitation"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error sending invitation: {str(e)}"
        )


@router.get("/{token}", response_model=InvitationValidation)
def validate_invitation(token: str, db: Session = Depends(get_db)):
    """No authentication: used before the invitee has an account."""
    try:
        return household_service.validate_invitation(db, token)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{token}/decline", response_model=InvitationActionResponse)
def decline_invitation(token: str, db: Session = Depends(get_db)):
    try:
        household_service.decline_invitation(db, token)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info("Invitation declined")
    return InvitationActionResponse(message="Invitation declined")

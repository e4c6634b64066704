"""
Household Endpoints

Endpoints:
- GET /households/me - The current user's household and its members
- PUT /households/me - Rename the household
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.household import HouseholdResponse, HouseholdUpdate
from foodie.services import household_service


router = APIRouter()


@router.get("/me", response_model=HouseholdResponse)
def get_my_household(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return household_service.get_household(db, current_user.household_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/me", response_model=HouseholdResponse)
def rename_household(
    data: HouseholdUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Any member can rename the household."""
    try:
        return household_service.rename_household(db, current_user.household_id, data.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

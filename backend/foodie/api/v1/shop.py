"""
Shopping List API Endpoints

Endpoints:
- GET /shop?week=&year= - Fresh and pantry lists (current week by default)
- POST /shop/reset - Regenerate a week's list from its plan
- POST /shop/items - Add a line by hand
- PUT /shop/items/move - Move a line within or between the fresh/pantry lists
- PUT /shop/items/purchase - Tick or untick a line
- DELETE /shop/items/{id} - Remove a line
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.shopping_list import (
    ShoppingActionResponse,
    ShoppingItemCreate,
    ShoppingItemCreated,
    ShoppingItemMove,
    ShoppingItemPurchase,
    ShoppingListResponse,
    ShoppingWeekRequest,
)
from foodie.services import shopping_service
from foodie.services.error_logging import error_logger


logger = logging.getLogger("shopping")

router = APIRouter()


@router.get("", response_model=ShoppingListResponse)
def get_shopping_list(
    week: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Lines for the same ingredient and measurement are shown as one line
    with their quantities added up.
    """
    try:
        return shopping_service.get_shopping_list(db, current_user.household_id, week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/reset", response_model=ShoppingActionResponse)
def reset_shopping_list(
    data: ShoppingWeekRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace every line of the week (hand-added ones too) with the planned recipes' ingredients."""
    try:
        created = shopping_service.reset_shopping_list(db, current_user.household_id, data.week, data.year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"RESET_ERROR | week={data.week} | year={data.year} | error={str(e)} | user={current_user.email}")
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "reset_shopping_list", "week": data.week, "year": data.year
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error resetting shopping list: {str(e)}"
        )
    return ShoppingActionResponse(message=f"Created {created} item(s)")


@router.post("/items", response_model=ShoppingItemCreated, status_code=status.HTTP_201_CREATED)
def add_item(
    data: ShoppingItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        item = shopping_service.add_item(
            db, current_user.household_id, data.week, data.year, data.name, data.ingredient_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ShoppingItemCreated(id=item.id)


@router.put("/items/move", response_model=ShoppingActionResponse)
def move_item(
    data: ShoppingItemMove,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        shopping_service.move_item(
            db, current_user.household_id, data.id, data.fresh, data.sort, data.week, data.year
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "move_item", "item_id": str(data.id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error moving item: {str(e)}"
        )
    return ShoppingActionResponse(message="Item moved")


@router.put("/items/purchase", response_model=ShoppingActionResponse)
def set_purchased(
    data: ShoppingItemPurchase,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        shopping_service.set_purchased(db, current_user.household_id, data.id, data.purchased)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ShoppingActionResponse(message="Purchased" if data.purchased else "Not purchased")


@router.delete("/items/{item_id}", response_model=ShoppingActionResponse)
def remove_item(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        shopping_service.remove_item(db, current_user.household_id, item_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ShoppingActionResponse(message="Item removed")

"""
Ingredients API Endpoints

Endpoints:
- GET /ingredients - Ingredients the household can use
- GET /ingredients/search?q= - Fuzzy search over accessible ingredients
- POST /ingredients - Add an ingredient to the household library
- PUT /ingredients/{id} - Update (copying it first when not owned)
- DELETE /ingredients/{id} - Delete an owned ingredient no recipe uses
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.ingredient import (
    IngredientCreate,
    IngredientEditResponse,
    IngredientListResponse,
    IngredientResponse,
    IngredientUpdate,
)
from foodie.services import ingredient_service
from foodie.services.error_logging import error_logger


router = APIRouter()


@router.get("", response_model=IngredientListResponse)
def list_ingredients(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Own ingredients plus those reachable through essentials and subscriptions."""
    ingredients = ingredient_service.list_ingredients(db, current_user.household_id)
    return IngredientListResponse(ingredients=ingredients, total=len(ingredients))


@router.get("/search", response_model=IngredientListResponse)
def search_ingredients(
    q: str = Query(..., min_length=1, description="Search text"),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Ranked by fuzzy similarity; each result carries its score (0-100)."""
    ingredients = ingredient_service.search_ingredients(db, current_user.household_id, q, limit)
    return IngredientListResponse(ingredients=ingredients, total=len(ingredients))


@router.post("", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED)
def add_ingredient(
    data: IngredientCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: Blank or duplicate name, unknown category
    """
    try:
        ingredient = ingredient_service.add_ingredient(db, current_user.household_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ingredient_service.serialize_ingredient(ingredient, current_user.household_id)


@router.put("/{ingredient_id}", response_model=IngredientEditResponse)
def update_ingredient(
    ingredient_id: UUID,
    data: IngredientUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update an ingredient.

    When the ingredient belongs to another household it is copied into this
    one first; with collection_id and recipe_id the recipe and collection
    are copied too so the edit only affects this household.
    """
    try:
        return ingredient_service.update_ingredient(db, current_user.household_id, ingredient_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "update_ingredient", "ingredient_id": str(ingredient_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating ingredient: {str(e)}"
        )


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ingredient(
    ingredient_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        ingredient_service.delete_ingredient(db, current_user.household_id, ingredient_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

"""
Recipes API Endpoints

Endpoints:
    - GET /recipes - Plannable recipes with filters
    - GET /recipes/options - Dropdown data for the recipe editor
    - GET /recipes/{id} - Recipe with ingredient lines
    - POST /recipes - Create a recipe inside an owned collection
    - PUT /recipes/{id} - Update recipe details
    - PUT /recipes/{id}/ingredients - Apply an ingredient line diff
    - POST /recipes/{id}/image - Upload the recipe photo
    - POST /recipes/{id}/pdf - Upload the printable PDF (or a JPEG to convert)
    - DELETE /recipes/{id} - Delete, archive or unlink a recipe

Edits to recipes the household does not own copy the recipe first
(copy-on-write); responses report the ids to use from then on.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from foodie.db.session import get_db
from foodie.middleware.error_handler import is_lock_timeout, lock_timeout_response
from foodie.models import User
from foodie.schemas.recipe import (
    CopyActionsResponse,
    FileUploadResponse,
    RecipeCreate,
    RecipeDeleteResponse,
    RecipeDetail,
    RecipeDetailsUpdate,
    RecipeIngredientsUpdate,
    RecipeListResponse,
    RecipeOptions,
)
from foodie.services import recipe_service
from foodie.services.error_logging import error_logger


router = APIRouter()


@router.get("", response_model=RecipeListResponse)
def list_recipes(
    search: Optional[str] = Query(None, description="Search name and description"),
    season_id: Optional[UUID] = Query(None),
    primary_type_id: Optional[UUID] = Query(None, description="Protein type"),
    secondary_type_id: Optional[UUID] = Query(None, description="Carb type"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Recipes from owned and subscribed collections, excluding archived ones."""
    recipes, total = recipe_service.list_recipes(
        db, current_user.household_id,
        search=search,
        season_id=season_id,
        primary_type_id=primary_type_id,
        secondary_type_id=secondary_type_id,
        limit=limit,
        offset=offset,
    )
    return RecipeListResponse(recipes=recipes, total=total, limit=limit, offset=offset)


@router.get("/options", response_model=RecipeOptions)
def get_recipe_options(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return recipe_service.get_recipe_options(db, current_user.household_id)


@router.get("/{recipe_id}", response_model=RecipeDetail)
def get_recipe(
    recipe_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return recipe_service.get_recipe_detail(db, current_user.household_id, recipe_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=RecipeDetail, status_code=status.HTTP_201_CREATED)
def create_recipe(
    data: RecipeCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a recipe and add it to one of the household's collections.

    Errors:
        400 Bad Request: Invalid shop_qty, lookup or ingredient
        403 Forbidden: Collection owned by another household
        404 Not Found: Collection does not exist
    """
    try:
        recipe = recipe_service.create_recipe(db, current_user.household_id, data)
        return recipe_service.get_recipe_detail(db, current_user.household_id, recipe.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={"operation": "create_recipe"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating recipe: {str(e)}"
        )


@router.put("/{recipe_id}", response_model=CopyActionsResponse)
def update_recipe(
    recipe_id: UUID,
    data: RecipeDetailsUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return recipe_service.update_recipe_details(db, current_user.household_id, recipe_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "update_recipe", "recipe_id": str(recipe_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating recipe: {str(e)}"
        )


@router.put("/{recipe_id}/ingredients", response_model=CopyActionsResponse)
def update_recipe_ingredients(
    recipe_id: UUID,
    data: RecipeIngredientsUpdate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Add, update and delete ingredient lines in one transaction.

    Ingredients no longer used by any recipe are cleaned up afterwards.
    """
    try:
        return recipe_service.update_recipe_ingredients(db, current_user.household_id, recipe_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "update_recipe_ingredients", "recipe_id": str(recipe_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating ingredients: {str(e)}"
        )


async def _upload(request: Request, current_user: User, db: Session, recipe_id: UUID,
                  file: UploadFile, collection_id: Optional[UUID], replace, label: str):
    data = await file.read()
    try:
        return replace(db, current_user.household_id, recipe_id, data, file.content_type, collection_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except OperationalError as e:
        if is_lock_timeout(e):
            return lock_timeout_response()
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": f"upload_{label}", "recipe_id": str(recipe_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving {label}: {str(e)}"
        )
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": f"upload_{label}", "recipe_id": str(recipe_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving {label}: {str(e)}"
        )


@router.post("/{recipe_id}/image", response_model=FileUploadResponse)
async def upload_recipe_image(
    recipe_id: UUID,
    request: Request,
    file: UploadFile = File(..., description="Recipe photo (JPEG, PNG or WebP)"),
    collection_id: Optional[UUID] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await _upload(request, current_user, db, recipe_id, file, collection_id,
                         recipe_service.update_recipe_image, "image")


@router.post("/{recipe_id}/pdf", response_model=FileUploadResponse)
async def upload_recipe_pdf(
    recipe_id: UUID,
    request: Request,
    file: UploadFile = File(..., description="Recipe PDF, or a JPEG converted to PDF"),
    collection_id: Optional[UUID] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Errors:
        409 Conflict: The database was locked by a concurrent upload, retry
    """
    return await _upload(request, current_user, db, recipe_id, file, collection_id,
                         recipe_service.update_recipe_pdf, "pdf")


@router.delete("/{recipe_id}", response_model=RecipeDeleteResponse)
def delete_recipe(
    recipe_id: UUID,
    request: Request,
    collection_id: Optional[UUID] = Query(None, description="Collection the recipe is removed from when not owned"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete an owned recipe.

    Recipes with shopping list history are archived instead. Recipes of
    other households are only removed from the given owned collection.

    Errors:
        400 Bad Request: Recipe is planned
        403 Forbidden: Not owned and no owned collection given
        404 Not Found: Unknown recipe
    """
    try:
        return recipe_service.delete_recipe(db, current_user.household_id, recipe_id, collection_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "delete_recipe", "recipe_id": str(recipe_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error deleting recipe: {str(e)}"
        )

"""
Collections API Endpoints

Endpoints:
- GET /collections - Collections the household plans from (owned + subscribed)
- GET /collections/browse - Public collections of every household
- GET /collections/{id} - Collection with its recipes
- POST /collections - Create a collection (multipart, optional JPEG artwork)
- PUT /collections/{id} - Update an owned collection (multipart)
- DELETE /collections/{id} - Delete an empty owned collection
- POST /collections/{id}/subscribe - Toggle subscription to a public collection
- POST /collections/{id}/recipes - Add recipes to an owned collection
- DELETE /collections/{id}/recipes/{recipe_id} - Remove a recipe from an owned collection
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.collection import (
    AddRecipesRequest,
    AddRecipesResponse,
    CollectionDeleteResponse,
    CollectionDetail,
    CollectionListResponse,
    CollectionSummary,
    SubscriptionToggleResponse,
)
from foodie.services import collection_service
from foodie.services.error_logging import error_logger


router = APIRouter()


async def _read_image(upload: Optional[UploadFile]) -> Optional[collection_service.ImageUpload]:
    if upload is None or not upload.filename:
        return None
    return await upload.read(), upload.content_type


@router.get("", response_model=CollectionListResponse)
def list_collections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collections = collection_service.list_collections(db, current_user.household_id)
    return CollectionListResponse(collections=collections, total=len(collections))


@router.get("/browse", response_model=CollectionListResponse)
def browse_collections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    collections = collection_service.browse_collections(db, current_user.household_id)
    return CollectionListResponse(collections=collections, total=len(collections))


@router.get("/{collection_id}", response_model=CollectionDetail)
def get_collection(
    collection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return collection_service.get_collection_detail(db, current_user.household_id, collection_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("", response_model=CollectionSummary, status_code=status.HTTP_201_CREATED)
async def create_collection(
    request: Request,
    title: str = Form(...),
    subtitle: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None, description="Light theme artwork (JPEG)"),
    image_dark: Optional[UploadFile] = File(None, description="Dark theme artwork (JPEG)"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a collection owned by the current household.

    Without artwork the default cover images are used.
    """
    light, dark = await _read_image(image), await _read_image(image_dark)
    try:
        collection = collection_service.create_collection(
            db, current_user.household_id, title, subtitle, light, dark
        )
        return collection_service.collection_summary(db, collection)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={"operation": "create_collection"})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating collection: {str(e)}"
        )


@router.put("/{collection_id}", response_model=CollectionSummary)
async def update_collection(
    collection_id: UUID,
    request: Request,
    title: Optional[str] = Form(None),
    subtitle: Optional[str] = Form(None),
    show_overlay: Optional[bool] = Form(None),
    public: Optional[bool] = Form(None),
    image: Optional[UploadFile] = File(None),
    image_dark: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Only sent fields change. New artwork replaces the old files."""
    light, dark = await _read_image(image), await _read_image(image_dark)
    try:
        collection = collection_service.update_collection(
            db, current_user.household_id, collection_id,
            title=title, subtitle=subtitle, show_overlay=show_overlay, public=public,
            light_image=light, dark_image=dark,
        )
        return collection_service.collection_summary(db, collection)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "update_collection", "collection_id": str(collection_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating collection: {str(e)}"
        )


@router.delete("/{collection_id}", response_model=CollectionDeleteResponse)
def delete_collection(
    collection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        title = collection_service.delete_collection(db, current_user.household_id, collection_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return CollectionDeleteResponse(message=f"Deleted '{title}'")


@router.post("/{collection_id}/subscribe", response_model=SubscriptionToggleResponse)
def toggle_subscription(
    collection_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Subscribe to a public collection of another household, or unsubscribe.

    Errors:
    - 400: Own or private collection
    - 404: Unknown collection
    - 409: Concurrent subscription change
    """
    try:
        return collection_service.toggle_subscription(db, current_user.household_id, collection_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except FileExistsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{collection_id}/recipes", response_model=AddRecipesResponse)
def add_recipes(
    collection_id: UUID,
    data: AddRecipesRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return collection_service.add_recipes(db, current_user.household_id, collection_id, data.recipe_ids)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{collection_id}/recipes/{recipe_id}", response_model=CollectionDeleteResponse)
def remove_recipe(
    collection_id: UUID,
    recipe_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        collection_service.remove_recipe(db, current_user.household_id, collection_id, recipe_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return CollectionDeleteResponse(message="Recipe removed from collection")

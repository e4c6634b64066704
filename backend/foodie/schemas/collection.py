"""
Collection Pydantic Schemas
Response models for collections plus the small JSON request bodies.

Create and update take multipart forms (they may carry cover images), so
their fields are declared on the endpoints instead of here.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from foodie.schemas.recipe import RecipeSummary


class CollectionSummary(BaseModel):
    """
    Collection as seen by the requesting household.

    access_type is "owned", "subscribed" or "public".
    """
    id: UUID
    title: str
    subtitle: Optional[str] = None
    filename: str
    filename_dark: str
    image_url: Optional[str] = None
    image_dark_url: Optional[str] = None
    url_slug: str
    url_path: str
    show_overlay: bool
    public: bool
    household_id: UUID
    owner_name: Optional[str] = None
    parent_id: Optional[UUID] = None
    access_type: str
    can_edit: bool
    can_subscribe: bool
    recipe_count: int = 0


class CollectionDetail(CollectionSummary):
    recipes: List[RecipeSummary] = Field(default_factory=list)


class CollectionListResponse(BaseModel):
    collections: List[CollectionSummary]
    total: int


class SubscriptionToggleResponse(BaseModel):
    """
    Example:
        {"success": true, "action": "subscribed", "subscribed": true}
    """
    success: bool = True
    action: str
    subscribed: bool


class AddRecipesRequest(BaseModel):
    recipe_ids: List[UUID] = Field(..., min_length=1)


class AddRecipesResponse(BaseModel):
    success: bool = True
    collection_id: UUID
    added: List[UUID]
    skipped: List[UUID]
    message: str


class CollectionDeleteResponse(BaseModel):
    success: bool = True
    message: str

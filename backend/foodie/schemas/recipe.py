"""
Recipe Pydantic Schemas
Request and response models for Recipe API endpoints.

These schemas define the structure of data sent to and received from
the Recipes API. They provide validation, serialization, and documentation.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from foodie.schemas.ingredient import IngredientResponse


# ============================================================================
# Ingredient lines
# ============================================================================

class RecipeIngredientInput(BaseModel):
    """
    One ingredient line sent by the recipe editor.

    Example:
        {
            "ingredient_id": "uuid-of-brown-onion",
            "quantity": "1",
            "quantity4": "2",
            "measurement_id": "uuid-of-whole",
            "preparation_id": "uuid-of-diced",
            "primary_ingredient": false
        }
    """
    ingredient_id: UUID = Field(..., description="Ingredient used by this line")
    quantity: Optional[str] = Field(None, max_length=50, description="Quantity for 2 people")
    quantity4: Optional[str] = Field(None, max_length=50, description="Quantity for 4 people")
    measurement_id: Optional[UUID] = None
    preparation_id: Optional[UUID] = None
    primary_ingredient: bool = False


class RecipeIngredientUpdateItem(RecipeIngredientInput):
    """Existing line to update, identified by its line id."""
    id: UUID


class RecipeIngredientsUpdate(BaseModel):
    """
    Diff applied to a recipe's ingredient lines in one transaction.

    collection_id is the collection the recipe was opened from; when the
    household does not own the recipe (or the collection) it is copied first.
    """
    collection_id: Optional[UUID] = None
    added: List[RecipeIngredientInput] = Field(default_factory=list)
    updated: List[RecipeIngredientUpdateItem] = Field(default_factory=list)
    deleted_ids: List[UUID] = Field(default_factory=list)


class RecipeIngredientResponse(BaseModel):
    id: UUID
    ingredient_id: UUID
    name: str
    fresh: bool
    quantity: Optional[str] = None
    quantity4: Optional[str] = None
    measurement_id: Optional[UUID] = None
    measurement: Optional[str] = None
    preparation_id: Optional[UUID] = None
    preparation: Optional[str] = None
    primary_ingredient: bool = False


# ============================================================================
# Recipe requests
# ============================================================================

class RecipeDetailsBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Recipe name")
    description: Optional[str] = None
    prep_time: Optional[int] = Field(None, ge=0, description="Preparation time in minutes")
    cook_time: Optional[int] = Field(None, ge=0, description="Cooking time in minutes")
    season_id: Optional[UUID] = None
    primary_type_id: Optional[UUID] = Field(None, description="Protein type")
    secondary_type_id: Optional[UUID] = Field(None, description="Carb type")
    shop_qty: int = Field(2, description="Default people to shop for (2 or 4)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Recipe name is required")
        return v


class RecipeCreate(RecipeDetailsBase):
    """
    Schema for creating a recipe inside one of the household's collections.

    Example request:
        {
            "collection_id": "uuid",
            "name": "Chicken Katsu Curry",
            "prep_time": 15,
            "cook_time": 30,
            "ingredients": [{"ingredient_id": "uuid", "quantity": "300", "quantity4": "600"}]
        }
    """
    collection_id: UUID
    ingredients: List[RecipeIngredientInput] = Field(default_factory=list)


class RecipeDetailsUpdate(BaseModel):
    """Partial update of recipe details. Only sent fields are changed."""
    collection_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    prep_time: Optional[int] = Field(None, ge=0)
    cook_time: Optional[int] = Field(None, ge=0)
    season_id: Optional[UUID] = None
    primary_type_id: Optional[UUID] = None
    secondary_type_id: Optional[UUID] = None
    shop_qty: Optional[int] = None


# ============================================================================
# Recipe responses
# ============================================================================

class RecipeSummary(BaseModel):
    """Recipe as shown in lists, plans and collections."""
    id: UUID
    name: str
    description: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    season_id: Optional[UUID] = None
    season: Optional[str] = None
    primary_type_id: Optional[UUID] = None
    primary_type: Optional[str] = None
    secondary_type_id: Optional[UUID] = None
    secondary_type: Optional[str] = None
    image_filename: Optional[str] = None
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    url_slug: Optional[str] = None
    url_path: str
    household_id: UUID
    parent_id: Optional[UUID] = None
    archived: bool = False
    shop_qty: int = 2

    model_config = ConfigDict(from_attributes=True)


class RecipeDetail(RecipeSummary):
    """Full recipe with ingredient lines and the caller's access."""
    ingredients: List[RecipeIngredientResponse] = Field(default_factory=list)
    access_type: str
    can_edit: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RecipeListResponse(BaseModel):
    recipes: List[RecipeSummary]
    total: int
    limit: int
    offset: int


class CopyActionsResponse(BaseModel):
    """
    Result of an edit that may have triggered copy-on-write.

    recipe_id / collection_id are the ids the client should use from now on.
    """
    success: bool = True
    recipe_id: UUID
    collection_id: Optional[UUID] = None
    copied: bool = False
    actions_taken: List[str] = Field(default_factory=list)
    recipe: Optional[RecipeDetail] = None


class FileUploadResponse(BaseModel):
    success: bool = True
    recipe_id: UUID
    filename: str
    url: Optional[str] = None
    actions_taken: List[str] = Field(default_factory=list)


class RecipeDeleteResponse(BaseModel):
    success: bool = True
    action: str = Field(..., description="deleted | archived | removed_from_collection")
    message: str
    orphaned_ingredients_removed: int = 0


class LookupItem(BaseModel):
    id: UUID
    name: str

    model_config = ConfigDict(from_attributes=True)


class RecipeOptions(BaseModel):
    """Everything the recipe editor needs for its dropdowns."""
    seasons: List[LookupItem]
    type_proteins: List[LookupItem]
    type_carbs: List[LookupItem]
    measurements: List[LookupItem]
    preparations: List[LookupItem]
    supermarket_categories: List[LookupItem]
    pantry_categories: List[LookupItem]
    ingredients: List[IngredientResponse]

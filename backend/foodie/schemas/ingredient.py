"""
Ingredient Pydantic Schemas
Request and response models for the ingredients endpoints.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class IngredientCreate(BaseModel):
    """
    Example:
        {
            "name": "Brown onion",
            "fresh": true,
            "cost": 0.6,
            "stockcode": "144329",
            "supermarket_category_id": "uuid"
        }
    """
    name: str = Field(..., max_length=255)
    fresh: bool = False
    cost: float = Field(0.0, ge=0)
    stockcode: Optional[str] = Field(None, max_length=50)
    supermarket_category_id: Optional[UUID] = None
    pantry_category_id: Optional[UUID] = None


class IngredientUpdate(BaseModel):
    """Partial update. Editing an ingredient you don't own copies it first."""
    name: Optional[str] = Field(None, max_length=255)
    fresh: Optional[bool] = None
    cost: Optional[float] = Field(None, ge=0)
    stockcode: Optional[str] = Field(None, max_length=50)
    supermarket_category_id: Optional[UUID] = None
    pantry_category_id: Optional[UUID] = None
    collection_id: Optional[UUID] = Field(None, description="Collection the edit was made from")
    recipe_id: Optional[UUID] = Field(None, description="Recipe the edit was made from")


class IngredientResponse(BaseModel):
    id: UUID
    name: str
    fresh: bool
    cost: float
    stockcode: Optional[str] = None
    supermarket_category_id: Optional[UUID] = None
    supermarket_category: Optional[str] = None
    pantry_category_id: Optional[UUID] = None
    pantry_category: Optional[str] = None
    household_id: UUID
    parent_id: Optional[UUID] = None
    access_type: str
    can_edit: bool
    score: Optional[float] = None


class IngredientListResponse(BaseModel):
    ingredients: List[IngredientResponse]
    total: int


class IngredientEditResponse(BaseModel):
    success: bool = True
    ingredient: IngredientResponse
    copied: bool = False
    actions_taken: List[str] = Field(default_factory=list)
    recipe_id: Optional[UUID] = None
    collection_id: Optional[UUID] = None

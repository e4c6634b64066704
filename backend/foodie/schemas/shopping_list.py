"""
Shopping List Pydantic Schemas
Request and response models for weekly shopping lists.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ShoppingListLine(BaseModel):
    """
    One displayed line.

    Lines for the same ingredient and measurement are grouped on read:
    ids lists every stored row in the group and quantity is their total.
    """
    id: UUID
    ids: List[UUID]
    name: str
    fresh: bool
    sort: int
    quantity: Optional[str] = None
    measurement: Optional[str] = None
    cost: float = 0.0
    purchased: bool = False
    stockcode: Optional[str] = None
    ingredient_id: Optional[UUID] = None
    recipe_ids: List[UUID] = Field(default_factory=list)
    supermarket_category: Optional[str] = None
    pantry_category: Optional[str] = None


class ShoppingListResponse(BaseModel):
    week: int
    year: int
    fresh: List[ShoppingListLine]
    pantry: List[ShoppingListLine]
    total_cost: float
    remaining_cost: float


class ShoppingWeekRequest(BaseModel):
    week: int
    year: int


class ShoppingItemCreate(ShoppingWeekRequest):
    name: Optional[str] = Field(None, max_length=255)
    ingredient_id: Optional[UUID] = None


class ShoppingItemCreated(BaseModel):
    success: bool = True
    id: UUID


class ShoppingItemMove(ShoppingWeekRequest):
    id: UUID
    fresh: bool
    sort: int = Field(..., ge=0)


class ShoppingItemPurchase(BaseModel):
    id: UUID
    purchased: bool


class ShoppingActionResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None

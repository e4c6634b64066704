"""
Meal Plan Pydantic Schemas
Request and response models for weekly meal plans.

Week and year are validated by the plan service (400 on bad values),
so they are plain integers here.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from foodie.schemas.recipe import RecipeSummary


class PlannedRecipe(RecipeSummary):
    plan_id: UUID
    plan_shop_qty: int = Field(..., description="People this week's shopping is for")


class WeekPlanResponse(BaseModel):
    """
    Example:
        {
            "week": 3, "year": 2026,
            "week_start": "2026-01-12", "week_end": "2026-01-18",
            "week_label": "12 Jan - 18 Jan 2026",
            "recipes": [...]
        }
    """
    week: int
    year: int
    week_start: date
    week_end: date
    week_label: str
    recipes: List[PlannedRecipe]


class PlanSaveRequest(BaseModel):
    week: int
    year: int
    recipe_ids: List[UUID] = Field(default_factory=list)


class ShopQtyUpdate(BaseModel):
    week: int
    year: int
    recipe_id: UUID
    shop_qty: int = Field(..., description="2 or 4")


class RandomizeRequest(BaseModel):
    count: int = Field(4, ge=1, le=14)
    exclude_ids: Optional[List[UUID]] = Field(
        None,
        description="Recipes to leave out (defaults to the current week's plan)"
    )
    week: Optional[int] = None
    year: Optional[int] = None


class RandomizeResponse(BaseModel):
    recipes: List[RecipeSummary]
    total_available: int


class PlanHistoryWeek(BaseModel):
    week: int
    year: int
    week_label: str
    recipes: List[RecipeSummary]


class PlanHistoryStats(BaseModel):
    total_weeks: int
    total_recipes: int
    average_recipes_per_week: float


class PlanHistoryResponse(BaseModel):
    weeks: List[PlanHistoryWeek]
    stats: PlanHistoryStats


class PlanActionResponse(BaseModel):
    success: bool = True
    message: str

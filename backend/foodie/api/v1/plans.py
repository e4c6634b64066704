"""
Meal Plan API Endpoints

Endpoints:
- GET /plans/current - Plan for the current ISO week
- GET /plans/history - Planned weeks of the last months
- GET /plans?week=&year= - Plan for an explicit week
- POST /plans - Replace a week's plan
- DELETE /plans?week=&year= - Remove a week's plan
- POST /plans/randomize - Suggest recipes avoiding repeated main ingredients
- PUT /plans/shop-qty - Shop for 2 or 4 people for one planned recipe
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user
from foodie.core.constants import PLAN_HISTORY_MONTHS
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.plan import (
    PlanActionResponse,
    PlanHistoryResponse,
    PlanSaveRequest,
    RandomizeRequest,
    RandomizeResponse,
    ShopQtyUpdate,
    WeekPlanResponse,
)
from foodie.services import plan_service
from foodie.services.error_logging import error_logger


router = APIRouter()


@router.get("/current", response_model=WeekPlanResponse)
def get_current_plan(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return plan_service.get_current_plan(db, current_user.household_id)


@router.get("/history", response_model=PlanHistoryResponse)
def get_plan_history(
    months: int = Query(PLAN_HISTORY_MONTHS, ge=1, le=24),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return plan_service.get_plan_history(db, current_user.household_id, months)


@router.get("", response_model=WeekPlanResponse)
def get_week_plan(
    week: int = Query(...),
    year: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: week outside 1..53 or year outside 2000..2100
    """
    try:
        return plan_service.get_week_plan(db, current_user.household_id, week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("", response_model=PlanActionResponse)
def save_week_plan(
    data: PlanSaveRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Replace the plan for a week with recipe_ids.

    Every recipe must come from an owned or subscribed collection.
    """
    try:
        count = plan_service.save_week_plan(db, current_user.household_id, data.week, data.year, data.recipe_ids)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        error_logger.log_error(e, request=request, user=current_user, context={
            "operation": "save_week_plan", "week": data.week, "year": data.year
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error saving plan: {str(e)}"
        )
    return PlanActionResponse(message=f"Saved {count} recipe(s) for week {data.week}, {data.year}")


@router.delete("", response_model=PlanActionResponse)
def delete_week_plan(
    week: int = Query(...),
    year: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        removed = plan_service.delete_week_plan(db, current_user.household_id, week, year)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return PlanActionResponse(message=f"Removed {removed} recipe(s) from week {week}, {year}")


@router.post("/randomize", response_model=RandomizeResponse)
def randomize_recipes(
    data: RandomizeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Pick up to count recipes, never repeating a primary or secondary ingredient.

    Recipes already planned for the week (or exclude_ids) are left out.
    """
    try:
        return plan_service.randomize_recipes(
            db, current_user.household_id,
            count=data.count,
            exclude_ids=data.exclude_ids,
            week=data.week,
            year=data.year,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put("/shop-qty", response_model=PlanActionResponse)
def update_shop_qty(
    data: ShopQtyUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        plan_service.update_shop_qty(
            db, current_user.household_id, data.week, data.year, data.recipe_id, data.shop_qty
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return PlanActionResponse(message=f"Shopping for {data.shop_qty} people")

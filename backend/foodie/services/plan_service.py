"""
Meal Plan Service
Weekly plans: which recipes a household cooks in an ISO week.

Provides:
    - Reading the current or an explicit week's plan
    - Replacing a week's plan (shop_qty kept for recipes that stay)
    - Removing a week's plan
    - Randomized suggestions that avoid repeating main ingredients
    - Per-recipe shop quantity (2 or 4 people)
    - Plan history with simple stats
"""

import logging
import random
from collections import OrderedDict
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from foodie.core.constants import DEFAULT_RANDOMIZE_COUNT, PLAN_HISTORY_MONTHS, VALID_SHOP_QTY
from foodie.core.weeks import current_week, format_week_range, validate_week, week_dates
from foodie.models import Plan, Recipe
from foodie.services.access_service import planning_recipes_query
from foodie.services.randomizer import RecipeCandidate, select_random_recipes
from foodie.services.recipe_service import serialize_recipe_summary


logger = logging.getLogger(__name__)


def _planned_recipe(plan: Plan) -> dict:
    data = serialize_recipe_summary(plan.recipe)
    data["plan_id"] = plan.id
    data["plan_shop_qty"] = plan.shop_qty
    return data


def _week_plans(db: Session, household_id: UUID, week: int, year: int) -> List[Plan]:
    return db.query(Plan).join(Recipe, Recipe.id == Plan.recipe_id).filter(
        Plan.household_id == household_id,
        Plan.week == week,
        Plan.year == year
    ).order_by(Plan.created_at, Recipe.name).all()


def get_week_plan(db: Session, household_id: UUID, week: int, year: int) -> dict:
    """
    Planned recipes for one ISO week.

    Raises:
        ValueError: Week or year out of range
    """
    validate_week(week, year)
    start, end = week_dates(week, year)
    return {
        "week": week,
        "year": year,
        "week_start": start,
        "week_end": end,
        "week_label": format_week_range(week, year),
        "recipes": [_planned_recipe(p) for p in _week_plans(db, household_id, week, year)],
    }


def get_current_plan(db: Session, household_id: UUID, today: Optional[date] = None) -> dict:
    week, year = current_week(today)
    return get_week_plan(db, household_id, week, year)


def save_week_plan(db: Session, household_id: UUID, week: int, year: int, recipe_ids: List[UUID]) -> int:
    """
    Replace the household's plan for a week.

    Recipes that stay in the plan keep their shop_qty; new entries take the
    recipe's default. Returns the number of planned recipes.

    Raises:
        ValueError: Bad week/year, or a recipe the household cannot plan
    """
    validate_week(week, year)
    unique_ids = list(dict.fromkeys(recipe_ids))

    if unique_ids:
        plannable = {
            r.id: r for r in planning_recipes_query(db, household_id).filter(Recipe.id.in_(unique_ids))
        }
        missing = [str(rid) for rid in unique_ids if rid not in plannable]
        if missing:
            raise ValueError(f"Recipes not available for planning: {', '.join(missing)}")
    else:
        plannable = {}

    try:
        existing = {p.recipe_id: p for p in db.query(Plan).filter(
            Plan.household_id == household_id,
            Plan.week == week,
            Plan.year == year
        )}
        for recipe_id, plan in existing.items():
            if recipe_id not in plannable:
                db.delete(plan)
        for recipe_id in unique_ids:
            if recipe_id not in existing:
                db.add(Plan(
                    week=week,
                    year=year,
                    recipe_id=recipe_id,
                    household_id=household_id,
                    shop_qty=plannable[recipe_id].shop_qty,
                ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Saved plan for household {household_id}, week {week}/{year}: {len(unique_ids)} recipe(s)")
    return len(unique_ids)


def delete_week_plan(db: Session, household_id: UUID, week: int, year: int) -> int:
    """Remove a week's plan. Returns the number of removed entries."""
    validate_week(week, year)
    removed = db.query(Plan).filter(
        Plan.household_id == household_id,
        Plan.week == week,
        Plan.year == year
    ).delete(synchronize_session=False)
    db.commit()
    return removed


def update_shop_qty(db: Session, household_id: UUID, week: int, year: int, recipe_id: UUID, shop_qty: int) -> Plan:
    """
    Raises:
        ValueError: Bad week/year or shop_qty
        LookupError: Recipe not planned that week
    """
    validate_week(week, year)
    if shop_qty not in VALID_SHOP_QTY:
        raise ValueError(f"shop_qty must be one of {VALID_SHOP_QTY}")

    plan = db.query(Plan).filter(
        Plan.household_id == household_id,
        Plan.week == week,
        Plan.year == year,
        Plan.recipe_id == recipe_id
    ).first()
    if plan is None:
        raise LookupError("Recipe is not planned for this week")

    plan.shop_qty = shop_qty
    db.commit()
    db.refresh(plan)
    return plan


def recipe_candidate(recipe: Recipe) -> RecipeCandidate:
    """
    Randomizer keys for a recipe: its first two ingredient lines, with lines
    flagged as primary first. Ingredients are compared by lowercased name so
    a household copy of an ingredient still counts as the same one.
    """
    lines = sorted(recipe.ingredients, key=lambda line: not line.primary_ingredient)
    keys = [
        line.ingredient.name.strip().lower() if line.ingredient else str(line.ingredient_id)
        for line in lines[:2]
    ]
    return RecipeCandidate(
        recipe_id=recipe.id,
        primary_key=keys[0] if keys else None,
        secondary_key=keys[1] if len(keys) > 1 else None,
    )


def randomize_recipes(
    db: Session,
    household_id: UUID,
    count: int = DEFAULT_RANDOMIZE_COUNT,
    exclude_ids: Optional[List[UUID]] = None,
    week: Optional[int] = None,
    year: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> dict:
    """
    Suggest recipes for a week.

    Candidates are the plannable recipes minus exclude_ids, or minus the
    week's current plan when no exclusions are given.
    """
    if exclude_ids is None:
        if week is None or year is None:
            week, year = current_week()
        validate_week(week, year)
        exclude_ids = [p.recipe_id for p in db.query(Plan.recipe_id).filter(
            Plan.household_id == household_id,
            Plan.week == week,
            Plan.year == year
        )]

    query = planning_recipes_query(db, household_id)
    if exclude_ids:
        query = query.filter(~Recipe.id.in_(exclude_ids))
    recipes = {r.id: r for r in query.all()}

    candidates = [recipe_candidate(r) for r in recipes.values()]
    selected = select_random_recipes(candidates, count, rng)

    return {
        "recipes": [serialize_recipe_summary(recipes[c.recipe_id]) for c in selected],
        "total_available": len(candidates),
    }


def get_plan_history(db: Session, household_id: UUID, months: int = PLAN_HISTORY_MONTHS,
                     today: Optional[date] = None) -> dict:
    """
    Planned weeks from the last months up to the current week, newest first.

    Stats: number of weeks, number of planned recipes and the average per
    week rounded to one decimal.
    """
    today = today or date.today()
    end_week, end_year = current_week(today)
    start_week, start_year = current_week(today - timedelta(days=round(months * 30.44)))

    plans = db.query(Plan).join(Recipe, Recipe.id == Plan.recipe_id).filter(
        Plan.household_id == household_id,
        Plan.year >= start_year,
        Plan.year <= end_year
    ).order_by(Plan.year.desc(), Plan.week.desc(), Recipe.name).all()

    grouped = OrderedDict()
    for plan in plans:
        key = (plan.year, plan.week)
        if not (start_year, start_week) <= key <= (end_year, end_week):
            continue
        grouped.setdefault(key, []).append(serialize_recipe_summary(plan.recipe))

    weeks = [
        {"week": week, "year": year, "week_label": format_week_range(week, year), "recipes": recipes}
        for (year, week), recipes in grouped.items()
    ]
    total_recipes = sum(len(w["recipes"]) for w in weeks)
    return {
        "weeks": weeks,
        "stats": {
            "total_weeks": len(weeks),
            "total_recipes": total_recipes,
            "average_recipes_per_week": round(total_recipes / len(weeks), 1) if weeks else 0.0,
        },
    }

"""
Shopping List Service
Weekly shopping lists generated from meal plans.

Each week has two ordered lists: fresh (supermarket run) and pantry
(check the cupboard). Lines are stored one per recipe ingredient and are
only grouped when read, so ticking off or moving a line never loses which
recipe it came from.
"""

import logging
from fractions import Fraction
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from foodie.core.constants import RESOURCE_INGREDIENT, TIER_INGREDIENTS
from foodie.core.weeks import current_week, validate_week
from foodie.models import Ingredient, Plan, Recipe, RecipeIngredient, ShoppingListItem
from foodie.services.access_service import validate_access_tier


logger = logging.getLogger("shopping")


# ============================================================================
# Quantities
# ============================================================================

def parse_quantity(value: Optional[str]) -> Optional[Fraction]:
    """
    Parse "2", "1.5", "1/2" or "1 1/2" into a Fraction. None when not numeric.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parts = text.split()
        if len(parts) == 2:
            return Fraction(parts[0]) + Fraction(parts[1])
        return Fraction(text)
    except (ValueError, ZeroDivisionError):
        return None


def format_quantity(value: Fraction) -> str:
    if value.denominator == 1:
        return str(value.numerator)
    return f"{float(value):.2f}".rstrip("0").rstrip(".")


def combine_quantities(quantities: List[Optional[str]]) -> Optional[str]:
    """Sum numeric quantities; fall back to joining them with " + "."""
    present = [q.strip() for q in quantities if q and q.strip()]
    if not present:
        return None
    parsed = [parse_quantity(q) for q in present]
    if all(p is not None for p in parsed):
        return format_quantity(sum(parsed, Fraction(0)))
    return " + ".join(present)


# ============================================================================
# Read
# ============================================================================

def _group_lines(items: List[ShoppingListItem]) -> List[dict]:
    """Group lines for the same ingredient and measurement, keeping list order."""
    groups: Dict[Tuple, List[ShoppingListItem]] = {}
    order = []
    for item in items:
        key = (item.ingredient_id, (item.measurement or "").lower()) if item.ingredient_id else (item.id,)
        if key not in groups:
            groups[key] = []
            order.append(key)
        groups[key].append(item)

    lines = []
    for key in order:
        members = groups[key]
        first = members[0]
        lines.append({
            "id": first.id,
            "ids": [m.id for m in members],
            "name": first.name,
            "fresh": first.fresh,
            "sort": min(m.sort for m in members),
            "quantity": combine_quantities([m.quantity for m in members]),
            "measurement": first.measurement,
            "cost": round(sum(m.cost or 0.0 for m in members), 2),
            "purchased": all(m.purchased for m in members),
            "stockcode": first.stockcode,
            "ingredient_id": first.ingredient_id,
            "recipe_ids": list(dict.fromkeys(m.recipe_id for m in members if m.recipe_id)),
            "supermarket_category": first.supermarket_category,
            "pantry_category": first.pantry_category,
        })
    return lines


def get_shopping_list(db: Session, household_id: UUID, week: Optional[int] = None,
                      year: Optional[int] = None) -> dict:
    """
    Fresh and pantry lists for a week (current week by default).

    Raises:
        ValueError: Week or year out of range
    """
    if week is None or year is None:
        week, year = current_week()
    validate_week(week, year)

    items = db.query(ShoppingListItem).filter(
        ShoppingListItem.household_id == household_id,
        ShoppingListItem.week == week,
        ShoppingListItem.year == year
    ).order_by(ShoppingListItem.sort, ShoppingListItem.id).all()

    total = sum(i.cost or 0.0 for i in items)
    remaining = sum(i.cost or 0.0 for i in items if not i.purchased)
    return {
        "week": week,
        "year": year,
        "fresh": _group_lines([i for i in items if i.fresh]),
        "pantry": _group_lines([i for i in items if not i.fresh]),
        "total_cost": round(total, 2),
        "remaining_cost": round(remaining, 2),
    }


# ============================================================================
# Write
# ============================================================================

def _category_key(category) -> Tuple:
    # Uncategorised lines go last
    if category is None:
        return (1, 0, "")
    return (0, category.sort_order or 0, category.name.lower())


def reset_shopping_list(db: Session, household_id: UUID, week: int, year: int) -> int:
    """
    Regenerate a week's list from its plan.

    Existing lines (including hand-added ones) are replaced by one line per
    recipe ingredient. Quantities use the 4-person column when the plan entry
    shops for 4. Returns the number of lines created.

    Raises:
        ValueError: Week or year out of range
    """
    validate_week(week, year)

    rows = db.query(Plan, RecipeIngredient).join(
        Recipe, Recipe.id == Plan.recipe_id
    ).join(
        RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id
    ).filter(
        Plan.household_id == household_id,
        Plan.week == week,
        Plan.year == year
    ).all()

    fresh_lines, pantry_lines = [], []
    for plan, line in rows:
        ingredient = line.ingredient
        quantity = line.quantity4 if plan.shop_qty == 4 else line.quantity
        item = ShoppingListItem(
            week=week,
            year=year,
            household_id=household_id,
            fresh=ingredient.fresh,
            name=ingredient.name,
            cost=ingredient.cost or 0.0,
            stockcode=ingredient.stockcode,
            purchased=False,
            recipe_id=plan.recipe_id,
            ingredient_id=ingredient.id,
            recipe_ingredient_id=line.id,
            quantity=quantity,
            measurement=line.measurement.name if line.measurement else None,
            supermarket_category=ingredient.supermarket_category.name if ingredient.supermarket_category else None,
            pantry_category=ingredient.pantry_category.name if ingredient.pantry_category else None,
        )
        if ingredient.fresh:
            fresh_lines.append((_category_key(ingredient.supermarket_category), ingredient.name.lower(), item))
        else:
            pantry_lines.append((_category_key(ingredient.pantry_category), ingredient.name.lower(), item))

    try:
        db.query(ShoppingListItem).filter(
            ShoppingListItem.household_id == household_id,
            ShoppingListItem.week == week,
            ShoppingListItem.year == year
        ).delete(synchronize_session=False)

        for lines in (fresh_lines, pantry_lines):
            lines.sort(key=lambda entry: (entry[0], entry[1]))
            for position, (_, _, item) in enumerate(lines):
                item.sort = position
                db.add(item)
        db.commit()
    except Exception:
        db.rollback()
        raise

    created = len(fresh_lines) + len(pantry_lines)
    logger.info(f"Reset shopping list for household {household_id}, week {week}/{year}: {created} line(s)")
    return created


def add_item(db: Session, household_id: UUID, week: int, year: int, name: Optional[str] = None,
             ingredient_id: Optional[UUID] = None) -> ShoppingListItem:
    """
    Append a hand-added line to the end of the fresh list.

    Raises:
        ValueError: Bad week/year, or neither name nor ingredient given
        LookupError: Ingredient not accessible
    """
    validate_week(week, year)
    name = (name or "").strip()
    if not name and ingredient_id is None:
        raise ValueError("Name or ingredient_id is required")

    ingredient = None
    if ingredient_id is not None:
        if validate_access_tier(db, household_id, RESOURCE_INGREDIENT, ingredient_id, TIER_INGREDIENTS) is None:
            raise LookupError("Ingredient not found")
        ingredient = db.get(Ingredient, ingredient_id)

    next_sort = db.query(func.max(ShoppingListItem.sort)).filter(
        ShoppingListItem.household_id == household_id,
        ShoppingListItem.week == week,
        ShoppingListItem.year == year,
        ShoppingListItem.fresh.is_(True)
    ).scalar()
    next_sort = 0 if next_sort is None else next_sort + 1

    item = ShoppingListItem(
        week=week,
        year=year,
        household_id=household_id,
        fresh=True,
        name=name or ingredient.name,
        sort=next_sort,
        cost=(ingredient.cost or 0.0) if ingredient else 0.0,
        stockcode=ingredient.stockcode if ingredient else None,
        ingredient_id=ingredient.id if ingredient else None,
        supermarket_category=(
            ingredient.supermarket_category.name if ingredient and ingredient.supermarket_category else None
        ),
        pantry_category=ingredient.pantry_category.name if ingredient and ingredient.pantry_category else None,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def _household_item(db: Session, household_id: UUID, item_id: UUID) -> ShoppingListItem:
    item = db.get(ShoppingListItem, item_id)
    if item is None or item.household_id != household_id:
        raise LookupError("Shopping list item not found")
    return item


def _list_items(db: Session, household_id: UUID, week: int, year: int, fresh: bool,
                exclude_id: UUID) -> List[ShoppingListItem]:
    return db.query(ShoppingListItem).filter(
        ShoppingListItem.household_id == household_id,
        ShoppingListItem.week == week,
        ShoppingListItem.year == year,
        ShoppingListItem.fresh.is_(fresh),
        ShoppingListItem.id != exclude_id
    ).order_by(ShoppingListItem.sort, ShoppingListItem.id).all()


def move_item(db: Session, household_id: UUID, item_id: UUID, fresh: bool, sort: int,
              week: int, year: int) -> None:
    """
    Move a line to position sort of the fresh or pantry list.

    The other lines of the target list are renumbered 0..n around it; when
    the line changes list, the list it left is renumbered too.

    Raises:
        LookupError: Line not found for this household and week
        ValueError: Bad week/year or position
    """
    validate_week(week, year)
    if sort < 0:
        raise ValueError("sort must be zero or positive")

    item = _household_item(db, household_id, item_id)
    if item.week != week or item.year != year:
        raise LookupError("Shopping list item not found")

    try:
        source_fresh = item.fresh
        others = _list_items(db, household_id, week, year, fresh, item.id)
        position = min(sort, len(others))

        item.fresh = fresh
        item.sort = position
        for index, other in enumerate(others):
            other.sort = index + 1 if index >= position else index

        if source_fresh != fresh:
            for index, other in enumerate(_list_items(db, household_id, week, year, source_fresh, item.id)):
                other.sort = index
        db.commit()
    except Exception:
        db.rollback()
        raise


def set_purchased(db: Session, household_id: UUID, item_id: UUID, purchased: bool) -> ShoppingListItem:
    item = _household_item(db, household_id, item_id)
    item.purchased = purchased
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, household_id: UUID, item_id: UUID) -> None:
    item = _household_item(db, household_id, item_id)
    db.delete(item)
    db.commit()

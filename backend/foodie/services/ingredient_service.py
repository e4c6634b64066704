"""
Ingredient Service
Business logic for the household ingredient library.

Provides:
    - Listing and fuzzy searching the ingredients tier
    - Adding household ingredients (duplicate names rejected)
    - Copy-on-write updates of shared ingredients
    - Deleting unused household ingredients
"""

from typing import List, Optional
from uuid import UUID

from rapidfuzz import fuzz
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from foodie.core.constants import ACCESS_ACCESSIBLE, ACCESS_OWNED, RESOURCE_INGREDIENT, TIER_INGREDIENTS
from foodie.models import Ingredient, PantryCategory, RecipeIngredient, SupermarketCategory
from foodie.schemas.ingredient import IngredientCreate, IngredientUpdate
from foodie.services.access_service import get_accessible_ingredients, validate_access_tier
from foodie.services.copy_on_write import (
    cascade_copy_ingredient_with_context,
    copy_ingredient_for_edit,
)


# Minimum fuzzy score (0-100) for search results
SEARCH_SCORE_CUTOFF = 60.0


def serialize_ingredient(ingredient: Ingredient, household_id: UUID, score: Optional[float] = None) -> dict:
    owned = ingredient.household_id == household_id
    return {
        "id": ingredient.id,
        "name": ingredient.name,
        "fresh": ingredient.fresh,
        "cost": ingredient.cost or 0.0,
        "stockcode": ingredient.stockcode,
        "supermarket_category_id": ingredient.supermarket_category_id,
        "supermarket_category": ingredient.supermarket_category.name if ingredient.supermarket_category else None,
        "pantry_category_id": ingredient.pantry_category_id,
        "pantry_category": ingredient.pantry_category.name if ingredient.pantry_category else None,
        "household_id": ingredient.household_id,
        "parent_id": ingredient.parent_id,
        "access_type": ACCESS_OWNED if owned else ACCESS_ACCESSIBLE,
        "can_edit": owned,
        "score": score,
    }


def list_ingredients(db: Session, household_id: UUID) -> List[dict]:
    return [serialize_ingredient(i, household_id) for i in get_accessible_ingredients(db, household_id)]


# ============================================================================
# SEARCH
# ============================================================================

def calculate_match_score(query: str, name: str) -> float:
    """
    Best of several fuzzy matching strategies, 0-100.

    partial_ratio lets "onion" match "Brown onion"; token_set_ratio handles
    reordered words ("tomatoes diced" vs "Diced tomatoes").
    """
    query = query.lower().strip()
    name = name.lower().strip()
    if not query or not name:
        return 0.0
    return max(
        fuzz.ratio(query, name),
        fuzz.partial_ratio(query, name),
        fuzz.token_sort_ratio(query, name),
        fuzz.token_set_ratio(query, name),
    )


def search_ingredients(db: Session, household_id: UUID, query: str, limit: int = 20) -> List[dict]:
    """Accessible ingredients ranked by fuzzy similarity to query."""
    scored = []
    for ingredient in get_accessible_ingredients(db, household_id):
        score = calculate_match_score(query, ingredient.name)
        if score >= SEARCH_SCORE_CUTOFF:
            scored.append((score, ingredient))

    scored.sort(key=lambda pair: (-pair[0], pair[1].name.lower()))
    return [serialize_ingredient(i, household_id, round(score, 1)) for score, i in scored[:limit]]


# ============================================================================
# CRUD
# ============================================================================

def _check_duplicate_name(db: Session, household_id: UUID, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Ingredient).filter(
        func.lower(Ingredient.name) == name.lower(),
        or_(Ingredient.household_id == household_id, Ingredient.public.is_(True))
    )
    if exclude_id is not None:
        query = query.filter(Ingredient.id != exclude_id)
    if query.first() is not None:
        raise ValueError(f"An ingredient named '{name}' already exists")


def _check_categories(db: Session, supermarket_category_id: Optional[UUID], pantry_category_id: Optional[UUID]) -> None:
    if supermarket_category_id and db.get(SupermarketCategory, supermarket_category_id) is None:
        raise ValueError("Supermarket category not found")
    if pantry_category_id and db.get(PantryCategory, pantry_category_id) is None:
        raise ValueError("Pantry category not found")


def add_ingredient(db: Session, household_id: UUID, data: IngredientCreate) -> Ingredient:
    """
    Add an ingredient to the household library.

    Raises:
        ValueError: Empty name, duplicate name or unknown category
    """
    name = (data.name or "").strip()
    if not name:
        raise ValueError("Ingredient name is required")
    _check_duplicate_name(db, household_id, name)
    _check_categories(db, data.supermarket_category_id, data.pantry_category_id)

    ingredient = Ingredient(
        name=name,
        fresh=data.fresh,
        cost=data.cost,
        stockcode=data.stockcode,
        supermarket_category_id=data.supermarket_category_id,
        pantry_category_id=data.pantry_category_id,
        household_id=household_id,
    )
    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)
    return ingredient


def update_ingredient(db: Session, household_id: UUID, ingredient_id: UUID, data: IngredientUpdate) -> dict:
    """
    Update an ingredient, copying it into the household first if needed.

    When the edit comes from a recipe inside a collection (collection_id and
    recipe_id given), the collection and recipe are copied as well.

    Returns:
        dict with the edited ingredient, whether a copy happened, the copy
        actions and the recipe/collection ids to use from now on.

    Raises:
        LookupError: Ingredient not found or not accessible
        ValueError: Invalid update
    """
    if validate_access_tier(db, household_id, RESOURCE_INGREDIENT, ingredient_id, TIER_INGREDIENTS) is None:
        raise LookupError("Ingredient not found")

    actions: List[str] = []
    recipe_id = data.recipe_id
    collection_id = data.collection_id
    if data.collection_id and data.recipe_id:
        result = cascade_copy_ingredient_with_context(
            db, household_id, data.collection_id, data.recipe_id, ingredient_id
        )
        target_id = result.new_ingredient_id
        actions = result.actions_taken
        recipe_id = result.new_recipe_id
        collection_id = result.new_collection_id
    else:
        target_id = copy_ingredient_for_edit(db, ingredient_id, household_id).new_id

    ingredient = db.get(Ingredient, target_id)
    changes = data.model_dump(exclude_unset=True, exclude={"collection_id", "recipe_id"})

    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Ingredient name is required")
        _check_duplicate_name(db, household_id, name, exclude_id=ingredient.id)
        changes["name"] = name
    _check_categories(db, changes.get("supermarket_category_id"), changes.get("pantry_category_id"))

    for field, value in changes.items():
        if field in ("fresh", "cost") and value is None:
            continue
        setattr(ingredient, field, value)

    db.commit()
    db.refresh(ingredient)

    return {
        "ingredient": ingredient,
        "copied": target_id != ingredient_id,
        "actions_taken": actions,
        "recipe_id": recipe_id,
        "collection_id": collection_id,
    }


def delete_ingredient(db: Session, household_id: UUID, ingredient_id: UUID) -> None:
    """
    Delete a household ingredient that no recipe uses.

    Raises:
        LookupError: Ingredient not found
        PermissionError: Ingredient belongs to another household
        ValueError: Ingredient still used by recipes
    """
    ingredient = db.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise LookupError("Ingredient not found")
    if ingredient.household_id != household_id:
        raise PermissionError("You can only delete ingredients owned by your household")

    usage = db.query(func.count(func.distinct(RecipeIngredient.recipe_id))).filter(
        RecipeIngredient.ingredient_id == ingredient_id
    ).scalar()
    if usage:
        raise ValueError(
            f"Cannot delete ingredient: it is used in {usage} recipe(s). "
            "Remove it from those recipes first."
        )

    db.delete(ingredient)
    db.commit()

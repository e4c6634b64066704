"""
Copy-on-Write Service
Duplicates shared resources into the editing household's ownership.

A household may only change what it owns. When it edits a recipe,
collection or ingredient that belongs to another household (reached
through a subscription or the essentials collection), the resource is first
copied into the household with parent_id pointing at the original, and the
household's references are repointed to the copy:

- recipe copy: the household's collections point at the new recipe
- ingredient copy: the household's recipe lines point at the new ingredient
- collection copy: private "<title> (Copy)" with the same recipes, and the
  subscription to the original is dropped

Each public function runs as one transaction and rolls back on error.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from foodie.core.constants import (
    ACTION_COLLECTION_COPIED,
    ACTION_INGREDIENT_COPIED,
    ACTION_RECIPE_COPIED,
    ACTION_UNSUBSCRIBED,
    COPY_TITLE_SUFFIX,
)
from foodie.core.slugs import slugify
from foodie.models import (
    Collection,
    CollectionRecipe,
    CollectionSubscription,
    Ingredient,
    Recipe,
    RecipeIngredient,
    ShoppingListItem,
)
from foodie.services.access_service import owned_collection_ids


logger = logging.getLogger(__name__)


@dataclass
class CopyResult:
    copied: bool
    new_id: UUID


@dataclass
class CascadeCopyResult:
    new_collection_id: UUID
    new_recipe_id: UUID
    new_ingredient_id: Optional[UUID] = None
    actions_taken: List[str] = field(default_factory=list)
    new_collection_slug: Optional[str] = None
    new_recipe_slug: Optional[str] = None


# ============================================================================
# Row cloning helpers (flush only, caller commits)
# ============================================================================

def _clone_recipe(db: Session, recipe: Recipe, household_id: UUID) -> Recipe:
    copy = Recipe(
        name=recipe.name,
        description=recipe.description,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        archived=False,
        season_id=recipe.season_id,
        primary_type_id=recipe.primary_type_id,
        secondary_type_id=recipe.secondary_type_id,
        public=False,
        url_slug=recipe.url_slug,
        image_filename=recipe.image_filename,
        pdf_filename=recipe.pdf_filename,
        shop_qty=recipe.shop_qty,
        household_id=household_id,
        parent_id=recipe.id,
    )
    db.add(copy)
    db.flush()

    for line in recipe.ingredients:
        db.add(RecipeIngredient(
            recipe_id=copy.id,
            ingredient_id=line.ingredient_id,
            quantity=line.quantity,
            quantity4=line.quantity4,
            measurement_id=line.measurement_id,
            preparation_id=line.preparation_id,
            primary_ingredient=line.primary_ingredient,
            parent_id=line.id,
        ))
    db.flush()
    logger.info(f"Copied recipe {recipe.id} -> {copy.id} for household {household_id}")
    return copy


def _clone_ingredient(db: Session, ingredient: Ingredient, household_id: UUID) -> Ingredient:
    copy = Ingredient(
        name=ingredient.name,
        fresh=ingredient.fresh,
        cost=ingredient.cost,
        stockcode=ingredient.stockcode,
        supermarket_category_id=ingredient.supermarket_category_id,
        pantry_category_id=ingredient.pantry_category_id,
        public=False,
        household_id=household_id,
        parent_id=ingredient.id,
    )
    db.add(copy)
    db.flush()
    logger.info(f"Copied ingredient {ingredient.id} -> {copy.id} for household {household_id}")
    return copy


def _clone_collection(
    db: Session,
    collection: Collection,
    household_id: UUID,
    recipe_map: Optional[Dict[UUID, UUID]] = None,
) -> tuple:
    """
    Copy a collection and its recipe memberships.

    recipe_map redirects memberships to already-copied recipes.
    Returns (new_collection, unsubscribed).
    """
    recipe_map = recipe_map or {}
    title = f"{collection.title}{COPY_TITLE_SUFFIX}"
    copy = Collection(
        title=title,
        subtitle=collection.subtitle,
        filename=collection.filename,
        filename_dark=collection.filename_dark,
        url_slug=slugify(title),
        show_overlay=collection.show_overlay,
        public=False,
        household_id=household_id,
        parent_id=collection.id,
    )
    db.add(copy)
    db.flush()

    for link in collection.recipe_links:
        db.add(CollectionRecipe(
            collection_id=copy.id,
            recipe_id=recipe_map.get(link.recipe_id, link.recipe_id),
            display_order=link.display_order,
        ))

    unsubscribed = db.query(CollectionSubscription).filter(
        CollectionSubscription.household_id == household_id,
        CollectionSubscription.collection_id == collection.id
    ).delete(synchronize_session=False) > 0
    db.flush()

    logger.info(f"Copied collection {collection.id} -> {copy.id} for household {household_id}")
    return copy, unsubscribed


def _repoint_household_collections(db: Session, household_id: UUID, old_recipe_id: UUID, new_recipe_id: UUID) -> int:
    return db.query(CollectionRecipe).filter(
        CollectionRecipe.recipe_id == old_recipe_id,
        CollectionRecipe.collection_id.in_(owned_collection_ids(household_id))
    ).update({CollectionRecipe.recipe_id: new_recipe_id}, synchronize_session=False)


def _repoint_household_recipe_lines(db: Session, household_id: UUID, old_ingredient_id: UUID,
                                    new_ingredient_id: UUID) -> int:
    household_recipes = select(Recipe.id).where(Recipe.household_id == household_id)
    return db.query(RecipeIngredient).filter(
        RecipeIngredient.ingredient_id == old_ingredient_id,
        RecipeIngredient.recipe_id.in_(household_recipes)
    ).update({RecipeIngredient.ingredient_id: new_ingredient_id}, synchronize_session=False)


def _get_or_raise(db: Session, model, resource_id: UUID, label: str):
    resource = db.get(model, resource_id)
    if resource is None:
        raise LookupError(f"{label} not found")
    return resource


# ============================================================================
# Single resource copies
# ============================================================================

def copy_recipe_for_edit(db: Session, recipe_id: UUID, household_id: UUID) -> CopyResult:
    """
    Make sure the household owns the recipe it is about to edit.

    Raises:
        LookupError: Recipe does not exist
    """
    recipe = _get_or_raise(db, Recipe, recipe_id, "Recipe")
    if recipe.household_id == household_id:
        return CopyResult(copied=False, new_id=recipe.id)

    try:
        copy = _clone_recipe(db, recipe, household_id)
        _repoint_household_collections(db, household_id, recipe.id, copy.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return CopyResult(copied=True, new_id=copy.id)


def copy_ingredient_for_edit(db: Session, ingredient_id: UUID, household_id: UUID) -> CopyResult:
    """
    Make sure the household owns the ingredient it is about to edit.

    Raises:
        LookupError: Ingredient does not exist
    """
    ingredient = _get_or_raise(db, Ingredient, ingredient_id, "Ingredient")
    if ingredient.household_id == household_id:
        return CopyResult(copied=False, new_id=ingredient.id)

    try:
        copy = _clone_ingredient(db, ingredient, household_id)
        _repoint_household_recipe_lines(db, household_id, ingredient.id, copy.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return CopyResult(copied=True, new_id=copy.id)


def copy_collection(db: Session, source_id: UUID, household_id: UUID) -> CopyResult:
    """Copy a whole collection (memberships only, recipes stay shared)."""
    collection = _get_or_raise(db, Collection, source_id, "Collection")
    if collection.household_id == household_id:
        return CopyResult(copied=False, new_id=collection.id)

    try:
        copy, _ = _clone_collection(db, collection, household_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return CopyResult(copied=True, new_id=copy.id)


def trigger_copy_if_needed(db: Session, household_id: UUID, recipe_id: UUID) -> UUID:
    """Id of the recipe the household should edit."""
    return copy_recipe_for_edit(db, recipe_id, household_id).new_id


def trigger_ingredient_copy_if_needed(db: Session, household_id: UUID, ingredient_id: UUID) -> UUID:
    """Id of the ingredient the household should edit."""
    return copy_ingredient_for_edit(db, ingredient_id, household_id).new_id


# ============================================================================
# Cascading copies (edit in the context of a collection)
# ============================================================================

def _cascade(db: Session, household_id: UUID, collection_id: UUID, recipe_id: UUID) -> CascadeCopyResult:
    collection = _get_or_raise(db, Collection, collection_id, "Collection")
    recipe = _get_or_raise(db, Recipe, recipe_id, "Recipe")

    link = db.get(CollectionRecipe, (collection.id, recipe.id))
    if link is None:
        raise ValueError("Recipe is not part of this collection")

    actions = []
    target_recipe = recipe
    if recipe.household_id != household_id:
        target_recipe = _clone_recipe(db, recipe, household_id)
        actions.append(ACTION_RECIPE_COPIED)

    target_collection = collection
    if collection.household_id != household_id:
        recipe_map = {recipe.id: target_recipe.id}
        target_collection, unsubscribed = _clone_collection(db, collection, household_id, recipe_map)
        actions.insert(0, ACTION_COLLECTION_COPIED)
        if unsubscribed:
            actions.insert(1, ACTION_UNSUBSCRIBED)
    elif target_recipe is not recipe:
        db.query(CollectionRecipe).filter(
            CollectionRecipe.collection_id == target_collection.id,
            CollectionRecipe.recipe_id == recipe.id
        ).update({CollectionRecipe.recipe_id: target_recipe.id}, synchronize_session=False)

    return CascadeCopyResult(
        new_collection_id=target_collection.id,
        new_recipe_id=target_recipe.id,
        actions_taken=actions,
        new_collection_slug=target_collection.url_slug,
        new_recipe_slug=target_recipe.url_slug,
    )


def cascade_copy_with_context(db: Session, household_id: UUID, collection_id: UUID,
                              recipe_id: UUID) -> CascadeCopyResult:
    """
    Copy whatever is not owned so the household can edit a recipe in a collection.

    1. Unowned collection: copied (private, " (Copy)" title), subscription
       to the original removed
    2. Unowned recipe: copied, and the (possibly new) collection points at it

    Raises:
        LookupError: Collection or recipe does not exist
        ValueError: Recipe is not in the collection
    """
    try:
        result = _cascade(db, household_id, collection_id, recipe_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result


def cascade_copy_ingredient_with_context(db: Session, household_id: UUID, collection_id: UUID,
                                         recipe_id: UUID, ingredient_id: UUID) -> CascadeCopyResult:
    """
    Cascade copy for an ingredient edit made from a recipe in a collection.

    Runs cascade_copy_with_context and then copies the ingredient, repointing
    the household's recipe lines (including the freshly copied recipe).
    """
    try:
        result = _cascade(db, household_id, collection_id, recipe_id)
        ingredient = _get_or_raise(db, Ingredient, ingredient_id, "Ingredient")
        result.new_ingredient_id = ingredient.id
        if ingredient.household_id != household_id:
            copy = _clone_ingredient(db, ingredient, household_id)
            _repoint_household_recipe_lines(db, household_id, ingredient.id, copy.id)
            result.new_ingredient_id = copy.id
            result.actions_taken.append(ACTION_INGREDIENT_COPIED)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return result


# ============================================================================
# Cleanup
# ============================================================================

def cleanup_orphaned_ingredients(db: Session, household_id: UUID, ingredient_ids: Iterable[UUID]) -> int:
    """
    Delete household ingredients from ingredient_ids that nothing uses any more.

    An ingredient is kept while any recipe line or any of the household's
    shopping list lines still references it. Flushes only; the caller commits.
    """
    candidates = set(ingredient_ids)
    if not candidates:
        return 0

    used_by_recipes = select(RecipeIngredient.ingredient_id).where(
        RecipeIngredient.ingredient_id.in_(candidates)
    )
    used_by_shopping = select(ShoppingListItem.ingredient_id).where(
        ShoppingListItem.household_id == household_id,
        ShoppingListItem.ingredient_id.in_(candidates)
    )

    removed = db.query(Ingredient).filter(
        Ingredient.id.in_(candidates),
        Ingredient.household_id == household_id,
        ~Ingredient.id.in_(used_by_recipes),
        ~Ingredient.id.in_(used_by_shopping)
    ).delete(synchronize_session=False)
    if removed:
        logger.info(f"Removed {removed} orphaned ingredient(s) for household {household_id}")
    return removed


def perform_cleanup_after_recipe_delete(db: Session, household_id: UUID, recipe_id: UUID) -> int:
    """Delete a recipe's ingredient lines, then any ingredients left orphaned."""
    ingredient_ids = [
        row.ingredient_id
        for row in db.query(RecipeIngredient.ingredient_id).filter(RecipeIngredient.recipe_id == recipe_id)
    ]
    db.query(RecipeIngredient).filter(
        RecipeIngredient.recipe_id == recipe_id
    ).delete(synchronize_session=False)
    db.flush()
    return cleanup_orphaned_ingredients(db, household_id, ingredient_ids)

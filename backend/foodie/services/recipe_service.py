"""
Recipe Service
Business logic for recipes, their ingredient lines and their files.

Edits always land on a recipe the household owns: recipes reached through
a subscription are copied first (see copy_on_write.py) and the response
tells the client which ids to use from then on.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.core.constants import (
    ACCESS_OWNED,
    ACTION_RECIPE_COPIED,
    IMAGE_CONTENT_TYPES,
    PDF_SOURCE_CONTENT_TYPES,
    RESOURCE_RECIPE,
    TIER_BROWSING,
    VALID_SHOP_QTY,
)
from foodie.core.slugs import slug_path, slugify
from foodie.models import (
    CarbType,
    Collection,
    CollectionRecipe,
    Ingredient,
    Measurement,
    PantryCategory,
    Plan,
    Preparation,
    ProteinType,
    Recipe,
    RecipeIngredient,
    Season,
    ShoppingListItem,
    SupermarketCategory,
)
from foodie.schemas.recipe import RecipeCreate, RecipeDetailsUpdate, RecipeIngredientInput, RecipeIngredientsUpdate
from foodie.services.access_service import (
    AccessContext,
    owned_collection_ids,
    planning_recipes_query,
    validate_access_tier,
)
from foodie.services.copy_on_write import (
    cascade_copy_with_context,
    cleanup_orphaned_ingredients,
    copy_recipe_for_edit,
    perform_cleanup_after_recipe_delete,
)
from foodie.services.file_naming import (
    extract_base_hash,
    generate_secure_filename,
    generate_versioned_filename,
)
from foodie.services.ingredient_service import list_ingredients
from foodie.services.pdf_conversion import image_to_pdf
from foodie.services.storage import cleanup_recipe_files, delete_file, delete_versions, get_file_url, upload_file


logger = logging.getLogger(__name__)


# ============================================================================
# Serialization
# ============================================================================

def serialize_recipe_summary(recipe: Recipe) -> dict:
    return {
        "id": recipe.id,
        "name": recipe.name,
        "description": recipe.description,
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "season_id": recipe.season_id,
        "season": recipe.season.name if recipe.season else None,
        "primary_type_id": recipe.primary_type_id,
        "primary_type": recipe.primary_type.name if recipe.primary_type else None,
        "secondary_type_id": recipe.secondary_type_id,
        "secondary_type": recipe.secondary_type.name if recipe.secondary_type else None,
        "image_filename": recipe.image_filename,
        "image_url": get_file_url(recipe.image_filename),
        "pdf_url": get_file_url(recipe.pdf_filename),
        "url_slug": recipe.url_slug,
        "url_path": slug_path(recipe.id, recipe.url_slug),
        "household_id": recipe.household_id,
        "parent_id": recipe.parent_id,
        "archived": recipe.archived,
        "shop_qty": recipe.shop_qty,
    }


def _serialize_line(line: RecipeIngredient) -> dict:
    return {
        "id": line.id,
        "ingredient_id": line.ingredient_id,
        "name": line.ingredient.name if line.ingredient else "",
        "fresh": line.ingredient.fresh if line.ingredient else False,
        "quantity": line.quantity,
        "quantity4": line.quantity4,
        "measurement_id": line.measurement_id,
        "measurement": line.measurement.name if line.measurement else None,
        "preparation_id": line.preparation_id,
        "preparation": line.preparation.name if line.preparation else None,
        "primary_ingredient": line.primary_ingredient,
    }


def serialize_recipe_detail(recipe: Recipe, context: AccessContext) -> dict:
    data = serialize_recipe_summary(recipe)
    data.update({
        "ingredients": [_serialize_line(line) for line in recipe.ingredients],
        "access_type": context.access_type,
        "can_edit": context.can_edit,
        "created_at": recipe.created_at,
        "updated_at": recipe.updated_at,
    })
    return data


# ============================================================================
# Reads
# ============================================================================

def get_recipe_detail(db: Session, household_id: UUID, recipe_id: UUID) -> dict:
    """
    Raises:
        LookupError: Recipe missing or not visible to the household
    """
    context = validate_access_tier(db, household_id, RESOURCE_RECIPE, recipe_id, TIER_BROWSING)
    if context is None:
        raise LookupError("Recipe not found")
    return serialize_recipe_detail(db.get(Recipe, recipe_id), context)


def list_recipes(
    db: Session,
    household_id: UUID,
    search: Optional[str] = None,
    season_id: Optional[UUID] = None,
    primary_type_id: Optional[UUID] = None,
    secondary_type_id: Optional[UUID] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple:
    """Planning-tier recipes with optional filters. Returns (recipes, total)."""
    query = planning_recipes_query(db, household_id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Recipe.name.ilike(pattern), Recipe.description.ilike(pattern)))
    if season_id:
        query = query.filter(Recipe.season_id == season_id)
    if primary_type_id:
        query = query.filter(Recipe.primary_type_id == primary_type_id)
    if secondary_type_id:
        query = query.filter(Recipe.secondary_type_id == secondary_type_id)

    total = query.count()
    recipes = query.order_by(Recipe.name).offset(offset).limit(limit).all()
    return [serialize_recipe_summary(r) for r in recipes], total


def _lookup_items(db: Session, model) -> List[dict]:
    rows = db.query(model).order_by(model.sort_order, model.name).all()
    return [{"id": row.id, "name": row.name} for row in rows]


def get_recipe_options(db: Session, household_id: UUID) -> dict:
    """Lookup lists and accessible ingredients for the recipe editor."""
    return {
        "seasons": _lookup_items(db, Season),
        "type_proteins": _lookup_items(db, ProteinType),
        "type_carbs": _lookup_items(db, CarbType),
        "measurements": _lookup_items(db, Measurement),
        "preparations": _lookup_items(db, Preparation),
        "supermarket_categories": _lookup_items(db, SupermarketCategory),
        "pantry_categories": _lookup_items(db, PantryCategory),
        "ingredients": list_ingredients(db, household_id),
    }


# ============================================================================
# Validation helpers
# ============================================================================

def _check_shop_qty(shop_qty: Optional[int]) -> None:
    if shop_qty is not None and shop_qty not in VALID_SHOP_QTY:
        raise ValueError(f"shop_qty must be one of {VALID_SHOP_QTY}")


def _check_lookups(db: Session, season_id=None, primary_type_id=None, secondary_type_id=None) -> None:
    for model, value, label in (
        (Season, season_id, "Season"),
        (ProteinType, primary_type_id, "Protein type"),
        (CarbType, secondary_type_id, "Carb type"),
    ):
        if value is not None and db.get(model, value) is None:
            raise ValueError(f"{label} not found")


def _check_line(db: Session, line: RecipeIngredientInput) -> None:
    if db.get(Ingredient, line.ingredient_id) is None:
        raise ValueError(f"Ingredient {line.ingredient_id} not found")
    if line.measurement_id is not None and db.get(Measurement, line.measurement_id) is None:
        raise ValueError("Measurement not found")
    if line.preparation_id is not None and db.get(Preparation, line.preparation_id) is None:
        raise ValueError("Preparation not found")


def _line_values(line: RecipeIngredientInput) -> dict:
    return {
        "ingredient_id": line.ingredient_id,
        "quantity": line.quantity,
        "quantity4": line.quantity4,
        "measurement_id": line.measurement_id,
        "preparation_id": line.preparation_id,
        "primary_ingredient": line.primary_ingredient,
    }


def _resolve_edit_target(db: Session, household_id: UUID, recipe_id: UUID,
                         collection_id: Optional[UUID]) -> dict:
    """
    Copy the recipe (and collection) when needed and return the ids to edit.

    Raises:
        LookupError: Recipe missing or not visible to the household
    """
    if validate_access_tier(db, household_id, RESOURCE_RECIPE, recipe_id, TIER_BROWSING) is None:
        raise LookupError("Recipe not found")

    recipe = db.get(Recipe, recipe_id)
    if recipe.household_id == household_id:
        return {"recipe_id": recipe.id, "collection_id": collection_id, "copied": False, "actions_taken": []}

    if collection_id is not None:
        result = cascade_copy_with_context(db, household_id, collection_id, recipe_id)
        return {
            "recipe_id": result.new_recipe_id,
            "collection_id": result.new_collection_id,
            "copied": True,
            "actions_taken": result.actions_taken,
        }

    result = copy_recipe_for_edit(db, recipe_id, household_id)
    return {"recipe_id": result.new_id, "collection_id": None, "copied": True, "actions_taken": [ACTION_RECIPE_COPIED]}


def _edit_response(db: Session, household_id: UUID, target: dict) -> dict:
    recipe = db.get(Recipe, target["recipe_id"])
    db.refresh(recipe)
    context = AccessContext(
        tier=TIER_BROWSING,
        household_id=household_id,
        access_type=ACCESS_OWNED,
        can_edit=True,
    )
    return {
        "recipe_id": recipe.id,
        "collection_id": target["collection_id"],
        "copied": target["copied"],
        "actions_taken": target["actions_taken"],
        "recipe": serialize_recipe_detail(recipe, context),
    }


# ============================================================================
# Create / update
# ============================================================================

def create_recipe(db: Session, household_id: UUID, data: RecipeCreate) -> Recipe:
    """
    Create a recipe inside one of the household's collections.

    Raises:
        LookupError: Collection not found
        PermissionError: Collection owned by another household
        ValueError: Invalid details or ingredient lines
    """
    collection = db.get(Collection, data.collection_id)
    if collection is None:
        raise LookupError("Collection not found")
    if collection.household_id != household_id:
        raise PermissionError("You can only add recipes to your own collections")

    _check_shop_qty(data.shop_qty)
    _check_lookups(db, data.season_id, data.primary_type_id, data.secondary_type_id)
    for line in data.ingredients:
        _check_line(db, line)

    try:
        recipe = Recipe(
            name=data.name,
            description=data.description,
            prep_time=data.prep_time,
            cook_time=data.cook_time,
            season_id=data.season_id,
            primary_type_id=data.primary_type_id,
            secondary_type_id=data.secondary_type_id,
            shop_qty=data.shop_qty,
            url_slug=slugify(data.name),
            household_id=household_id,
        )
        db.add(recipe)
        db.flush()

        for line in data.ingredients:
            db.add(RecipeIngredient(recipe_id=recipe.id, **_line_values(line)))

        next_order = (db.query(func.max(CollectionRecipe.display_order)).filter(
            CollectionRecipe.collection_id == collection.id
        ).scalar() or 0) + 1
        db.add(CollectionRecipe(collection_id=collection.id, recipe_id=recipe.id, display_order=next_order))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(recipe)
    logger.info(f"Created recipe {recipe.id} in collection {collection.id}")
    return recipe


def update_recipe_details(db: Session, household_id: UUID, recipe_id: UUID, data: RecipeDetailsUpdate) -> dict:
    """
    Update name, times, lookups and shop quantity.

    Raises:
        LookupError: Recipe not visible
        ValueError: Invalid values
    """
    changes = data.model_dump(exclude_unset=True, exclude={"collection_id"})
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValueError("Recipe name is required")
        changes["name"] = name
    if changes.get("shop_qty") is None:
        changes.pop("shop_qty", None)
    _check_shop_qty(changes.get("shop_qty"))
    _check_lookups(db, changes.get("season_id"), changes.get("primary_type_id"), changes.get("secondary_type_id"))

    target = _resolve_edit_target(db, household_id, recipe_id, data.collection_id)
    recipe = db.get(Recipe, target["recipe_id"])

    for field, value in changes.items():
        setattr(recipe, field, value)
    if "name" in changes:
        recipe.url_slug = slugify(recipe.name)

    db.commit()
    return _edit_response(db, household_id, target)


def update_recipe_ingredients(db: Session, household_id: UUID, recipe_id: UUID,
                              data: RecipeIngredientsUpdate) -> dict:
    """
    Apply an added/updated/deleted diff to a recipe's ingredient lines.

    When the recipe was copied, line ids sent by the client still refer to
    the original; they are mapped onto the copy's lines through parent_id.
    Ingredients left unused by the household are cleaned up.

    Raises:
        LookupError: Recipe not visible
        ValueError: Unknown line or ingredient
    """
    for line in list(data.added) + list(data.updated):
        _check_line(db, line)

    target = _resolve_edit_target(db, household_id, recipe_id, data.collection_id)
    recipe = db.get(Recipe, target["recipe_id"])
    lines = db.query(RecipeIngredient).filter(RecipeIngredient.recipe_id == recipe.id).all()

    by_id = {line.id: line for line in lines}
    if target["copied"]:
        by_id.update({line.parent_id: line for line in lines if line.parent_id is not None})

    def resolve(line_id: UUID) -> RecipeIngredient:
        line = by_id.get(line_id)
        if line is None:
            raise ValueError(f"Ingredient line {line_id} does not belong to this recipe")
        return line

    try:
        removed_ingredient_ids = set()
        for line_id in data.deleted_ids:
            line = resolve(line_id)
            removed_ingredient_ids.add(line.ingredient_id)
            db.delete(line)

        for item in data.updated:
            line = resolve(item.id)
            if line.ingredient_id != item.ingredient_id:
                removed_ingredient_ids.add(line.ingredient_id)
            for field, value in _line_values(item).items():
                setattr(line, field, value)

        for item in data.added:
            db.add(RecipeIngredient(recipe_id=recipe.id, **_line_values(item)))

        db.flush()
        cleanup_orphaned_ingredients(db, household_id, removed_ingredient_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return _edit_response(db, household_id, target)


# ============================================================================
# Files
# ============================================================================

def _check_upload(data: bytes, content_type: Optional[str], allowed) -> None:
    if content_type not in allowed:
        raise ValueError(f"Unsupported file type: {content_type}. Allowed: {', '.join(allowed)}")
    if not data:
        raise ValueError("Uploaded file is empty")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValueError(f"File too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)")


def _filename_shared(db: Session, column, filename: Optional[str], recipe_id: UUID) -> bool:
    if not filename:
        return False
    return db.query(Recipe.id).filter(column == filename, Recipe.id != recipe_id).first() is not None


def _replace_file(db: Session, household_id: UUID, recipe_id: UUID, collection_id: Optional[UUID],
                  data: bytes, content_type: str, extension: str, file_type: str) -> dict:
    target = _resolve_edit_target(db, household_id, recipe_id, collection_id)
    recipe = db.get(Recipe, target["recipe_id"])
    column = Recipe.image_filename if file_type == "image" else Recipe.pdf_filename
    current = recipe.image_filename if file_type == "image" else recipe.pdf_filename

    # Copies share files with their original until they upload their own
    shared = _filename_shared(db, column, current, recipe.id)
    if shared:
        new_filename = generate_secure_filename(str(recipe.id), extension)
    else:
        new_filename = generate_versioned_filename(current, extension, seed=str(recipe.id))

    result = upload_file(data, new_filename, content_type)
    if not result.success:
        raise RuntimeError(f"Upload failed: {result.error}")

    try:
        setattr(recipe, column.key, new_filename)
        db.commit()
    except Exception:
        db.rollback()
        delete_file(new_filename)
        raise

    if not shared and current:
        base_hash = extract_base_hash(current)
        if base_hash:
            delete_versions(base_hash, file_type, keep=new_filename)
        elif current != new_filename:
            delete_file(current)

    return {
        "recipe_id": recipe.id,
        "filename": new_filename,
        "url": result.url,
        "actions_taken": target["actions_taken"],
    }


def update_recipe_image(db: Session, household_id: UUID, recipe_id: UUID, data: bytes,
                        content_type: Optional[str], collection_id: Optional[UUID] = None) -> dict:
    """
    Replace a recipe's photo (JPEG, PNG or WebP).

    The stored name keeps its hash and gains a version suffix; older
    versions are deleted once the new file is saved.
    """
    _check_upload(data, content_type, list(IMAGE_CONTENT_TYPES))
    extension = IMAGE_CONTENT_TYPES[content_type]
    return _replace_file(db, household_id, recipe_id, collection_id, data, content_type, extension, "image")


def update_recipe_pdf(db: Session, household_id: UUID, recipe_id: UUID, data: bytes,
                      content_type: Optional[str], collection_id: Optional[UUID] = None) -> dict:
    """
    Replace a recipe's PDF.

    A JPEG photo of the recipe card is converted to a one-page A4 PDF first.
    A database lock timeout while saving propagates as OperationalError and
    is answered with 409 so the client can retry.
    """
    _check_upload(data, content_type, PDF_SOURCE_CONTENT_TYPES)
    if content_type == "image/jpeg":
        recipe = db.get(Recipe, recipe_id)
        data = image_to_pdf(data, title=recipe.name if recipe else "")
        content_type = "application/pdf"
    return _replace_file(db, household_id, recipe_id, collection_id, data, content_type, "pdf", "pdf")


# ============================================================================
# Delete
# ============================================================================

def _remove_from_household_collections(db: Session, household_id: UUID, recipe_id: UUID) -> int:
    return db.query(CollectionRecipe).filter(
        CollectionRecipe.recipe_id == recipe_id,
        CollectionRecipe.collection_id.in_(owned_collection_ids(household_id))
    ).delete(synchronize_session=False)


def purge_recipe(db: Session, recipe: Recipe) -> int:
    """
    Delete a recipe row, detaching everything that points at it.

    Collection memberships and plans go; shopping list items and copies
    keep existing without the reference. Ingredients only this recipe used
    are removed. Does not commit. Returns the orphaned ingredient count.
    """
    db.query(CollectionRecipe).filter(
        CollectionRecipe.recipe_id == recipe.id
    ).delete(synchronize_session=False)
    db.query(Plan).filter(Plan.recipe_id == recipe.id).delete(synchronize_session=False)
    db.query(ShoppingListItem).filter(
        ShoppingListItem.recipe_id == recipe.id
    ).update({ShoppingListItem.recipe_id: None}, synchronize_session=False)
    db.query(Recipe).filter(Recipe.parent_id == recipe.id).update(
        {Recipe.parent_id: None}, synchronize_session=False
    )
    line_ids = [row.id for row in db.query(RecipeIngredient.id).filter(RecipeIngredient.recipe_id == recipe.id)]
    if line_ids:
        db.query(RecipeIngredient).filter(RecipeIngredient.parent_id.in_(line_ids)).update(
            {RecipeIngredient.parent_id: None}, synchronize_session=False
        )
        db.query(ShoppingListItem).filter(ShoppingListItem.recipe_ingredient_id.in_(line_ids)).update(
            {ShoppingListItem.recipe_ingredient_id: None}, synchronize_session=False
        )

    orphans_removed = perform_cleanup_after_recipe_delete(db, recipe.household_id, recipe.id)
    db.query(Recipe).filter(Recipe.id == recipe.id).delete(synchronize_session=False)
    return orphans_removed


def remove_unused_recipe_files(db: Session, image_filename: Optional[str], pdf_filename: Optional[str]) -> None:
    """Delete a removed recipe's files unless a copy still uses them."""
    still_used = {
        filename for (filename,) in db.query(Recipe.image_filename).filter(
            Recipe.image_filename.in_([f for f in (image_filename,) if f])
        )
    } | {
        filename for (filename,) in db.query(Recipe.pdf_filename).filter(
            Recipe.pdf_filename.in_([f for f in (pdf_filename,) if f])
        )
    }
    cleanup_recipe_files(
        image_filename if image_filename not in still_used else None,
        pdf_filename if pdf_filename not in still_used else None,
    )


def delete_recipe(db: Session, household_id: UUID, recipe_id: UUID,
                  collection_id: Optional[UUID] = None) -> dict:
    """
    Delete, archive or unlink a recipe.

    - Not owned: removed from the given owned collection, otherwise refused
    - Owned and planned in one of the household's weeks: refused
    - Owned with shopping list history: archived and removed from the
      household's collections so past lists keep their references
    - Otherwise: deleted with its lines, orphaned ingredients and files

    Raises:
        LookupError: Recipe not found
        PermissionError: Recipe owned by another household
        ValueError: Recipe is planned
    """
    recipe = db.get(Recipe, recipe_id)
    if recipe is None:
        raise LookupError("Recipe not found")

    if recipe.household_id != household_id:
        collection = db.get(Collection, collection_id) if collection_id else None
        if collection is None or collection.household_id != household_id:
            raise PermissionError("You can only delete recipes owned by your household")
        removed = db.query(CollectionRecipe).filter(
            CollectionRecipe.collection_id == collection.id,
            CollectionRecipe.recipe_id == recipe.id
        ).delete(synchronize_session=False)
        if not removed:
            raise LookupError("Recipe is not in this collection")
        db.commit()
        return {
            "action": "removed_from_collection",
            "message": f"Removed '{recipe.name}' from '{collection.title}'",
            "orphaned_ingredients_removed": 0,
        }

    planned_weeks = db.query(Plan).filter(
        Plan.household_id == household_id,
        Plan.recipe_id == recipe.id
    ).count()
    if planned_weeks:
        raise ValueError(
            f"Cannot delete '{recipe.name}': it is planned in {planned_weeks} week(s). "
            "Remove it from your plans first."
        )

    has_history = db.query(ShoppingListItem.id).filter(
        ShoppingListItem.household_id == household_id,
        ShoppingListItem.recipe_id == recipe.id
    ).first() is not None

    if has_history:
        try:
            recipe.archived = True
            _remove_from_household_collections(db, household_id, recipe.id)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Archived recipe {recipe.id} (has shopping list history)")
        return {
            "action": "archived",
            "message": f"'{recipe.name}' has shopping list history and was archived",
            "orphaned_ingredients_removed": 0,
        }

    name = recipe.name
    image_filename, pdf_filename = recipe.image_filename, recipe.pdf_filename
    try:
        orphans_removed = purge_recipe(db, recipe)
        db.commit()
    except Exception:
        db.rollback()
        raise

    remove_unused_recipe_files(db, image_filename, pdf_filename)

    logger.info(f"Deleted recipe {recipe_id} ({orphans_removed} orphaned ingredient(s) removed)")
    return {
        "action": "deleted",
        "message": f"'{name}' was deleted",
        "orphaned_ingredients_removed": orphans_removed,
    }


"""
Access Tier Service
Decides what a household can see and change.

Three tiers, from least to most access:
- browsing: public collections of every household
- planning: collections the household owns or subscribes to, and their
  recipes (what can be put into a meal plan)
- ingredients: the household's own ingredients plus ingredients reachable
  through the essentials collection and subscribed collections

Access types map onto tier levels:
    public -> 0, subscribed -> 1, owned / accessible -> 2
A resource satisfies a tier when its access level is at least the tier's
level. Only owned resources are editable; editing anything else goes
through copy-on-write (see copy_on_write.py).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Query, Session

from foodie.core.config import settings
from foodie.core.constants import (
    ACCESS_ACCESSIBLE,
    ACCESS_LEVELS,
    ACCESS_OWNED,
    ACCESS_PUBLIC,
    ACCESS_SUBSCRIBED,
    RESOURCE_COLLECTION,
    RESOURCE_INGREDIENT,
    RESOURCE_RECIPE,
    TIER_LEVELS,
    VALID_RESOURCE_TYPES,
)
from foodie.core.slugs import slug_path
from foodie.models import (
    Collection,
    CollectionRecipe,
    CollectionSubscription,
    Ingredient,
    Recipe,
    RecipeIngredient,
)
from foodie.services.storage import get_file_url


logger = logging.getLogger(__name__)


@dataclass
class AccessContext:
    """Result of an access check for one resource."""
    tier: str
    household_id: UUID
    access_type: str
    can_edit: bool
    can_subscribe: bool = False


# ============================================================================
# Shared sub-queries
# ============================================================================

def essentials_collection_id() -> Optional[UUID]:
    """Configured essentials collection, or None when unset or malformed."""
    raw = settings.ESSENTIALS_COLLECTION_ID
    if not raw:
        return None
    try:
        return UUID(str(raw))
    except ValueError:
        logger.warning(f"ESSENTIALS_COLLECTION_ID is not a valid UUID: {raw!r}")
        return None


def subscribed_collection_ids(household_id: UUID):
    return select(CollectionSubscription.collection_id).where(
        CollectionSubscription.household_id == household_id
    )


def owned_collection_ids(household_id: UUID):
    return select(Collection.id).where(Collection.household_id == household_id)


def is_subscribed(db: Session, household_id: UUID, collection_id: UUID) -> bool:
    return db.query(CollectionSubscription).filter(
        CollectionSubscription.household_id == household_id,
        CollectionSubscription.collection_id == collection_id
    ).first() is not None


def recipe_counts(db: Session, collection_ids: Iterable[UUID]) -> Dict[UUID, int]:
    """Number of non-archived recipes per collection."""
    ids = list(collection_ids)
    if not ids:
        return {}
    rows = db.query(CollectionRecipe.collection_id, func.count(Recipe.id)).join(
        Recipe, Recipe.id == CollectionRecipe.recipe_id
    ).filter(
        CollectionRecipe.collection_id.in_(ids),
        Recipe.archived.is_(False)
    ).group_by(CollectionRecipe.collection_id).all()
    return {collection_id: count for collection_id, count in rows}


def serialize_collection(
    collection: Collection,
    access_type: str,
    can_edit: bool,
    can_subscribe: bool,
    recipe_count: int,
) -> dict:
    return {
        "id": collection.id,
        "title": collection.title,
        "subtitle": collection.subtitle,
        "filename": collection.filename,
        "filename_dark": collection.filename_dark,
        "image_url": get_file_url(f"{collection.filename}.jpg") if collection.filename else None,
        "image_dark_url": get_file_url(f"{collection.filename_dark}.jpg") if collection.filename_dark else None,
        "url_slug": collection.url_slug,
        "url_path": slug_path(collection.id, collection.url_slug),
        "show_overlay": collection.show_overlay,
        "public": collection.public,
        "household_id": collection.household_id,
        "owner_name": collection.household.name if collection.household else None,
        "parent_id": collection.parent_id,
        "access_type": access_type,
        "can_edit": can_edit,
        "can_subscribe": can_subscribe,
        "recipe_count": recipe_count,
    }


# ============================================================================
# Tier listings
# ============================================================================

def get_browsing_collections(db: Session, household_id: UUID) -> List[dict]:
    """
    Every public collection, annotated with the household's relationship to it.

    Own public collections are reported as "owned" and cannot be subscribed to.
    """
    collections = db.query(Collection).filter(
        Collection.public.is_(True)
    ).order_by(Collection.title).all()

    subscribed = set(db.execute(subscribed_collection_ids(household_id)).scalars().all())
    counts = recipe_counts(db, [c.id for c in collections])

    result = []
    for collection in collections:
        owned = collection.household_id == household_id
        if owned:
            access_type = ACCESS_OWNED
        elif collection.id in subscribed:
            access_type = ACCESS_SUBSCRIBED
        else:
            access_type = ACCESS_PUBLIC
        result.append(serialize_collection(
            collection,
            access_type=access_type,
            can_edit=owned,
            can_subscribe=access_type == ACCESS_PUBLIC,
            recipe_count=counts.get(collection.id, 0),
        ))
    return result


def get_planning_collections(db: Session, household_id: UUID) -> List[dict]:
    """Owned collections first, then subscribed ones, each group by title."""
    owned = db.query(Collection).filter(
        Collection.household_id == household_id
    ).order_by(Collection.title).all()

    subscribed = db.query(Collection).join(
        CollectionSubscription,
        CollectionSubscription.collection_id == Collection.id
    ).filter(
        CollectionSubscription.household_id == household_id,
        Collection.household_id != household_id
    ).order_by(Collection.title).all()

    counts = recipe_counts(db, [c.id for c in owned + subscribed])

    result = [
        serialize_collection(c, ACCESS_OWNED, True, False, counts.get(c.id, 0))
        for c in owned
    ]
    result.extend(
        serialize_collection(c, ACCESS_SUBSCRIBED, False, False, counts.get(c.id, 0))
        for c in subscribed
    )
    return result


def accessible_ingredients_query(db: Session, household_id: UUID) -> Query:
    """
    Query for the ingredients tier.

    Owned ingredients, plus ingredients used by recipes in the essentials
    collection or in subscribed collections. Originals the household has
    already copied are hidden so only its own copy shows up.
    """
    collection_filters = [CollectionRecipe.collection_id.in_(subscribed_collection_ids(household_id))]
    essentials_id = essentials_collection_id()
    if essentials_id is not None:
        collection_filters.append(CollectionRecipe.collection_id == essentials_id)

    via_collections = select(RecipeIngredient.ingredient_id).join(
        CollectionRecipe, CollectionRecipe.recipe_id == RecipeIngredient.recipe_id
    ).where(or_(*collection_filters))

    copied_originals = select(Ingredient.parent_id).where(
        Ingredient.household_id == household_id,
        Ingredient.parent_id.isnot(None)
    )

    return db.query(Ingredient).filter(
        or_(
            Ingredient.household_id == household_id,
            Ingredient.id.in_(via_collections)
        ),
        ~Ingredient.id.in_(copied_originals)
    )


def get_accessible_ingredients(db: Session, household_id: UUID) -> List[Ingredient]:
    owned_first = case((Ingredient.household_id == household_id, 0), else_=1)
    return accessible_ingredients_query(db, household_id).order_by(
        owned_first, Ingredient.name
    ).all()


def planning_recipes_query(db: Session, household_id: UUID) -> Query:
    """
    Query for recipes the household can put into a meal plan.

    Non-archived recipes owned by the household or contained in a collection
    it owns or subscribes to.
    """
    planning_collections = or_(
        CollectionRecipe.collection_id.in_(owned_collection_ids(household_id)),
        CollectionRecipe.collection_id.in_(subscribed_collection_ids(household_id)),
    )
    in_collections = select(CollectionRecipe.recipe_id).where(planning_collections)

    return db.query(Recipe).filter(
        Recipe.archived.is_(False),
        or_(
            Recipe.household_id == household_id,
            Recipe.id.in_(in_collections)
        )
    )


# ============================================================================
# Single resource checks
# ============================================================================

def _collection_access(db: Session, household_id: UUID, collection: Collection) -> Optional[str]:
    if collection.household_id == household_id:
        return ACCESS_OWNED
    if is_subscribed(db, household_id, collection.id):
        return ACCESS_SUBSCRIBED
    if collection.public:
        return ACCESS_PUBLIC
    return None


def _best(access_types: Iterable[Optional[str]]) -> Optional[str]:
    found = [a for a in access_types if a is not None]
    if not found:
        return None
    return max(found, key=lambda a: ACCESS_LEVELS[a])


def _recipe_access(db: Session, household_id: UUID, recipe: Recipe) -> Optional[str]:
    if recipe.household_id == household_id:
        return ACCESS_OWNED
    collections = db.query(Collection).join(
        CollectionRecipe, CollectionRecipe.collection_id == Collection.id
    ).filter(CollectionRecipe.recipe_id == recipe.id).all()
    found = []
    for collection in collections:
        access = _collection_access(db, household_id, collection)
        # Reached through an owned or subscribed collection, but owned by someone else
        found.append(ACCESS_ACCESSIBLE if access in (ACCESS_OWNED, ACCESS_SUBSCRIBED) else access)
    access = _best(found)
    if access is None and recipe.public:
        access = ACCESS_PUBLIC
    return access


def _ingredient_access(db: Session, household_id: UUID, ingredient: Ingredient) -> Optional[str]:
    if ingredient.household_id == household_id:
        return ACCESS_OWNED

    collections = db.query(Collection).join(
        CollectionRecipe, CollectionRecipe.collection_id == Collection.id
    ).join(
        RecipeIngredient, RecipeIngredient.recipe_id == CollectionRecipe.recipe_id
    ).filter(RecipeIngredient.ingredient_id == ingredient.id).distinct().all()

    essentials_id = essentials_collection_id()
    found = []
    for collection in collections:
        if collection.id == essentials_id:
            found.append(ACCESS_ACCESSIBLE)
            continue
        access = _collection_access(db, household_id, collection)
        # Reachable through an owned or subscribed collection
        found.append(ACCESS_ACCESSIBLE if access in (ACCESS_OWNED, ACCESS_SUBSCRIBED) else access)
    access = _best(found)
    if access is None and ingredient.public:
        access = ACCESS_PUBLIC
    return access


def validate_access_tier(
    db: Session,
    household_id: UUID,
    resource_type: str,
    resource_id: UUID,
    required_tier: str,
) -> Optional[AccessContext]:
    """
    Check a household's access to one resource.

    Returns:
        AccessContext when the household reaches at least required_tier,
        None when the resource is missing or access is insufficient.

    Raises:
        ValueError: Unknown resource type or tier
    """
    if resource_type not in VALID_RESOURCE_TYPES:
        raise ValueError(f"Invalid resource type: {resource_type}")
    if required_tier not in TIER_LEVELS:
        raise ValueError(f"Invalid access tier: {required_tier}")

    can_subscribe = False
    if resource_type == RESOURCE_COLLECTION:
        resource = db.get(Collection, resource_id)
        if resource is None:
            return None
        access_type = _collection_access(db, household_id, resource)
        can_subscribe = access_type == ACCESS_PUBLIC
    elif resource_type == RESOURCE_RECIPE:
        resource = db.get(Recipe, resource_id)
        if resource is None:
            return None
        access_type = _recipe_access(db, household_id, resource)
    else:
        resource = db.get(Ingredient, resource_id)
        if resource is None:
            return None
        access_type = _ingredient_access(db, household_id, resource)

    if access_type is None or ACCESS_LEVELS[access_type] < TIER_LEVELS[required_tier]:
        return None

    return AccessContext(
        tier=required_tier,
        household_id=household_id,
        access_type=access_type,
        can_edit=resource.household_id == household_id,
        can_subscribe=can_subscribe,
    )


def validate_multiple_access_tiers(
    db: Session,
    household_id: UUID,
    resources: Iterable[Tuple[str, UUID]],
    required_tier: str,
) -> Dict[str, Optional[AccessContext]]:
    """Access checks for several resources, keyed "<type>_<id>"."""
    return {
        f"{resource_type}_{resource_id}": validate_access_tier(
            db, household_id, resource_type, resource_id, required_tier
        )
        for resource_type, resource_id in resources
    }


def has_required_access(context: Optional[AccessContext], operation: str) -> bool:
    """
    Whether an access context allows an operation.

    Operations: "view", "edit", "subscribe".
    """
    if context is None:
        return False
    if operation == "view":
        return True
    if operation == "edit":
        return context.can_edit
    if operation == "subscribe":
        return context.can_subscribe
    return False


def can_edit_resource(db: Session, household_id: UUID, resource_type: str, resource_id: UUID) -> bool:
    """Ownership check used before in-place edits."""
    model = {
        RESOURCE_COLLECTION: Collection,
        RESOURCE_RECIPE: Recipe,
        RESOURCE_INGREDIENT: Ingredient,
    }.get(resource_type)
    if model is None:
        raise ValueError(f"Invalid resource type: {resource_type}")
    resource = db.get(model, resource_id)
    return resource is not None and resource.household_id == household_id

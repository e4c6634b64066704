"""
Collection Service
Business logic for collections, their artwork, memberships and subscriptions.

Artwork is stored as "<hash>.jpg" (light) and "<hash>_dark.jpg" (dark); the
collection rows keep the names without extension. Collections without
uploaded artwork use the shared default images, which are never deleted.
"""

import logging
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.core.constants import (
    ACCESS_OWNED,
    COLLECTION_IMAGE_CONTENT_TYPES,
    DEFAULT_COLLECTION_FILENAME,
    DEFAULT_COLLECTION_FILENAME_DARK,
    RESOURCE_COLLECTION,
    RESOURCE_RECIPE,
    TIER_BROWSING,
)
from foodie.core.security import generate_file_hash
from foodie.core.slugs import slugify
from foodie.models import Collection, CollectionRecipe, CollectionSubscription, Recipe
from foodie.services.access_service import (
    get_browsing_collections,
    get_planning_collections,
    recipe_counts,
    serialize_collection,
    validate_access_tier,
)
from foodie.services.recipe_service import serialize_recipe_summary
from foodie.services.storage import delete_file, upload_file


logger = logging.getLogger(__name__)

DEFAULT_FILENAMES = {DEFAULT_COLLECTION_FILENAME, DEFAULT_COLLECTION_FILENAME_DARK}

# (bytes, content type) of an uploaded image
ImageUpload = Tuple[bytes, Optional[str]]


def list_collections(db: Session, household_id: UUID) -> List[dict]:
    return get_planning_collections(db, household_id)


def browse_collections(db: Session, household_id: UUID) -> List[dict]:
    return get_browsing_collections(db, household_id)


def get_collection_detail(db: Session, household_id: UUID, collection_id: UUID) -> dict:
    """
    Collection with its non-archived recipes in display order.

    Raises:
        LookupError: Collection missing or not visible to the household
    """
    context = validate_access_tier(db, household_id, RESOURCE_COLLECTION, collection_id, TIER_BROWSING)
    if context is None:
        raise LookupError("Collection not found")

    collection = db.get(Collection, collection_id)
    recipes = db.query(Recipe).join(
        CollectionRecipe, CollectionRecipe.recipe_id == Recipe.id
    ).filter(
        CollectionRecipe.collection_id == collection.id,
        Recipe.archived.is_(False)
    ).order_by(CollectionRecipe.display_order, Recipe.name).all()

    data = serialize_collection(
        collection,
        access_type=context.access_type,
        can_edit=context.can_edit,
        can_subscribe=context.can_subscribe,
        recipe_count=len(recipes),
    )
    data["recipes"] = [serialize_recipe_summary(r) for r in recipes]
    return data


# ============================================================================
# Artwork
# ============================================================================

def _check_image(image: Optional[ImageUpload]) -> None:
    if image is None:
        return
    data, content_type = image
    if content_type not in COLLECTION_IMAGE_CONTENT_TYPES:
        raise ValueError("Collection images must be JPEG files")
    if not data:
        raise ValueError("Uploaded image is empty")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValueError(f"Image too large (max {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB)")


def _store_image(data: bytes, stem: str) -> str:
    result = upload_file(data, f"{stem}.jpg", "image/jpeg")
    if not result.success:
        raise RuntimeError(f"Image upload failed: {result.error}")
    return stem


def _store_images(seed: str, light: Optional[ImageUpload], dark: Optional[ImageUpload]) -> Tuple[Optional[str], Optional[str]]:
    """Upload light/dark artwork under one new hash. Returns the stored stems."""
    base_hash = generate_file_hash(seed)
    light_stem = _store_image(light[0], base_hash) if light else None
    dark_stem = _store_image(dark[0], f"{base_hash}_dark") if dark else None
    return light_stem, dark_stem


def delete_unused_images(db: Session, stems: Iterable[Optional[str]]) -> None:
    """Delete artwork files no collection refers to any more (defaults are kept)."""
    for stem in {s for s in stems if s and s not in DEFAULT_FILENAMES}:
        in_use = db.query(Collection.id).filter(
            (Collection.filename == stem) | (Collection.filename_dark == stem)
        ).first()
        if in_use is None:
            delete_file(f"{stem}.jpg")


# ============================================================================
# CRUD
# ============================================================================

def _owned_collection(db: Session, household_id: UUID, collection_id: UUID) -> Collection:
    collection = db.get(Collection, collection_id)
    if collection is None:
        raise LookupError("Collection not found")
    if collection.household_id != household_id:
        raise PermissionError("You can only change collections owned by your household")
    return collection


def create_collection(
    db: Session,
    household_id: UUID,
    title: str,
    subtitle: Optional[str] = None,
    light_image: Optional[ImageUpload] = None,
    dark_image: Optional[ImageUpload] = None,
) -> Collection:
    """
    Create a private collection.

    Without artwork the default images are used; without a dark image the
    light one is used for both.

    Raises:
        ValueError: Empty title or non-JPEG image
    """
    title = (title or "").strip()
    if not title:
        raise ValueError("Collection title is required")
    _check_image(light_image)
    _check_image(dark_image)

    light_stem, dark_stem = _store_images(f"{household_id}:{title}", light_image, dark_image)
    filename = light_stem or DEFAULT_COLLECTION_FILENAME
    filename_dark = dark_stem or light_stem or DEFAULT_COLLECTION_FILENAME_DARK

    collection = Collection(
        title=title,
        subtitle=(subtitle or "").strip() or None,
        filename=filename,
        filename_dark=filename_dark,
        url_slug=slugify(title),
        public=False,
        household_id=household_id,
    )
    try:
        db.add(collection)
        db.commit()
    except Exception:
        db.rollback()
        for stem in (light_stem, dark_stem):
            if stem:
                delete_file(f"{stem}.jpg")
        raise

    db.refresh(collection)
    logger.info(f"Created collection {collection.id} for household {household_id}")
    return collection


def update_collection(
    db: Session,
    household_id: UUID,
    collection_id: UUID,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    show_overlay: Optional[bool] = None,
    public: Optional[bool] = None,
    light_image: Optional[ImageUpload] = None,
    dark_image: Optional[ImageUpload] = None,
) -> Collection:
    """
    Update an owned collection. Only given values change.

    Raises:
        LookupError: Collection not found
        PermissionError: Not owned
        ValueError: Empty title or non-JPEG image
    """
    collection = _owned_collection(db, household_id, collection_id)
    _check_image(light_image)
    _check_image(dark_image)

    if title is not None:
        title = title.strip()
        if not title:
            raise ValueError("Collection title cannot be empty")
        collection.title = title
        collection.url_slug = slugify(title)
    if subtitle is not None:
        collection.subtitle = subtitle.strip() or None
    if show_overlay is not None:
        collection.show_overlay = show_overlay
    if public is not None:
        collection.public = public

    old_stems = []
    if light_image or dark_image:
        light_stem, dark_stem = _store_images(str(collection.id), light_image, dark_image)
        if light_stem:
            # A dark image that was only following the light one keeps following it
            follows_light = collection.filename_dark in (collection.filename, DEFAULT_COLLECTION_FILENAME_DARK)
            old_stems.append(collection.filename)
            collection.filename = light_stem
            if not dark_stem and follows_light:
                old_stems.append(collection.filename_dark)
                collection.filename_dark = light_stem
        if dark_stem:
            old_stems.append(collection.filename_dark)
            collection.filename_dark = dark_stem

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    delete_unused_images(db, old_stems)
    db.refresh(collection)
    return collection


def delete_collection(db: Session, household_id: UUID, collection_id: UUID) -> str:
    """
    Delete an empty owned collection and its artwork.

    Raises:
        LookupError: Collection not found
        PermissionError: Not owned
        ValueError: Collection still contains recipes
    """
    collection = _owned_collection(db, household_id, collection_id)
    recipe_count = db.query(CollectionRecipe).filter(
        CollectionRecipe.collection_id == collection.id
    ).count()
    if recipe_count:
        raise ValueError(
            f"Cannot delete a collection that still contains {recipe_count} recipe(s). "
            "Remove the recipes first."
        )

    title = collection.title
    try:
        stems = purge_collection(db, collection)
        db.commit()
    except Exception:
        db.rollback()
        raise

    delete_unused_images(db, stems)
    return title


def purge_collection(db: Session, collection: Collection) -> List[Optional[str]]:
    """
    Delete a collection row with its subscriptions and detach its copies.
    Does not commit. Returns the artwork stems it used.
    """
    stems = [collection.filename, collection.filename_dark]
    db.query(CollectionSubscription).filter(
        CollectionSubscription.collection_id == collection.id
    ).delete(synchronize_session=False)
    db.query(Collection).filter(Collection.parent_id == collection.id).update(
        {Collection.parent_id: None}, synchronize_session=False
    )
    db.delete(collection)
    return stems


# ============================================================================
# Subscriptions
# ============================================================================

def toggle_subscription(db: Session, household_id: UUID, collection_id: UUID) -> dict:
    """
    Subscribe to a public collection, or unsubscribe when already subscribed.

    Raises:
        LookupError: Collection not found
        ValueError: Own or private collection
        FileExistsError: Subscription created concurrently
    """
    collection = db.get(Collection, collection_id)
    if collection is None:
        raise LookupError("Collection not found")

    existing = db.get(CollectionSubscription, (household_id, collection.id))
    if existing is not None:
        db.delete(existing)
        db.commit()
        return {"action": "unsubscribed", "subscribed": False}

    if collection.household_id == household_id:
        raise ValueError("Cannot subscribe to your own collection")
    if not collection.public:
        raise ValueError("Cannot subscribe to private collection")

    try:
        db.add(CollectionSubscription(household_id=household_id, collection_id=collection.id))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise FileExistsError("Subscription changed concurrently, please retry")

    logger.info(f"Household {household_id} subscribed to collection {collection.id}")
    return {"action": "subscribed", "subscribed": True}


# ============================================================================
# Memberships
# ============================================================================

def add_recipes(db: Session, household_id: UUID, collection_id: UUID, recipe_ids: List[UUID]) -> dict:
    """
    Add recipes to an owned collection, skipping ones already present.

    Raises:
        LookupError: Collection not owned, or recipes missing, archived or
            not visible to the household (private to another household)
    """
    collection = db.get(Collection, collection_id)
    if collection is None or collection.household_id != household_id:
        raise LookupError("Collection not found")

    unique_ids = list(dict.fromkeys(recipe_ids))
    found = {
        row.id for row in db.query(Recipe.id).filter(
            Recipe.id.in_(unique_ids),
            Recipe.archived.is_(False)
        )
        if validate_access_tier(db, household_id, RESOURCE_RECIPE, row.id, TIER_BROWSING) is not None
    }
    missing = [str(rid) for rid in unique_ids if rid not in found]
    if missing:
        raise LookupError(f"Recipes not found: {', '.join(missing)}")

    present = {
        row.recipe_id for row in db.query(CollectionRecipe.recipe_id).filter(
            CollectionRecipe.collection_id == collection.id,
            CollectionRecipe.recipe_id.in_(unique_ids)
        )
    }
    added = [rid for rid in unique_ids if rid not in present]
    skipped = [rid for rid in unique_ids if rid in present]

    order = db.query(func.max(CollectionRecipe.display_order)).filter(
        CollectionRecipe.collection_id == collection.id
    ).scalar() or 0
    try:
        for recipe_id in added:
            order += 1
            db.add(CollectionRecipe(collection_id=collection.id, recipe_id=recipe_id, display_order=order))
        db.commit()
    except Exception:
        db.rollback()
        raise

    message = f"Added {len(added)} recipe(s)"
    if skipped:
        message += f", {len(skipped)} already in collection"
    return {"collection_id": collection.id, "added": added, "skipped": skipped, "message": message}


def remove_recipe(db: Session, household_id: UUID, collection_id: UUID, recipe_id: UUID) -> None:
    """
    Raises:
        LookupError: Collection or membership not found
        PermissionError: Not owned
    """
    collection = _owned_collection(db, household_id, collection_id)
    link = db.get(CollectionRecipe, (collection.id, recipe_id))
    if link is None:
        raise LookupError("Recipe is not in this collection")
    db.delete(link)
    db.commit()


def collection_summary(db: Session, collection: Collection) -> dict:
    """Summary of an owned collection right after a write."""
    counts = recipe_counts(db, [collection.id])
    return serialize_collection(collection, ACCESS_OWNED, True, False, counts.get(collection.id, 0))

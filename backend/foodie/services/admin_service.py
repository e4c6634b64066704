"""
Admin Service
User administration, orphaned data cleanup and error log review.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from foodie.core.constants import RESOURCE_COLLECTION, RESOURCE_INGREDIENT, RESOURCE_RECIPE, VALID_RESOURCE_TYPES
from foodie.models import (
    Collection,
    CollectionRecipe,
    ErrorLog,
    Feedback,
    FeedbackResponse,
    HouseholdInvitation,
    Ingredient,
    Plan,
    Recipe,
    RecipeIngredient,
    ShoppingListItem,
    User,
)
from foodie.schemas.admin import AdminUserUpdate
from foodie.services.collection_service import delete_unused_images, purge_collection
from foodie.services.recipe_service import purge_recipe, remove_unused_recipe_files


logger = logging.getLogger(__name__)


# ============================================================================
# Users
# ============================================================================

def get_user_stats(db: Session) -> dict:
    return {
        "total": db.query(func.count(User.id)).scalar() or 0,
        "active": db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
        "admins": db.query(func.count(User.id)).filter(User.is_admin.is_(True)).scalar() or 0,
    }


def list_users(db: Session, include_stats: bool = False) -> dict:
    users = db.query(User).order_by(User.created_at.desc()).all()
    return {"users": users, "stats": get_user_stats(db) if include_stats else None}


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise LookupError("User not found")
    return user


def update_user(db: Session, admin: User, user_id: UUID, data: AdminUserUpdate) -> User:
    """
    Raises:
        LookupError: Unknown user
        ValueError: Empty update, duplicate email, or admin changing
            their own is_admin/is_active
    """
    user = get_user(db, user_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValueError("No fields to update")

    if user.id == admin.id:
        if "is_admin" in changes and changes["is_admin"] != user.is_admin:
            raise ValueError("You cannot change your own admin status")
        if "is_active" in changes and changes["is_active"] != user.is_active:
            raise ValueError("You cannot deactivate your own account")

    if changes.get("email"):
        email = changes["email"].strip().lower()
        taken = db.query(User.id).filter(func.lower(User.email) == email, User.id != user.id).first()
        if taken is not None:
            raise ValueError("Email already registered")
        changes["email"] = email

    for field, value in changes.items():
        if value is None and field in ("email", "is_active", "is_admin"):
            continue
        setattr(user, field, value.strip() if isinstance(value, str) else value)

    db.commit()
    db.refresh(user)
    logger.info(f"Admin {admin.id} updated user {user.id}: {sorted(changes)}")
    return user


def delete_user(db: Session, admin: User, user_id: UUID) -> str:
    """
    Raises:
        LookupError: Unknown user
        ValueError: Admin deleting themself
    """
    user = get_user(db, user_id)
    if user.id == admin.id:
        raise ValueError("You cannot delete your own account")

    email = user.email
    try:
        feedback_ids = select(Feedback.id).where(Feedback.user_id == user.id)
        db.query(FeedbackResponse).filter(FeedbackResponse.feedback_id.in_(feedback_ids)).delete(
            synchronize_session=False
        )
        db.query(Feedback).filter(Feedback.user_id == user.id).delete(synchronize_session=False)
        db.query(Feedback).filter(Feedback.reviewed_by == user.id).update(
            {Feedback.reviewed_by: None}, synchronize_session=False
        )
        db.query(FeedbackResponse).filter(FeedbackResponse.admin_id == user.id).update(
            {FeedbackResponse.admin_id: None}, synchronize_session=False
        )
        db.query(HouseholdInvitation).filter(HouseholdInvitation.invited_by_user_id == user.id).update(
            {HouseholdInvitation.invited_by_user_id: None}, synchronize_session=False
        )
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return email


# ============================================================================
# Orphaned data
# ============================================================================

def _orphaned_collections(db: Session):
    return db.query(Collection).filter(
        ~Collection.id.in_(select(CollectionRecipe.collection_id))
    )


def _orphaned_ingredients(db: Session):
    return db.query(Ingredient).filter(
        ~Ingredient.id.in_(select(RecipeIngredient.ingredient_id))
    )


def _orphaned_recipes(db: Session):
    return db.query(Recipe).filter(
        ~Recipe.id.in_(select(CollectionRecipe.recipe_id)),
        ~Recipe.id.in_(select(Plan.recipe_id))
    )


def list_orphaned(db: Session) -> dict:
    """
    Data nothing refers to:
    - collections without recipes
    - ingredients no recipe uses
    - recipes in no collection and no plan
    """
    collections = [
        {"id": c.id, "name": c.title, "household_id": c.household_id, "created_at": c.created_at}
        for c in _orphaned_collections(db).order_by(Collection.created_at)
    ]
    ingredients = [
        {"id": i.id, "name": i.name, "household_id": i.household_id, "created_at": i.created_at}
        for i in _orphaned_ingredients(db).order_by(Ingredient.name)
    ]
    recipes = [
        {"id": r.id, "name": r.name, "household_id": r.household_id, "created_at": r.created_at}
        for r in _orphaned_recipes(db).order_by(Recipe.created_at)
    ]
    return {
        "collections": collections,
        "ingredients": ingredients,
        "recipes": recipes,
        "total": len(collections) + len(ingredients) + len(recipes),
    }


def delete_orphaned(db: Session, resource_type: str, resource_id: UUID) -> str:
    """
    Delete one orphaned row, checking it is still orphaned.

    Raises:
        ValueError: Invalid type, or the row is in use again
        LookupError: Unknown id
    """
    if resource_type not in VALID_RESOURCE_TYPES:
        raise ValueError(f"Invalid type. Must be one of: {', '.join(VALID_RESOURCE_TYPES)}")

    queries = {
        RESOURCE_COLLECTION: (Collection, _orphaned_collections),
        RESOURCE_INGREDIENT: (Ingredient, _orphaned_ingredients),
        RESOURCE_RECIPE: (Recipe, _orphaned_recipes),
    }
    model, orphaned = queries[resource_type]
    row = db.get(model, resource_id)
    if row is None:
        raise LookupError(f"{resource_type.capitalize()} not found")
    if orphaned(db).filter(model.id == resource_id).first() is None:
        raise ValueError(f"{resource_type.capitalize()} is no longer orphaned")

    stems, files = [], (None, None)
    try:
        if resource_type == RESOURCE_COLLECTION:
            name = row.title
            stems = purge_collection(db, row)
        elif resource_type == RESOURCE_RECIPE:
            name = row.name
            files = (row.image_filename, row.pdf_filename)
            purge_recipe(db, row)
        else:
            name = row.name
            db.query(ShoppingListItem).filter(ShoppingListItem.ingredient_id == row.id).update(
                {ShoppingListItem.ingredient_id: None}, synchronize_session=False
            )
            db.query(Ingredient).filter(Ingredient.parent_id == row.id).update(
                {Ingredient.parent_id: None}, synchronize_session=False
            )
            db.delete(row)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if stems:
        delete_unused_images(db, stems)
    if any(files):
        remove_unused_recipe_files(db, *files)
    logger.info(f"Deleted orphaned {resource_type} {resource_id}")
    return name


# ============================================================================
# Error logs
# ============================================================================

def list_error_logs(
    db: Session,
    severity: Optional[str] = None,
    error_type: Optional[str] = None,
    resolved: Optional[bool] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
) -> dict:
    query = db.query(ErrorLog)
    if severity:
        query = query.filter(ErrorLog.severity == severity)
    if error_type:
        query = query.filter(ErrorLog.error_type == error_type)
    if resolved is not None:
        query = query.filter(ErrorLog.resolved.is_(resolved))
    if start_date:
        query = query.filter(ErrorLog.timestamp >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(ErrorLog.timestamp < datetime.combine(end_date + timedelta(days=1), time.min))

    total = query.count()
    errors = query.order_by(ErrorLog.timestamp.desc()).offset(offset).limit(limit).all()
    return {"errors": errors, "total": total, "limit": limit, "offset": offset}


def get_error_log_stats(db: Session) -> dict:
    by_severity = dict(db.query(ErrorLog.severity, func.count(ErrorLog.id)).group_by(ErrorLog.severity).all())
    by_type = dict(
        db.query(ErrorLog.error_type, func.count(ErrorLog.id))
        .group_by(ErrorLog.error_type)
        .order_by(func.count(ErrorLog.id).desc())
        .limit(20)
        .all()
    )
    return {
        "total": db.query(func.count(ErrorLog.id)).scalar() or 0,
        "unresolved": db.query(func.count(ErrorLog.id)).filter(ErrorLog.resolved.is_(False)).scalar() or 0,
        "by_severity": by_severity,
        "by_type": by_type,
    }


def resolve_error_log(db: Session, admin: User, error_id: UUID, notes: Optional[str] = None) -> ErrorLog:
    entry = db.get(ErrorLog, error_id)
    if entry is None:
        raise LookupError("Error log not found")
    entry.resolved = True
    entry.resolved_at = datetime.now(timezone.utc)
    entry.resolved_by = admin.id
    entry.resolution_notes = notes
    db.commit()
    db.refresh(entry)
    return entry

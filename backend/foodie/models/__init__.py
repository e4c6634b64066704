"""
Database Models Module
Contains SQLAlchemy ORM models for all database tables.

All models must be imported here to be registered with SQLAlchemy
and created during Base.metadata.create_all().
"""

from foodie.db.base import Base
from foodie.models.base import BaseModel
from foodie.models.household import Household
from foodie.models.user import User
from foodie.models.invitation import HouseholdInvitation
from foodie.models.lookup import (
    Season,
    ProteinType,
    CarbType,
    Measurement,
    Preparation,
    SupermarketCategory,
    PantryCategory,
)
from foodie.models.ingredient import Ingredient
from foodie.models.recipe import Recipe, RecipeIngredient
from foodie.models.collection import Collection, CollectionRecipe, CollectionSubscription
from foodie.models.plan import Plan
from foodie.models.shopping_list import ShoppingListItem
from foodie.models.feedback import Feedback, FeedbackResponse
from foodie.models.schema_migration import SchemaMigration
from foodie.models.error_log import ErrorLog

__all__ = [
    "Base",
    "BaseModel",
    "Household",
    "User",
    "HouseholdInvitation",
    "Season",
    "ProteinType",
    "CarbType",
    "Measurement",
    "Preparation",
    "SupermarketCategory",
    "PantryCategory",
    "Ingredient",
    "Recipe",
    "RecipeIngredient",
    "Collection",
    "CollectionRecipe",
    "CollectionSubscription",
    "Plan",
    "ShoppingListItem",
    "Feedback",
    "FeedbackResponse",
    "SchemaMigration",
    "ErrorLog",
]

"""
API v1 Module
Contains all version 1 API endpoints.
"""

from foodie.api.v1 import admin, auth, collections, feedback, households, ingredients, invitations, plans, recipes, shop

__all__ = [
    "admin", "auth", "collections", "feedback", "households",
    "ingredients", "invitations", "plans", "recipes", "shop",
]

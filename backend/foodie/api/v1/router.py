"""
API v1 Main Router
Aggregates all v1 API endpoints into a single router.

Structure:
- /auth/* - Registration, login, session and Google sign-in
- /households/* - Current household
- /invitations/* - Household invitations
- /collections/* - Recipe collections and subscriptions
- /recipes/* - Recipe CRUD, uploads and ingredient lines
- /ingredients/* - Household ingredient catalogue
- /plans/* - Weekly meal plans and the randomizer
- /shop/* - Weekly shopping list
- /feedback/* - User feedback and admin review
- /admin/* - Users, migrations, orphaned data and error logs
"""

from fastapi import APIRouter

from foodie.api.v1 import admin, auth, collections, feedback, households, ingredients, invitations, plans, recipes, shop


# Create main v1 router
# This router will be included in main.py with prefix /api/v1
api_router = APIRouter()


# Include authentication endpoints
# Endpoints: POST /auth/register, /auth/login, /auth/logout, /auth/refresh, /auth/oauth/google
# No authentication required except for /auth/session and /auth/me
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)


# Include household endpoints
# Endpoints: GET/PUT /households/me
api_router.include_router(
    households.router,
    prefix="/households",
    tags=["Households"],
)


# Include invitation endpoints
# Endpoints: GET/POST /invitations, GET /invitations/{token}, POST /invitations/{token}/decline
# Looking up and declining by token works without signing in
api_router.include_router(
    invitations.router,
    prefix="/invitations",
    tags=["Invitations"],
)


# Include collection endpoints
# Endpoints: GET/POST /collections, GET/PUT/DELETE /collections/{id}, subscriptions, membership
api_router.include_router(
    collections.router,
    prefix="/collections",
    tags=["Collections"],
)


# Include recipe endpoints
# Edits to recipes of other households copy them first
api_router.include_router(
    recipes.router,
    prefix="/recipes",
    tags=["Recipes"],
)


# Include ingredient endpoints
# Endpoints: GET/POST /ingredients, GET /ingredients/search, PUT/DELETE /ingredients/{id}
api_router.include_router(
    ingredients.router,
    prefix="/ingredients",
    tags=["Ingredients"],
)


# Include meal plan endpoints
# Endpoints: GET /plans/current, /plans/history, GET/POST/DELETE /plans, POST /plans/randomize
api_router.include_router(
    plans.router,
    prefix="/plans",
    tags=["Plans"],
)


# Include shopping list endpoints
# Endpoints: GET /shop, POST /shop/reset, POST/PUT/DELETE /shop/items
api_router.include_router(
    shop.router,
    prefix="/shop",
    tags=["Shopping"],
)


# Include feedback endpoints
# Submitting is rate limited per user; listing and review are admin only
api_router.include_router(
    feedback.router,
    prefix="/feedback",
    tags=["Feedback"],
)


# Include admin endpoints
# All endpoints require an administrator
api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"],
)

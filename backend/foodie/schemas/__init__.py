"""
Pydantic Schemas Module
Contains request/response schemas for API validation and serialization.

Pydantic schemas are used for:
- Validating incoming request data
- Serializing database models to JSON responses
- Auto-generating OpenAPI documentation
"""

from foodie.schemas.user import (
    UserCreate,
    LoginRequest,
    Token,
    RefreshTokenRequest,
    OAuthCallbackRequest,
    UserResponse,
    SessionResponse,
    TokenPayload,
)
from foodie.schemas.household import (
    HouseholdResponse,
    HouseholdUpdate,
    InvitationCreate,
    InvitationResponse,
    InvitationValidation,
)
from foodie.schemas.collection import (
    CollectionSummary,
    CollectionDetail,
    CollectionListResponse,
    AddRecipesRequest,
)
from foodie.schemas.recipe import (
    RecipeCreate,
    RecipeDetailsUpdate,
    RecipeIngredientsUpdate,
    RecipeSummary,
    RecipeDetail,
    RecipeListResponse,
    RecipeOptions,
)
from foodie.schemas.ingredient import (
    IngredientCreate,
    IngredientUpdate,
    IngredientResponse,
    IngredientListResponse,
)
from foodie.schemas.plan import (
    WeekPlanResponse,
    PlanSaveRequest,
    RandomizeRequest,
    RandomizeResponse,
    PlanHistoryResponse,
)
from foodie.schemas.shopping_list import (
    ShoppingListResponse,
    ShoppingItemCreate,
    ShoppingItemMove,
    ShoppingItemPurchase,
)
from foodie.schemas.feedback import (
    FeedbackCreate,
    FeedbackItem,
    FeedbackListResponse,
    FeedbackUpdate,
    FeedbackRespond,
)

__all__ = [
    # User / auth
    "UserCreate",
    "LoginRequest",
    "Token",
    "RefreshTokenRequest",
    "OAuthCallbackRequest",
    "UserResponse",
    "SessionResponse",
    "TokenPayload",
    # Households
    "HouseholdResponse",
    "HouseholdUpdate",
    "InvitationCreate",
    "InvitationResponse",
    "InvitationValidation",
    # Collections
    "CollectionSummary",
    "CollectionDetail",
    "CollectionListResponse",
    "AddRecipesRequest",
    # Recipes
    "RecipeCreate",
    "RecipeDetailsUpdate",
    "RecipeIngredientsUpdate",
    "RecipeSummary",
    "RecipeDetail",
    "RecipeListResponse",
    "RecipeOptions",
    # Ingredients
    "IngredientCreate",
    "IngredientUpdate",
    "IngredientResponse",
    "IngredientListResponse",
    # Plans
    "WeekPlanResponse",
    "PlanSaveRequest",
    "RandomizeRequest",
    "RandomizeResponse",
    "PlanHistoryResponse",
    # Shopping list
    "ShoppingListResponse",
    "ShoppingItemCreate",
    "ShoppingItemMove",
    "ShoppingItemPurchase",
    # Feedback
    "FeedbackCreate",
    "FeedbackItem",
    "FeedbackListResponse",
    "FeedbackUpdate",
    "FeedbackRespond",
]

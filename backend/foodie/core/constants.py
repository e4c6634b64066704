"""
Application Constants
Defines constant values used throughout the application.

This module contains all application-wide constants including:
- Access tiers and access types
- Plan and shopping list limits
- Feedback categories and statuses
- Default collection artwork and upload content types
"""

# Access Tiers (lowest to highest)
TIER_BROWSING = "browsing"  # Public collections only
TIER_PLANNING = "planning"  # Owned + subscribed collections
TIER_INGREDIENTS = "ingredients"  # Owned resources + essentials

TIER_LEVELS = {
    TIER_BROWSING: 0,
    TIER_PLANNING: 1,
    TIER_INGREDIENTS: 2,
}

# Access Types (how a household reached a resource)
ACCESS_OWNED = "owned"
ACCESS_SUBSCRIBED = "subscribed"
ACCESS_PUBLIC = "public"
ACCESS_ACCESSIBLE = "accessible"  # Recipe or ingredient reachable through an owned/subscribed collection

ACCESS_LEVELS = {
    ACCESS_PUBLIC: 0,
    ACCESS_SUBSCRIBED: 1,
    ACCESS_OWNED: 2,
    ACCESS_ACCESSIBLE: 2,
}

# Resource Types
RESOURCE_COLLECTION = "collection"
RESOURCE_RECIPE = "recipe"
RESOURCE_INGREDIENT = "ingredient"

VALID_RESOURCE_TYPES = [RESOURCE_COLLECTION, RESOURCE_RECIPE, RESOURCE_INGREDIENT]

# Copy-on-write actions reported back to clients
ACTION_COLLECTION_COPIED = "collection_copied"
ACTION_UNSUBSCRIBED = "unsubscribed_from_original"
ACTION_RECIPE_COPIED = "recipe_copied"
ACTION_INGREDIENT_COPIED = "ingredient_copied"

COPY_TITLE_SUFFIX = " (Copy)"

# Plans
WEEK_MIN = 1
WEEK_MAX = 53
YEAR_MIN = 2000
YEAR_MAX = 2100
VALID_SHOP_QTY = [2, 4]  # Serving sizes a recipe can be shopped for
DEFAULT_SHOP_QTY = 2
DEFAULT_RANDOMIZE_COUNT = 4
PLAN_HISTORY_MONTHS = 6

# Feedback
FEEDBACK_CATEGORY_BUG = "bug"
FEEDBACK_CATEGORY_FEATURE = "feature_request"
FEEDBACK_CATEGORY_GENERAL = "general"
FEEDBACK_CATEGORY_PRAISE = "praise"

VALID_FEEDBACK_CATEGORIES = [
    FEEDBACK_CATEGORY_BUG,
    FEEDBACK_CATEGORY_FEATURE,
    FEEDBACK_CATEGORY_GENERAL,
    FEEDBACK_CATEGORY_PRAISE,
]

FEEDBACK_STATUS_NEW = "new"
FEEDBACK_STATUS_REVIEWED = "reviewed"
FEEDBACK_STATUS_ACTIONED = "actioned"
FEEDBACK_STATUS_CLOSED = "closed"

VALID_FEEDBACK_STATUSES = [
    FEEDBACK_STATUS_NEW,
    FEEDBACK_STATUS_REVIEWED,
    FEEDBACK_STATUS_ACTIONED,
    FEEDBACK_STATUS_CLOSED,
]

FEEDBACK_MESSAGE_MAX_LENGTH = 5000

# Collections
DEFAULT_COLLECTION_FILENAME = "custom_collection_004"
DEFAULT_COLLECTION_FILENAME_DARK = "custom_collection_004_dark"
UNTITLED_SLUG = "untitled"

# Uploads
IMAGE_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
PDF_SOURCE_CONTENT_TYPES = ["application/pdf", "image/jpeg"]
COLLECTION_IMAGE_CONTENT_TYPES = ["image/jpeg"]

FILE_TYPE_EXTENSIONS = {
    "image": ["jpg", "jpeg", "png", "webp"],
    "pdf": ["pdf"],
}

# Pagination
DEFAULT_PAGE_SIZE = 50  # Default number of items per page
MAX_PAGE_SIZE = 200  # Maximum items per page

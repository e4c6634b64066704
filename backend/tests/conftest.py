"""
Pytest configuration and shared fixtures.

The app is pointed at a throwaway SQLite database and static directory
before anything from foodie is imported. Tables are recreated for every test.
"""

import os
import shutil
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="foodie-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["STATIC_DIR"] = os.path.join(_TEST_DIR, "static")
os.environ["LOGS_DIR"] = os.path.join(_TEST_DIR, "logs")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["ENVIRONMENT"] = "development"
os.environ["FEEDBACK_RATE_LIMIT_SECONDS"] = "5"
os.environ.pop("ESSENTIALS_COLLECTION_ID", None)

import pytest
from fastapi.testclient import TestClient

from foodie.core.security import hash_password
from foodie.db.session import SessionLocal, engine
from foodie.main import app
from foodie.models import (
    Base,
    CarbType,
    Collection,
    CollectionRecipe,
    CollectionSubscription,
    Household,
    Ingredient,
    ProteinType,
    Recipe,
    RecipeIngredient,
    User,
)
from foodie.services.auth_service import create_access_token


TEST_PASSWORD = "password123"


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    shutil.rmtree(_TEST_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    """
    Fresh database session for each test.

    Usage in tests:
        def test_something(db, household):
            db.query(Recipe).filter(...)
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


# ============================================================================
# Factories
# ============================================================================

@pytest.fixture
def make_household(db):
    def _make(name="Test Household"):
        household = Household(name=name)
        db.add(household)
        db.commit()
        return household
    return _make


@pytest.fixture
def make_user(db):
    def _make(household, email, is_admin=False, is_active=True):
        user = User(
            email=email,
            password_hash=hash_password(TEST_PASSWORD),
            first_name=email.split("@")[0].title(),
            household_id=household.id,
            is_admin=is_admin,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def make_collection(db):
    def _make(household, title="Weeknight Dinners", public=False):
        collection = Collection(
            title=title,
            url_slug=title.lower().replace(" ", "-"),
            public=public,
            household_id=household.id,
        )
        db.add(collection)
        db.commit()
        return collection
    return _make


@pytest.fixture
def make_ingredient(db):
    def _make(household, name, fresh=True, cost=1.0):
        ingredient = Ingredient(name=name, fresh=fresh, cost=cost, household_id=household.id)
        db.add(ingredient)
        db.commit()
        return ingredient
    return _make


@pytest.fixture
def make_recipe(db):
    """
    Create a recipe, optionally inside collections and with ingredient lines.

    lines: list of (ingredient, quantity, quantity4)
    """
    def _make(household, name, collections=(), lines=(), protein=None, carb=None, shop_qty=2):
        recipe = Recipe(name=name, household_id=household.id, shop_qty=shop_qty)
        if protein:
            recipe.primary_type = db.query(ProteinType).filter_by(name=protein).first() or ProteinType(name=protein)
        if carb:
            recipe.secondary_type = db.query(CarbType).filter_by(name=carb).first() or CarbType(name=carb)
        db.add(recipe)
        db.flush()
        for order, collection in enumerate(collections):
            db.add(CollectionRecipe(collection_id=collection.id, recipe_id=recipe.id, display_order=order))
        for ingredient, quantity, quantity4 in lines:
            db.add(RecipeIngredient(
                recipe_id=recipe.id,
                ingredient_id=ingredient.id,
                quantity=quantity,
                quantity4=quantity4,
            ))
        db.commit()
        return recipe
    return _make


@pytest.fixture
def subscribe(db):
    def _subscribe(household, collection):
        db.add(CollectionSubscription(household_id=household.id, collection_id=collection.id))
        db.commit()
    return _subscribe


# ============================================================================
# Common actors
# ============================================================================

@pytest.fixture
def household(make_household):
    return make_household("Smith Family")


@pytest.fixture
def other_household(make_household):
    return make_household("Jones Family")


@pytest.fixture
def user(make_user, household):
    return make_user(household, "sam@example.com")


@pytest.fixture
def admin_user(make_user, household):
    return make_user(household, "admin@example.com", is_admin=True)


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers

"""Tests for the three access tiers."""

from unittest.mock import patch

import pytest

from foodie.core.constants import (
    ACCESS_ACCESSIBLE,
    ACCESS_OWNED,
    ACCESS_PUBLIC,
    ACCESS_SUBSCRIBED,
    TIER_BROWSING,
    TIER_INGREDIENTS,
    TIER_PLANNING,
)
from foodie.models import CollectionRecipe
from foodie.services import access_service


@pytest.fixture
def shared(household, other_household, make_collection, make_ingredient, make_recipe):
    """Another household's public collection with one recipe and ingredient."""
    collection = make_collection(other_household, "Jones Favourites", public=True)
    private = make_collection(other_household, "Jones Secrets", public=False)
    ingredient = make_ingredient(other_household, "Saffron")
    recipe = make_recipe(other_household, "Paella", collections=[collection], lines=[(ingredient, "1", "2")])
    secret = make_recipe(other_household, "Secret Stew", collections=[private])
    return {"collection": collection, "private": private, "ingredient": ingredient,
            "recipe": recipe, "secret": secret}


def test_browsing_lists_public_collections_only(db, household, shared, make_collection):
    own_public = make_collection(household, "Smith Classics", public=True)
    make_collection(household, "Smith Private")

    collections = access_service.get_browsing_collections(db, household.id)

    by_title = {c["title"]: c for c in collections}
    assert set(by_title) == {"Jones Favourites", "Smith Classics"}
    assert by_title["Jones Favourites"]["access_type"] == ACCESS_PUBLIC
    assert by_title["Jones Favourites"]["can_subscribe"] is True
    assert by_title["Jones Favourites"]["recipe_count"] == 1
    assert by_title["Smith Classics"]["access_type"] == ACCESS_OWNED
    assert by_title["Smith Classics"]["can_subscribe"] is False
    assert by_title["Smith Classics"]["id"] == own_public.id


def test_planning_lists_owned_then_subscribed(db, household, shared, make_collection, subscribe):
    make_collection(household, "Zucchini Ideas")
    subscribe(household, shared["collection"])

    collections = access_service.get_planning_collections(db, household.id)

    assert [(c["title"], c["access_type"]) for c in collections] == [
        ("Zucchini Ideas", ACCESS_OWNED),
        ("Jones Favourites", ACCESS_SUBSCRIBED),
    ]
    assert collections[1]["can_edit"] is False


def test_planning_recipes_need_ownership_or_subscription(db, household, shared, subscribe):
    query = access_service.planning_recipes_query(db, household.id)
    assert query.count() == 0

    subscribe(household, shared["collection"])
    names = {r.name for r in access_service.planning_recipes_query(db, household.id)}
    assert names == {"Paella"}


def test_archived_recipes_are_not_plannable(db, household, make_collection, make_recipe):
    collection = make_collection(household)
    recipe = make_recipe(household, "Old Favourite", collections=[collection])
    recipe.archived = True
    db.commit()

    assert access_service.planning_recipes_query(db, household.id).count() == 0


def test_ingredients_reachable_through_subscriptions(db, household, shared, make_ingredient, subscribe):
    own = make_ingredient(household, "Onion")
    assert {i.name for i in access_service.get_accessible_ingredients(db, household.id)} == {"Onion"}

    subscribe(household, shared["collection"])
    ingredients = access_service.get_accessible_ingredients(db, household.id)
    # Owned ingredients sort first
    assert [i.id for i in ingredients] == [own.id, shared["ingredient"].id]


def test_ingredients_reachable_through_essentials(db, household, shared):
    with patch.object(access_service.settings, "ESSENTIALS_COLLECTION_ID", str(shared["private"].id)):
        assert access_service.get_accessible_ingredients(db, household.id) == []

    with patch.object(access_service.settings, "ESSENTIALS_COLLECTION_ID", str(shared["collection"].id)):
        ids = [i.id for i in access_service.get_accessible_ingredients(db, household.id)]
        assert ids == [shared["ingredient"].id]
        context = access_service.validate_access_tier(
            db, household.id, "ingredient", shared["ingredient"].id, TIER_INGREDIENTS
        )
        assert context.access_type == ACCESS_ACCESSIBLE
        assert context.can_edit is False


def test_malformed_essentials_id_is_ignored(household):
    with patch.object(access_service.settings, "ESSENTIALS_COLLECTION_ID", "not-a-uuid"):
        assert access_service.essentials_collection_id() is None


def test_copied_originals_are_hidden(db, household, shared, subscribe, make_ingredient):
    subscribe(household, shared["collection"])
    copy = make_ingredient(household, "Saffron")
    copy.parent_id = shared["ingredient"].id
    db.commit()

    ids = [i.id for i in access_service.get_accessible_ingredients(db, household.id)]
    assert ids == [copy.id]


# ============================================================================
# Single resource checks
# ============================================================================

def test_public_collection_is_browsable_but_not_plannable(db, household, shared):
    collection_id = shared["collection"].id
    context = access_service.validate_access_tier(db, household.id, "collection", collection_id, TIER_BROWSING)
    assert context.access_type == ACCESS_PUBLIC
    assert context.can_subscribe is True
    assert access_service.validate_access_tier(db, household.id, "collection", collection_id, TIER_PLANNING) is None


def test_subscription_grants_planning(db, household, shared, subscribe):
    subscribe(household, shared["collection"])
    context = access_service.validate_access_tier(
        db, household.id, "recipe", shared["recipe"].id, TIER_PLANNING
    )
    assert context.access_type == ACCESS_ACCESSIBLE
    assert context.can_edit is False
    assert access_service.has_required_access(context, "view") is True
    assert access_service.has_required_access(context, "edit") is False
    assert access_service.has_required_access(context, "subscribe") is False


def test_foreign_recipe_in_own_collection_is_accessible_not_owned(db, household, shared, make_collection):
    own = make_collection(household, "Borrowed Dinners")
    db.add(CollectionRecipe(collection_id=own.id, recipe_id=shared["recipe"].id))
    db.commit()

    context = access_service.validate_access_tier(
        db, household.id, "recipe", shared["recipe"].id, TIER_BROWSING
    )

    assert context.access_type == ACCESS_ACCESSIBLE
    assert context.can_edit is False
    assert access_service.has_required_access(context, "edit") is False
    assert access_service.can_edit_resource(db, household.id, "recipe", shared["recipe"].id) is False


def test_private_resources_are_invisible(db, household, shared):
    assert access_service.validate_access_tier(
        db, household.id, "collection", shared["private"].id, TIER_BROWSING
    ) is None
    assert access_service.validate_access_tier(
        db, household.id, "recipe", shared["secret"].id, TIER_BROWSING
    ) is None


def test_owned_resources_allow_everything(db, household, make_collection):
    collection = make_collection(household)
    context = access_service.validate_access_tier(db, household.id, "collection", collection.id, TIER_INGREDIENTS)
    assert context.access_type == ACCESS_OWNED
    assert access_service.has_required_access(context, "edit") is True
    assert access_service.can_edit_resource(db, household.id, "collection", collection.id) is True


def test_missing_context_allows_nothing():
    assert access_service.has_required_access(None, "view") is False


def test_invalid_type_or_tier(db, household, shared):
    with pytest.raises(ValueError):
        access_service.validate_access_tier(db, household.id, "plan", shared["recipe"].id, TIER_BROWSING)
    with pytest.raises(ValueError):
        access_service.validate_access_tier(db, household.id, "recipe", shared["recipe"].id, "admin")
    with pytest.raises(ValueError):
        access_service.can_edit_resource(db, household.id, "plan", shared["recipe"].id)


def test_multiple_checks_are_keyed_by_type_and_id(db, household, shared):
    results = access_service.validate_multiple_access_tiers(
        db, household.id,
        [("collection", shared["collection"].id), ("collection", shared["private"].id)],
        TIER_BROWSING,
    )
    assert results[f"collection_{shared['collection'].id}"].access_type == ACCESS_PUBLIC
    assert results[f"collection_{shared['private'].id}"] is None

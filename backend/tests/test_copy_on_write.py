"""Tests for copy-on-write editing of shared recipes, ingredients and collections."""

import pytest

from foodie.core.constants import (
    ACTION_COLLECTION_COPIED,
    ACTION_INGREDIENT_COPIED,
    ACTION_RECIPE_COPIED,
    ACTION_UNSUBSCRIBED,
)
from foodie.models import (
    Collection,
    CollectionRecipe,
    CollectionSubscription,
    Ingredient,
    Recipe,
    RecipeIngredient,
    ShoppingListItem,
)
from foodie.services import copy_on_write


@pytest.fixture
def shared(other_household, make_collection, make_ingredient, make_recipe):
    collection = make_collection(other_household, "Jones Favourites", public=True)
    ingredient = make_ingredient(other_household, "Chorizo", cost=4.5)
    recipe = make_recipe(other_household, "Paella", collections=[collection], lines=[(ingredient, "100", "200")])
    return {"collection": collection, "ingredient": ingredient, "recipe": recipe}


def test_owned_recipe_is_not_copied(db, household, make_recipe):
    recipe = make_recipe(household, "Tacos")
    result = copy_on_write.copy_recipe_for_edit(db, recipe.id, household.id)
    assert result.copied is False
    assert result.new_id == recipe.id


def test_foreign_recipe_is_copied_with_lines(db, household, shared, make_collection):
    own = make_collection(household, "Mine")
    db.add(CollectionRecipe(collection_id=own.id, recipe_id=shared["recipe"].id))
    db.commit()

    result = copy_on_write.copy_recipe_for_edit(db, shared["recipe"].id, household.id)

    assert result.copied is True
    copy = db.get(Recipe, result.new_id)
    assert copy.household_id == household.id
    assert copy.parent_id == shared["recipe"].id
    assert copy.public is False
    lines = db.query(RecipeIngredient).filter_by(recipe_id=copy.id).all()
    assert [(line.ingredient_id, line.quantity, line.quantity4) for line in lines] == [
        (shared["ingredient"].id, "100", "200")
    ]
    # The household's own collection now points at the copy
    assert db.get(CollectionRecipe, (own.id, copy.id)) is not None
    assert db.get(CollectionRecipe, (own.id, shared["recipe"].id)) is None
    # The original is untouched
    assert db.get(CollectionRecipe, (shared["collection"].id, shared["recipe"].id)) is not None


def test_foreign_ingredient_is_copied_and_household_lines_repointed(db, household, shared, make_recipe):
    own_recipe = make_recipe(household, "Rice Bowl", lines=[(shared["ingredient"], "50", "100")])

    result = copy_on_write.copy_ingredient_for_edit(db, shared["ingredient"].id, household.id)

    assert result.copied is True
    copy = db.get(Ingredient, result.new_id)
    assert (copy.name, copy.cost, copy.parent_id) == ("Chorizo", 4.5, shared["ingredient"].id)
    own_line = db.query(RecipeIngredient).filter_by(recipe_id=own_recipe.id).one()
    assert own_line.ingredient_id == copy.id
    foreign_line = db.query(RecipeIngredient).filter_by(recipe_id=shared["recipe"].id).one()
    assert foreign_line.ingredient_id == shared["ingredient"].id


def test_missing_resources_raise_lookup_error(db, household):
    import uuid
    with pytest.raises(LookupError):
        copy_on_write.copy_recipe_for_edit(db, uuid.uuid4(), household.id)
    with pytest.raises(LookupError):
        copy_on_write.copy_ingredient_for_edit(db, uuid.uuid4(), household.id)


def test_cascade_copies_collection_and_recipe_and_unsubscribes(db, household, shared, subscribe):
    subscribe(household, shared["collection"])

    result = copy_on_write.cascade_copy_with_context(
        db, household.id, shared["collection"].id, shared["recipe"].id
    )

    assert result.actions_taken == [ACTION_COLLECTION_COPIED, ACTION_UNSUBSCRIBED, ACTION_RECIPE_COPIED]
    new_collection = db.get(Collection, result.new_collection_id)
    assert new_collection.title == "Jones Favourites (Copy)"
    assert new_collection.household_id == household.id
    assert new_collection.public is False
    assert new_collection.parent_id == shared["collection"].id
    assert db.get(CollectionRecipe, (new_collection.id, result.new_recipe_id)) is not None
    assert db.get(CollectionSubscription, (household.id, shared["collection"].id)) is None


def test_cascade_in_owned_collection_only_copies_recipe(db, household, shared, make_collection):
    own = make_collection(household, "Mine")
    db.add(CollectionRecipe(collection_id=own.id, recipe_id=shared["recipe"].id))
    db.commit()

    result = copy_on_write.cascade_copy_with_context(db, household.id, own.id, shared["recipe"].id)

    assert result.actions_taken == [ACTION_RECIPE_COPIED]
    assert result.new_collection_id == own.id
    assert db.get(CollectionRecipe, (own.id, result.new_recipe_id)) is not None
    assert db.get(CollectionRecipe, (own.id, shared["recipe"].id)) is None


def test_cascade_with_everything_owned_does_nothing(db, household, make_collection, make_recipe):
    own = make_collection(household, "Mine")
    recipe = make_recipe(household, "Tacos", collections=[own])

    result = copy_on_write.cascade_copy_with_context(db, household.id, own.id, recipe.id)

    assert result.actions_taken == []
    assert (result.new_collection_id, result.new_recipe_id) == (own.id, recipe.id)


def test_cascade_requires_membership(db, household, shared, make_collection):
    own = make_collection(household, "Mine")
    with pytest.raises(ValueError):
        copy_on_write.cascade_copy_with_context(db, household.id, own.id, shared["recipe"].id)


def test_cascade_ingredient_copies_everything_needed(db, household, shared):
    result = copy_on_write.cascade_copy_ingredient_with_context(
        db, household.id, shared["collection"].id, shared["recipe"].id, shared["ingredient"].id
    )

    assert result.actions_taken == [ACTION_COLLECTION_COPIED, ACTION_RECIPE_COPIED, ACTION_INGREDIENT_COPIED]
    line = db.query(RecipeIngredient).filter_by(recipe_id=result.new_recipe_id).one()
    assert line.ingredient_id == result.new_ingredient_id
    assert db.get(Ingredient, result.new_ingredient_id).household_id == household.id


def test_cleanup_removes_only_unused_owned_ingredients(db, household, make_ingredient, make_recipe):
    kept = make_ingredient(household, "Garlic")
    dropped = make_ingredient(household, "Lemongrass")
    kept_id, dropped_id = kept.id, dropped.id
    recipe = make_recipe(household, "Curry", lines=[(kept, "2", "4"), (dropped, "1", "2")])
    make_recipe(household, "Garlic Bread", lines=[(kept, "3", "6")])

    removed = copy_on_write.perform_cleanup_after_recipe_delete(db, household.id, recipe.id)
    db.commit()

    assert removed == 1
    assert db.get(Ingredient, kept_id) is not None
    assert db.get(Ingredient, dropped_id) is None


def test_cleanup_only_considers_listed_ingredients(db, household, other_household, make_ingredient):
    ids = {
        "unused": make_ingredient(household, "Saffron").id,
        "shopping": make_ingredient(household, "Paprika").id,
        "untouched": make_ingredient(household, "Cumin").id,
        "foreign": make_ingredient(other_household, "Chorizo").id,
    }
    db.add(ShoppingListItem(household_id=household.id, week=9, year=2025, name="Paprika", ingredient_id=ids["shopping"]))
    db.commit()

    removed = copy_on_write.cleanup_orphaned_ingredients(
        db, household.id, [ids["unused"], ids["shopping"], ids["foreign"]]
    )
    db.commit()

    assert removed == 1
    assert db.get(Ingredient, ids["unused"]) is None
    assert all(db.get(Ingredient, ids[k]) is not None for k in ("shopping", "untouched", "foreign"))
    assert copy_on_write.cleanup_orphaned_ingredients(db, household.id, []) == 0

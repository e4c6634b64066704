"""Tests for shopping list generation and editing."""

import pytest

from foodie.models import ShoppingListItem
from foodie.services import plan_service, shopping_service


# ============================================================================
# Quantities
# ============================================================================

@pytest.mark.parametrize("value,expected", [
    (["1", "2"], "3"),
    (["1/2", "1 1/2"], "2"),
    (["0.5", "0.25"], "0.75"),
    (["2", "a pinch"], "2 + a pinch"),
    ([None, " "], None),
])
def test_combine_quantities(value, expected):
    assert shopping_service.combine_quantities(value) == expected


def test_parse_quantity_rejects_text():
    assert shopping_service.parse_quantity("some") is None
    assert shopping_service.parse_quantity("1/0") is None


# ============================================================================
# Lists
# ============================================================================

@pytest.fixture
def planned_week(db, household, make_collection, make_ingredient, make_recipe):
    collection = make_collection(household)
    onion = make_ingredient(household, "Onion", fresh=True, cost=0.5)
    rice = make_ingredient(household, "Rice", fresh=False, cost=2.0)
    carrot = make_ingredient(household, "Carrot", fresh=True, cost=0.3)
    curry = make_recipe(household, "Curry", collections=[collection],
                        lines=[(onion, "1", "2"), (rice, "200", "400")])
    soup = make_recipe(household, "Soup", collections=[collection],
                       lines=[(onion, "2", "4"), (carrot, "3", "6")], shop_qty=4)
    plan_service.save_week_plan(db, household.id, 10, 2025, [curry.id, soup.id])
    return {"onion": onion, "rice": rice, "carrot": carrot, "curry": curry, "soup": soup}


def test_reset_builds_lines_from_plan(db, household, planned_week):
    created = shopping_service.reset_shopping_list(db, household.id, 10, 2025)
    assert created == 4

    result = shopping_service.get_shopping_list(db, household.id, 10, 2025)

    fresh = {line["name"]: line for line in result["fresh"]}
    assert set(fresh) == {"Onion", "Carrot"}
    # Curry shops for 2 (1 onion), soup for 4 (4 onions)
    assert fresh["Onion"]["quantity"] == "5"
    assert len(fresh["Onion"]["ids"]) == 2
    assert fresh["Carrot"]["quantity"] == "6"
    assert [line["name"] for line in result["pantry"]] == ["Rice"]
    assert result["pantry"][0]["quantity"] == "200"
    assert result["total_cost"] == pytest.approx(3.3)


def test_reset_replaces_hand_added_items(db, household, planned_week):
    shopping_service.add_item(db, household.id, 10, 2025, name="Birthday candles")
    shopping_service.reset_shopping_list(db, household.id, 10, 2025)

    names = {i.name for i in db.query(ShoppingListItem).filter_by(household_id=household.id)}
    assert "Birthday candles" not in names


def test_add_item_goes_to_end_of_fresh_list(db, household, planned_week):
    shopping_service.reset_shopping_list(db, household.id, 10, 2025)
    item = shopping_service.add_item(db, household.id, 10, 2025, name="Milk")
    assert item.fresh is True
    assert item.sort == 3


def test_add_item_requires_name_or_ingredient(db, household):
    with pytest.raises(ValueError):
        shopping_service.add_item(db, household.id, 10, 2025, name="  ")


def test_add_item_from_unreachable_ingredient(db, household, other_household, make_ingredient):
    foreign = make_ingredient(other_household, "Truffle")
    with pytest.raises(LookupError):
        shopping_service.add_item(db, household.id, 10, 2025, ingredient_id=foreign.id)


def test_move_item_between_lists_renumbers_both(db, household):
    items = [shopping_service.add_item(db, household.id, 10, 2025, name=n) for n in ("A", "B", "C")]

    shopping_service.move_item(db, household.id, items[0].id, fresh=False, sort=5, week=10, year=2025)

    rows = db.query(ShoppingListItem).filter_by(household_id=household.id).all()
    lists = {(i.fresh, i.sort): i.name for i in rows}
    assert lists == {(True, 0): "B", (True, 1): "C", (False, 0): "A"}


def test_move_item_within_list(db, household):
    items = [shopping_service.add_item(db, household.id, 10, 2025, name=n) for n in ("A", "B", "C")]

    shopping_service.move_item(db, household.id, items[2].id, fresh=True, sort=0, week=10, year=2025)

    order = [i.name for i in db.query(ShoppingListItem).order_by(ShoppingListItem.sort)]
    assert order == ["C", "A", "B"]


def test_purchase_and_remove(db, household, other_household):
    item = shopping_service.add_item(db, household.id, 10, 2025, name="Bread")
    assert shopping_service.set_purchased(db, household.id, item.id, True).purchased is True

    with pytest.raises(LookupError):
        shopping_service.remove_item(db, other_household.id, item.id)
    shopping_service.remove_item(db, household.id, item.id)
    assert db.query(ShoppingListItem).count() == 0

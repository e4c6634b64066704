"""API tests for collections, recipes, ingredient search and the weekly flow."""

import io
import os

import pytest
from PIL import Image
from sqlalchemy.exc import OperationalError

from foodie.core.config import settings
from foodie.models import Collection, CollectionRecipe, Plan, Recipe, ShoppingListItem
from foodie.services import recipe_service


API = "/api/v1"


def _jpeg(color="red"):
    buffer = io.BytesIO()
    Image.new("RGB", (32, 24), color).save(buffer, "JPEG")
    return buffer.getvalue()


@pytest.fixture
def headers(user, auth_headers):
    return auth_headers(user)


@pytest.fixture
def shared(other_household, make_collection, make_ingredient, make_recipe):
    """A public collection of another household with one recipe."""
    collection = make_collection(other_household, "Jones Classics", public=True)
    beef = make_ingredient(other_household, "Beef Mince", fresh=True, cost=4.0)
    recipe = make_recipe(other_household, "Lasagne", collections=[collection], lines=[(beef, "500", "1000")])
    return {"collection": collection, "recipe": recipe, "ingredient": beef}


# ============================================================================
# Collections
# ============================================================================

def test_create_collection_with_artwork(client, headers):
    response = client.post(
        f"{API}/collections",
        data={"title": "  Soups  ", "subtitle": "Winter warmers"},
        files={"image": ("soup.jpg", _jpeg(), "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Soups"
    assert body["access_type"] == "owned"
    # Without dark artwork the light image is used for both themes
    assert body["filename_dark"] == body["filename"]
    assert os.path.exists(os.path.join(settings.STATIC_DIR, f"{body['filename']}.jpg"))


def test_create_collection_rejects_non_jpeg(client, headers):
    response = client.post(
        f"{API}/collections",
        data={"title": "Soups"},
        files={"image": ("soup.png", b"\x89PNG not really", "image/png")},
        headers=headers,
    )
    assert response.status_code == 400


def test_collections_require_authentication(client):
    assert client.get(f"{API}/collections").status_code == 401


def test_subscription_toggle(client, headers, shared):
    url = f"{API}/collections/{shared['collection'].id}/subscribe"

    first = client.post(url, headers=headers)
    assert first.status_code == 200
    assert first.json() == {"success": True, "action": "subscribed", "subscribed": True}

    listed = client.get(f"{API}/collections", headers=headers).json()
    assert [c["access_type"] for c in listed["collections"]] == ["subscribed"]

    second = client.post(url, headers=headers)
    assert second.json()["action"] == "unsubscribed"


def test_cannot_subscribe_to_own_or_private_collection(client, headers, household, other_household, make_collection):
    own = make_collection(household, "Ours", public=True)
    private = make_collection(other_household, "Secret", public=False)

    assert client.post(f"{API}/collections/{own.id}/subscribe", headers=headers).status_code == 400
    assert client.post(f"{API}/collections/{private.id}/subscribe", headers=headers).status_code == 400


def test_delete_collection_with_recipes_is_refused(client, headers, household, make_collection, make_recipe):
    collection = make_collection(household, "Full")
    make_recipe(household, "Porridge", collections=[collection])

    response = client.delete(f"{API}/collections/{collection.id}", headers=headers)
    assert response.status_code == 400


def test_delete_foreign_collection_is_forbidden(client, headers, shared):
    response = client.delete(f"{API}/collections/{shared['collection'].id}", headers=headers)
    assert response.status_code == 403


def test_add_public_recipe_to_own_collection(client, db, headers, household, make_collection, shared):
    own = make_collection(household, "Favourites")
    recipe_id = shared["recipe"].id

    response = client.post(f"{API}/collections/{own.id}/recipes", json={"recipe_ids": [str(recipe_id)]}, headers=headers)

    assert response.status_code == 200
    assert response.json()["added"] == [str(recipe_id)]
    assert db.get(CollectionRecipe, (own.id, recipe_id)) is not None


def test_cannot_add_private_recipe_of_another_household(client, db, headers, household, other_household,
                                                        make_collection, make_recipe):
    own = make_collection(household, "Favourites")
    secret_id = make_recipe(other_household, "Secret Stew").id

    response = client.post(f"{API}/collections/{own.id}/recipes", json={"recipe_ids": [str(secret_id)]}, headers=headers)

    assert response.status_code == 404
    assert str(secret_id) in response.json()["detail"]
    assert db.query(CollectionRecipe).filter_by(collection_id=own.id).count() == 0
    assert client.get(f"{API}/recipes/{secret_id}", headers=headers).status_code == 404


# ============================================================================
# Recipes
# ============================================================================

def test_create_recipe_in_owned_collection(client, headers, household, make_collection, make_ingredient):
    collection = make_collection(household)
    onion = make_ingredient(household, "Onion")

    response = client.post(f"{API}/recipes", json={
        "collection_id": str(collection.id),
        "name": " Onion Soup ",
        "prep_time": 10,
        "ingredients": [{"ingredient_id": str(onion.id), "quantity": "2", "quantity4": "4"}],
    }, headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Onion Soup"
    assert body["can_edit"] is True
    assert [(line["name"], line["quantity"], line["quantity4"]) for line in body["ingredients"]] == [
        ("Onion", "2", "4")
    ]


def test_create_recipe_in_foreign_collection_is_refused(client, headers, shared):
    response = client.post(f"{API}/recipes", json={
        "collection_id": str(shared["collection"].id),
        "name": "Sneaky",
    }, headers=headers)
    assert response.status_code in (403, 404)


def test_get_private_recipe_of_another_household_is_not_found(client, headers, other_household, make_recipe):
    stew = make_recipe(other_household, "Secret Stew")
    response = client.get(f"{API}/recipes/{stew.id}", headers=headers)
    assert response.status_code == 404


def test_editing_subscribed_recipe_copies_it(client, db, headers, household, shared, subscribe):
    subscribe(household, shared["collection"])

    response = client.put(f"{API}/recipes/{shared['recipe'].id}", json={
        "name": "Our Lasagne",
        "collection_id": str(shared["collection"].id),
    }, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["copied"] is True
    assert body["recipe_id"] != str(shared["recipe"].id)
    db.expire_all()
    assert db.get(Recipe, shared["recipe"].id).name == "Lasagne"
    copy = db.query(Recipe).filter(Recipe.name == "Our Lasagne").one()
    assert copy.household_id == household.id
    assert copy.parent_id == shared["recipe"].id


def test_upload_recipe_image(client, db, headers, household, make_recipe):
    recipe = make_recipe(household, "Pancakes")

    response = client.post(
        f"{API}/recipes/{recipe.id}/image",
        files={"file": ("pancakes.jpg", _jpeg("yellow"), "image/jpeg")},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["filename"].endswith(".jpg")
    assert body["actions_taken"] == []
    db.expire_all()
    assert db.get(Recipe, recipe.id).image_filename == body["filename"]


def test_replacing_image_bumps_version_and_removes_old_file(client, headers, household, make_recipe):
    recipe = make_recipe(household, "Pancakes")
    url = f"{API}/recipes/{recipe.id}/image"

    first = client.post(url, files={"file": ("a.jpg", _jpeg("yellow"), "image/jpeg")}, headers=headers)
    second = client.post(url, files={"file": ("b.jpg", _jpeg("orange"), "image/jpeg")}, headers=headers)

    assert first.status_code == second.status_code == 200
    first_name, second_name = first.json()["filename"], second.json()["filename"]
    base_hash = first_name.rsplit(".", 1)[0]
    assert second_name == f"{base_hash}_v2.jpg"
    assert not os.path.exists(os.path.join(settings.STATIC_DIR, first_name))
    assert os.path.exists(os.path.join(settings.STATIC_DIR, second_name))


def test_image_upload_on_copy_gets_own_file(client, db, headers, household, other_household, shared, subscribe):
    original_id = shared["recipe"].id
    original_name = recipe_service.update_recipe_image(
        db, other_household.id, original_id, _jpeg("blue"), "image/jpeg"
    )["filename"]
    subscribe(household, shared["collection"])

    response = client.post(
        f"{API}/recipes/{original_id}/image",
        files={"file": ("ours.jpg", _jpeg("green"), "image/jpeg")},
        data={"collection_id": str(shared["collection"].id)},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["actions_taken"]
    assert body["recipe_id"] != str(original_id)
    copy_name = body["filename"]
    assert "_v" not in copy_name
    assert copy_name.rsplit(".", 1)[0] != original_name.rsplit(".", 1)[0]
    assert os.path.exists(os.path.join(settings.STATIC_DIR, original_name))
    assert os.path.exists(os.path.join(settings.STATIC_DIR, copy_name))
    db.expire_all()
    assert db.get(Recipe, original_id).image_filename == original_name


def test_upload_recipe_image_rejects_pdf(client, headers, household, make_recipe):
    recipe = make_recipe(household, "Pancakes")
    response = client.post(
        f"{API}/recipes/{recipe.id}/image",
        files={"file": ("pancakes.pdf", b"%PDF-1.4", "application/pdf")},
        headers=headers,
    )
    assert response.status_code == 400


def test_upload_jpeg_as_pdf_is_converted(client, db, headers, household, make_recipe):
    recipe = make_recipe(household, "Pancakes")
    response = client.post(
        f"{API}/recipes/{recipe.id}/pdf",
        files={"file": ("card.jpg", _jpeg(), "image/jpeg")},
        headers=headers,
    )
    assert response.status_code == 200
    filename = response.json()["filename"]
    assert filename.endswith(".pdf")
    with open(os.path.join(settings.STATIC_DIR, filename), "rb") as stored:
        assert stored.read(4) == b"%PDF"


def test_upload_lock_timeout_asks_client_to_retry(client, headers, household, make_recipe, monkeypatch):
    recipe = make_recipe(household, "Pancakes")

    def locked(*args, **kwargs):
        raise OperationalError("UPDATE recipes", {}, Exception("database is locked"))

    monkeypatch.setattr(recipe_service, "update_recipe_image", locked)
    response = client.post(
        f"{API}/recipes/{recipe.id}/image",
        files={"file": ("pancakes.jpg", _jpeg(), "image/jpeg")},
        headers=headers,
    )

    assert response.status_code == 409
    assert response.json()["retry"] is True


# ============================================================================
# Recipe deletion
# ============================================================================

def test_delete_unused_recipe(client, db, headers, household, make_collection, make_recipe):
    recipe_id = make_recipe(household, "Toast", collections=[make_collection(household)]).id

    response = client.delete(f"{API}/recipes/{recipe_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["action"] == "deleted"
    db.expire_all()
    assert db.get(Recipe, recipe_id) is None
    assert db.query(CollectionRecipe).count() == 0


def test_delete_planned_recipe_is_refused(client, db, headers, household, make_recipe):
    recipe = make_recipe(household, "Toast")
    db.add(Plan(household_id=household.id, recipe_id=recipe.id, week=10, year=2025, shop_qty=2))
    db.commit()

    response = client.delete(f"{API}/recipes/{recipe.id}", headers=headers)
    assert response.status_code == 400
    assert "planned" in response.json()["detail"]


def test_delete_recipe_with_shopping_history_archives_it(client, db, headers, household, make_collection, make_recipe):
    collection = make_collection(household)
    recipe = make_recipe(household, "Toast", collections=[collection])
    db.add(ShoppingListItem(household_id=household.id, week=9, year=2025, name="Bread", recipe_id=recipe.id))
    db.commit()

    response = client.delete(f"{API}/recipes/{recipe.id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["action"] == "archived"
    db.expire_all()
    assert db.get(Recipe, recipe.id).archived is True
    assert db.query(CollectionRecipe).filter_by(collection_id=collection.id).count() == 0


def test_delete_foreign_recipe_unlinks_it_from_collection(client, db, headers, household, make_collection, shared):
    own = make_collection(household, "Favourites")
    db.add(CollectionRecipe(collection_id=own.id, recipe_id=shared["recipe"].id))
    db.commit()

    response = client.delete(
        f"{API}/recipes/{shared['recipe'].id}",
        params={"collection_id": str(own.id)},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["action"] == "removed_from_collection"
    db.expire_all()
    assert db.get(Recipe, shared["recipe"].id) is not None
    assert db.get(Collection, shared["collection"].id) is not None


def test_delete_foreign_recipe_without_collection_is_forbidden(client, headers, shared):
    response = client.delete(f"{API}/recipes/{shared['recipe'].id}", headers=headers)
    assert response.status_code == 403


# ============================================================================
# Ingredients, plans and shopping
# ============================================================================

def test_ingredient_search_ranks_closest_first(client, headers, household, make_ingredient):
    make_ingredient(household, "Red Onion")
    make_ingredient(household, "Onion")
    make_ingredient(household, "Garlic")

    response = client.get(f"{API}/ingredients/search", params={"q": "onion"}, headers=headers)

    assert response.status_code == 200
    names = [i["name"] for i in response.json()["ingredients"]]
    assert names[0] == "Onion"
    assert "Red Onion" in names
    assert "Garlic" not in names


def test_plan_then_generate_shopping_list(client, headers, household, make_collection, make_ingredient, make_recipe):
    collection = make_collection(household)
    onion = make_ingredient(household, "Onion", fresh=True, cost=0.5)
    rice = make_ingredient(household, "Rice", fresh=False, cost=2.0)
    curry = make_recipe(household, "Curry", collections=[collection], lines=[(onion, "1", "2"), (rice, "200", "400")])
    soup = make_recipe(household, "Soup", collections=[collection], lines=[(onion, "2", "4")])

    saved = client.post(f"{API}/plans", json={
        "week": 10, "year": 2025, "recipe_ids": [str(curry.id), str(soup.id)]
    }, headers=headers)
    assert saved.status_code == 200

    plan = client.get(f"{API}/plans", params={"week": 10, "year": 2025}, headers=headers).json()
    assert {r["name"] for r in plan["recipes"]} == {"Curry", "Soup"}

    reset = client.post(f"{API}/shop/reset", json={"week": 10, "year": 2025}, headers=headers)
    assert reset.status_code == 200

    shop = client.get(f"{API}/shop", params={"week": 10, "year": 2025}, headers=headers).json()
    assert [(line["name"], line["quantity"]) for line in shop["fresh"]] == [("Onion", "3")]
    assert [line["name"] for line in shop["pantry"]] == ["Rice"]


def test_shopping_list_rejects_invalid_week(client, headers):
    response = client.get(f"{API}/shop", params={"week": 54, "year": 2025}, headers=headers)
    assert response.status_code == 400

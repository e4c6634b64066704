"""Tests for admin user management, orphan cleanup, error logs and migrations."""

import uuid

import pytest

from foodie.core.config import settings
from foodie.db.session import SessionLocal
from foodie.models import Collection, Feedback, Ingredient, Recipe, User
from foodie.schemas.admin import AdminUserUpdate
from foodie.schemas.feedback import FeedbackCreate
from foodie.services import admin_service, feedback_service
from foodie.services.error_logging import error_logger


# ============================================================================
# Users
# ============================================================================

def test_list_users_with_stats(db, user, admin_user):
    result = admin_service.list_users(db, include_stats=True)
    assert {u.email for u in result["users"]} == {"sam@example.com", "admin@example.com"}
    assert result["stats"] == {"total": 2, "active": 2, "admins": 1}


def test_admin_cannot_demote_or_deactivate_self(db, admin_user):
    with pytest.raises(ValueError):
        admin_service.update_user(db, admin_user, admin_user.id, AdminUserUpdate(is_admin=False))
    with pytest.raises(ValueError):
        admin_service.update_user(db, admin_user, admin_user.id, AdminUserUpdate(is_active=False))
    # Unchanged values are fine
    updated = admin_service.update_user(db, admin_user, admin_user.id, AdminUserUpdate(is_admin=True, first_name="Ada"))
    assert updated.first_name == "Ada"


def test_update_user_rejects_duplicate_email_and_empty_update(db, user, admin_user):
    with pytest.raises(ValueError, match="Email already registered"):
        admin_service.update_user(db, admin_user, user.id, AdminUserUpdate(email="ADMIN@example.com"))
    with pytest.raises(ValueError):
        admin_service.update_user(db, admin_user, user.id, AdminUserUpdate())


def test_update_other_user(db, user, admin_user):
    updated = admin_service.update_user(db, admin_user, user.id, AdminUserUpdate(is_active=False, is_admin=True))
    assert (updated.is_active, updated.is_admin) == (False, True)


def test_delete_user_removes_their_feedback(db, user, admin_user):
    feedback = feedback_service.submit_feedback(
        db, user, FeedbackCreate(rating=3, page_context="/")
    )
    feedback_service.respond_to_feedback(db, admin_user, feedback.id, "Noted")
    user_id = user.id

    assert admin_service.delete_user(db, admin_user, user_id) == "sam@example.com"
    assert db.get(User, user_id) is None
    assert db.query(Feedback).count() == 0

    with pytest.raises(ValueError):
        admin_service.delete_user(db, admin_user, admin_user.id)
    with pytest.raises(LookupError):
        admin_service.delete_user(db, admin_user, uuid.uuid4())


# ============================================================================
# Orphaned data
# ============================================================================

@pytest.fixture
def orphans(household, make_collection, make_ingredient, make_recipe):
    used_collection = make_collection(household, "Used")
    empty_collection = make_collection(household, "Empty")
    used_ingredient = make_ingredient(household, "Salt")
    lonely_ingredient = make_ingredient(household, "Sumac")
    make_recipe(household, "Stew", collections=[used_collection], lines=[(used_ingredient, "1", "2")])
    lonely_recipe = make_recipe(household, "Forgotten Pie")
    return {"collection": empty_collection, "ingredient": lonely_ingredient, "recipe": lonely_recipe}


def test_list_orphaned(db, orphans):
    result = admin_service.list_orphaned(db)
    assert [c["name"] for c in result["collections"]] == ["Empty"]
    assert [i["name"] for i in result["ingredients"]] == ["Sumac"]
    assert [r["name"] for r in result["recipes"]] == ["Forgotten Pie"]
    assert result["total"] == 3


def test_delete_orphaned_rows(db, orphans):
    collection_id, ingredient_id, recipe_id = (orphans[k].id for k in ("collection", "ingredient", "recipe"))

    assert admin_service.delete_orphaned(db, "collection", collection_id) == "Empty"
    assert admin_service.delete_orphaned(db, "ingredient", ingredient_id) == "Sumac"
    assert admin_service.delete_orphaned(db, "recipe", recipe_id) == "Forgotten Pie"

    assert db.get(Collection, collection_id) is None
    assert db.get(Ingredient, ingredient_id) is None
    assert db.get(Recipe, recipe_id) is None
    assert admin_service.list_orphaned(db)["total"] == 0


def test_delete_orphaned_checks_type_and_usage(db, household, orphans, make_recipe):
    with pytest.raises(ValueError):
        admin_service.delete_orphaned(db, "plan", orphans["recipe"].id)
    with pytest.raises(LookupError):
        admin_service.delete_orphaned(db, "recipe", uuid.uuid4())

    make_recipe(household, "Sumac Chicken", lines=[(orphans["ingredient"], "1", "2")])
    with pytest.raises(ValueError, match="no longer orphaned"):
        admin_service.delete_orphaned(db, "ingredient", orphans["ingredient"].id)


# ============================================================================
# Error logs
# ============================================================================

@pytest.fixture
def stored_errors():
    error_logger.set_db_session_factory(SessionLocal)
    ids = [
        error_logger.log_error(ValueError("bad input"), severity="warning", context={"password": "hunter2"}),
        error_logger.log_error(RuntimeError("boom"), severity="critical"),
    ]
    yield ids
    error_logger.set_db_session_factory(None)


def test_error_log_listing_and_stats(db, stored_errors):
    critical = admin_service.list_error_logs(db, severity="critical")
    assert [e.message for e in critical["errors"]] == ["boom"]

    stats = admin_service.get_error_log_stats(db)
    assert stats["total"] == 2
    assert stats["unresolved"] == 2
    assert stats["by_type"] == {"ValueError": 1, "RuntimeError": 1}


def test_logged_context_is_sanitized(db, stored_errors):
    entry = admin_service.list_error_logs(db, error_type="ValueError")["errors"][0]
    assert entry.context_data["password"] != "hunter2"


def test_resolve_error_log(db, admin_user, stored_errors):
    entry = admin_service.resolve_error_log(db, admin_user, stored_errors[0], "Fixed validation")
    assert entry.resolved is True
    assert entry.resolution_notes == "Fixed validation"
    assert admin_service.list_error_logs(db, resolved=False)["total"] == 1
    with pytest.raises(LookupError):
        admin_service.resolve_error_log(db, admin_user, uuid.uuid4())


# ============================================================================
# API
# ============================================================================

def test_admin_routes_require_admin(client, user, auth_headers):
    assert client.get("/api/v1/admin/users").status_code == 401
    assert client.get("/api/v1/admin/users", headers=auth_headers(user)).status_code == 403
    assert client.get("/api/v1/admin/orphans", headers=auth_headers(user)).status_code == 403


def test_admin_user_endpoints(client, user, admin_user, auth_headers):
    headers = auth_headers(admin_user)

    listed = client.get("/api/v1/admin/users?include_stats=true", headers=headers)
    assert listed.status_code == 200
    assert listed.json()["stats"]["total"] == 2

    self_demote = client.put(f"/api/v1/admin/users/{admin_user.id}", json={"is_admin": False}, headers=headers)
    assert self_demote.status_code == 400

    deleted = client.delete(f"/api/v1/admin/users/{user.id}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/v1/admin/users/{user.id}", headers=headers).status_code == 404


def test_admin_orphan_endpoints(client, admin_user, auth_headers, orphans):
    headers = auth_headers(admin_user)
    assert client.get("/api/v1/admin/orphans", headers=headers).json()["total"] == 3

    response = client.delete(f"/api/v1/admin/orphans/recipe/{orphans['recipe'].id}", headers=headers)
    assert response.status_code == 200
    assert client.delete(f"/api/v1/admin/orphans/widget/{orphans['recipe'].id}", headers=headers).status_code == 400


def test_migration_status_endpoint(client, admin_user, auth_headers):
    response = client.get("/api/v1/admin/migrations/status", headers=auth_headers(admin_user))
    assert response.status_code == 200
    versions = [m["version"] for m in response.json()["migrations"]]
    assert versions[0] == "001_create_schema_migrations"


def test_migration_run_needs_token_in_production(client, admin_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "MIGRATION_TOKEN", "s3cret")
    headers = auth_headers(admin_user)

    assert client.post("/api/v1/admin/migrations/run", headers=headers).status_code == 403
    wrong = client.post("/api/v1/admin/migrations/run", headers={**headers, "X-Migration-Token": "nope"})
    assert wrong.status_code == 403

    ok = client.post("/api/v1/admin/migrations/run", headers={**headers, "X-Migration-Token": "s3cret"})
    assert ok.status_code == 200
    assert ok.json()["success"] is True


def test_migration_run_refused_when_token_unset_in_production(client, admin_user, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "MIGRATION_TOKEN", "")
    response = client.post(
        "/api/v1/admin/migrations/run",
        headers={**auth_headers(admin_user), "X-Migration-Token": ""},
    )
    assert response.status_code == 403

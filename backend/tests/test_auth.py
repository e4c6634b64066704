"""Tests for registration, login, sessions and household invitations."""

from unittest.mock import AsyncMock, patch

import pytest

from foodie.core.config import settings
from foodie.integrations.google_oauth import OAuthError, OAuthProfile
from foodie.models import HouseholdInvitation, User
from foodie.services import auth_service


def _register(client, email="new@example.com", **extra):
    payload = {"email": email, "password": "longenough1", "first_name": "Robin"}
    payload.update(extra)
    return client.post("/api/v1/auth/register", json=payload)


def test_register_creates_user_and_household(client, db):
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"] and body["refresh_token"]
    assert settings.SESSION_COOKIE_NAME in response.cookies

    user = db.query(User).filter_by(email="new@example.com").one()
    assert user.household.name == "Robin's household"


def test_register_duplicate_email(client, user):
    response = _register(client, email="SAM@example.com")
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_register_short_password_is_422(client):
    assert _register(client, password="short").status_code == 422


def test_login_and_session_cookie(client, user):
    response = client.post("/api/v1/auth/login", json={"email": "sam@example.com", "password": "password123"})
    assert response.status_code == 200

    # TestClient keeps the cookie, so no Authorization header is needed
    session = client.get("/api/v1/auth/session")
    assert session.status_code == 200
    assert session.json()["user"]["email"] == "sam@example.com"
    assert session.json()["household_name"] == "Smith Family"

    client.post("/api/v1/auth/logout")
    assert client.get("/api/v1/auth/session").status_code == 401


def test_login_failures(client, make_user, household):
    make_user(household, "gone@example.com", is_active=False)
    bad_password = client.post("/api/v1/auth/login", json={"email": "gone@example.com", "password": "wrong"})
    inactive = client.post("/api/v1/auth/login", json={"email": "gone@example.com", "password": "password123"})
    assert bad_password.status_code == 401
    assert inactive.status_code == 401


def test_refresh_issues_new_pair(client, user):
    tokens = client.post("/api/v1/auth/login", json={"email": "sam@example.com", "password": "password123"}).json()

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    # Access tokens are not accepted as refresh tokens
    wrong_type = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert wrong_type.status_code == 401


def test_me_requires_valid_token(client, user, auth_headers):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth_headers(user)).json()["email"] == "sam@example.com"


# ============================================================================
# Google sign-in
# ============================================================================

def test_google_sign_in_creates_user(client, db):
    profile = OAuthProfile(
        provider="google",
        provider_id="g-123",
        email="oauth@example.com",
        email_verified=True,
        first_name="Olive",
        last_name="Auth",
        picture=None,
    )
    with patch("foodie.api.v1.auth.google_oauth_client.authenticate", new=AsyncMock(return_value=profile)):
        response = client.post("/api/v1/auth/oauth/google", json={"code": "abc"})

    assert response.status_code == 200
    user = db.query(User).filter_by(email="oauth@example.com").one()
    assert (user.oauth_provider, user.oauth_provider_id) == ("google", "g-123")


def _google_profile(email, provider_id="g-456"):
    return OAuthProfile(
        provider="google",
        provider_id=provider_id,
        email=email,
        email_verified=True,
        first_name="Gale",
        last_name="Oauth",
        picture=None,
    )


def test_first_google_sign_in_creates_active_user(db):
    user = auth_service.get_or_create_oauth_user(db, _google_profile("first@example.com"))

    assert user.is_active is True
    assert user.household_id is not None
    assert user.password_hash is None


def test_google_sign_in_refuses_deactivated_account(db, make_user, household):
    make_user(household, "gone@example.com", is_active=False)

    with pytest.raises(PermissionError):
        auth_service.get_or_create_oauth_user(db, _google_profile("gone@example.com"))


def test_google_sign_in_errors_are_passed_on(client):
    failure = AsyncMock(side_effect=OAuthError("Google sign-in is not configured", status_code=503))
    with patch("foodie.api.v1.auth.google_oauth_client.authenticate", new=failure):
        response = client.post("/api/v1/auth/oauth/google", json={"code": "abc"})
    assert response.status_code == 503


# ============================================================================
# Households and invitations
# ============================================================================

def test_rename_household(client, user, auth_headers):
    response = client.put("/api/v1/households/me", json={"name": "The Smiths"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["name"] == "The Smiths"
    assert [m["email"] for m in response.json()["members"]] == ["sam@example.com"]


def test_invitation_flow(client, db, user, auth_headers):
    headers = auth_headers(user)
    sent = client.post("/api/v1/invitations", json={"email": "Partner@example.com"}, headers=headers)
    assert sent.status_code == 201
    token = sent.json()["invite_token"]

    duplicate = client.post("/api/v1/invitations", json={"email": "partner@example.com"}, headers=headers)
    assert duplicate.status_code == 409
    member = client.post("/api/v1/invitations", json={"email": "sam@example.com"}, headers=headers)
    assert member.status_code == 400

    details = client.get(f"/api/v1/invitations/{token}")
    assert details.json()["household_name"] == "Smith Family"
    assert details.json()["status"] == "valid"

    joined = _register(client, email="partner@example.com", invite_token=token)
    assert joined.status_code == 201
    partner = db.query(User).filter_by(email="partner@example.com").one()
    assert partner.household_id == user.household_id
    assert db.query(HouseholdInvitation).one().accepted_at is not None


def test_invitation_for_other_email_is_rejected(client, user, auth_headers):
    token = client.post(
        "/api/v1/invitations", json={"email": "partner@example.com"}, headers=auth_headers(user)
    ).json()["invite_token"]
    assert _register(client, email="stranger@example.com", invite_token=token).status_code == 400


def test_decline_invitation(client, user, auth_headers):
    token = client.post(
        "/api/v1/invitations", json={"email": "partner@example.com"}, headers=auth_headers(user)
    ).json()["invite_token"]

    assert client.post(f"/api/v1/invitations/{token}/decline").status_code == 200
    assert client.get(f"/api/v1/invitations/{token}").json()["status"] == "declined"
    assert client.post(f"/api/v1/invitations/{token}/decline").status_code == 400
    assert client.get("/api/v1/invitations/unknown").status_code == 404

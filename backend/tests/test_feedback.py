"""Tests for user feedback and its admin review."""

import pytest

from foodie.core.config import settings
from foodie.models import Feedback, FeedbackResponse
from foodie.schemas.feedback import FeedbackCreate, FeedbackUpdate
from foodie.services import feedback_service


@pytest.fixture
def no_rate_limit(monkeypatch):
    monkeypatch.setattr(settings, "FEEDBACK_RATE_LIMIT_SECONDS", 0)


def _feedback(**overrides):
    data = {"rating": 4, "category": "general", "message": "Nice", "page_context": "/plan"}
    data.update(overrides)
    return FeedbackCreate(**data)


# ============================================================================
# Submission
# ============================================================================

def test_submit_stores_feedback(db, user):
    feedback = feedback_service.submit_feedback(
        db, user, _feedback(metadata={"screen": "1280x800"}), user_agent="pytest"
    )
    assert feedback.household_id == user.household_id
    assert feedback.status == "new"
    assert feedback.extra_data == {"screen": "1280x800"}
    assert feedback.user_agent == "pytest"


@pytest.mark.parametrize("overrides,error", [
    ({"page_context": "  "}, "page_context"),
    ({"rating": 6}, "Rating"),
    ({"rating": 0}, "Rating"),
    ({"category": "rant"}, "category"),
    ({"message": "x" * 5001}, "5000"),
    ({"rating": None, "message": "   "}, "rating or a message"),
])
def test_submit_validation(db, user, overrides, error):
    with pytest.raises(ValueError, match=error):
        feedback_service.submit_feedback(db, user, _feedback(**overrides))


def test_rating_or_message_alone_is_enough(db, user, no_rate_limit):
    feedback_service.submit_feedback(db, user, _feedback(message=None))
    feedback_service.submit_feedback(db, user, _feedback(rating=None))
    assert db.query(Feedback).count() == 2


def test_second_submission_is_rate_limited(db, user):
    feedback_service.submit_feedback(db, user, _feedback())
    with pytest.raises(feedback_service.RateLimitExceeded) as exc_info:
        feedback_service.submit_feedback(db, user, _feedback())
    assert 1 <= exc_info.value.retry_after <= settings.FEEDBACK_RATE_LIMIT_SECONDS


# ============================================================================
# Admin review
# ============================================================================

def test_list_filters_and_stats(db, user, admin_user, no_rate_limit):
    feedback_service.submit_feedback(db, user, _feedback(category="bug", rating=2))
    feedback_service.submit_feedback(db, user, _feedback(category="praise", rating=5))
    feedback_service.submit_feedback(db, admin_user, _feedback(category="bug", rating=None))

    bugs = feedback_service.list_feedback(db, category="bug", include_stats=True)
    assert bugs["total"] == 2
    assert bugs["stats"]["by_category"]["bug"] == 2
    assert bugs["stats"]["by_status"]["new"] == 3
    assert bugs["stats"]["average_rating"] == 3.5

    assert feedback_service.list_feedback(db, user_id=admin_user.id)["total"] == 1
    with pytest.raises(ValueError):
        feedback_service.list_feedback(db, status="archived")


def test_update_records_reviewer(db, user, admin_user):
    feedback = feedback_service.submit_feedback(db, user, _feedback())

    result = feedback_service.update_feedback(
        db, admin_user, feedback.id, FeedbackUpdate(status="reviewed", admin_notes="Looked at it")
    )

    assert result["status"] == "reviewed"
    assert result["admin_notes"] == "Looked at it"
    assert result["reviewed_by"] == admin_user.id
    assert result["reviewed_at"] is not None


def test_update_validation(db, user, admin_user):
    feedback = feedback_service.submit_feedback(db, user, _feedback())
    with pytest.raises(ValueError):
        feedback_service.update_feedback(db, admin_user, feedback.id, FeedbackUpdate())
    with pytest.raises(ValueError):
        feedback_service.update_feedback(db, admin_user, feedback.id, FeedbackUpdate(status="archived"))


def test_respond_and_delete(db, user, admin_user):
    feedback = feedback_service.submit_feedback(db, user, _feedback())
    with pytest.raises(ValueError):
        feedback_service.respond_to_feedback(db, admin_user, feedback.id, "   ")

    feedback_service.respond_to_feedback(db, admin_user, feedback.id, "Thanks, fixed!")
    mine = feedback_service.list_user_feedback(db, user.id)
    assert [r["response"] for r in mine[0]["responses"]] == ["Thanks, fixed!"]
    assert mine[0]["reviewed_by"] == admin_user.id

    feedback_id = feedback.id
    feedback_service.delete_feedback(db, feedback_id)
    assert db.query(Feedback).count() == 0
    assert db.query(FeedbackResponse).count() == 0
    with pytest.raises(LookupError):
        feedback_service.get_feedback(db, feedback_id)


# ============================================================================
# API
# ============================================================================

def test_api_submit_then_429(client, user, auth_headers):
    payload = {"rating": 5, "category": "praise", "message": "Love it", "page_context": "/recipes"}

    first = client.post("/api/v1/feedback", json=payload, headers=auth_headers(user))
    assert first.status_code == 201

    second = client.post("/api/v1/feedback", json=payload, headers=auth_headers(user))
    assert second.status_code == 429
    assert int(second.headers["Retry-After"]) >= 1


def test_api_invalid_feedback_is_400(client, user, auth_headers):
    response = client.post("/api/v1/feedback", json={"rating": 9, "page_context": "/"}, headers=auth_headers(user))
    assert response.status_code == 400


def test_api_admin_listing_requires_admin(client, user, admin_user, auth_headers):
    assert client.get("/api/v1/feedback", headers=auth_headers(user)).status_code == 403
    response = client.get("/api/v1/feedback", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["total"] == 0

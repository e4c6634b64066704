"""
Feedback Service
User feedback submission and its review by administrators.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from foodie.core.config import settings
from foodie.core.constants import (
    FEEDBACK_MESSAGE_MAX_LENGTH,
    VALID_FEEDBACK_CATEGORIES,
    VALID_FEEDBACK_STATUSES,
)
from foodie.models import Feedback, FeedbackResponse, User
from foodie.schemas.feedback import FeedbackCreate, FeedbackUpdate


logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a user submits feedback again too quickly."""
    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(f"Please wait {retry_after} second(s) before sending more feedback")


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive UTC timestamps
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _check_rate_limit(db: Session, user_id: UUID) -> None:
    window = settings.FEEDBACK_RATE_LIMIT_SECONDS
    if window <= 0:
        return
    last = db.query(func.max(Feedback.created_at)).filter(Feedback.user_id == user_id).scalar()
    if last is None:
        return
    elapsed = (datetime.now(timezone.utc) - _as_utc(last)).total_seconds()
    if elapsed < window:
        raise RateLimitExceeded(max(1, int(window - elapsed + 0.999)))


def submit_feedback(db: Session, user: User, data: FeedbackCreate, user_agent: Optional[str] = None) -> Feedback:
    """
    Store feedback from the current user.

    Raises:
        ValueError: Missing page context, bad rating, category or message
        RateLimitExceeded: Previous submission was too recent
    """
    page_context = (data.page_context or "").strip()
    if not page_context:
        raise ValueError("page_context is required")
    if data.rating is not None and not 1 <= data.rating <= 5:
        raise ValueError("Rating must be between 1 and 5")
    if data.category not in VALID_FEEDBACK_CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(VALID_FEEDBACK_CATEGORIES)}")
    message = (data.message or "").strip() or None
    if message and len(message) > FEEDBACK_MESSAGE_MAX_LENGTH:
        raise ValueError(f"Message must be at most {FEEDBACK_MESSAGE_MAX_LENGTH} characters")
    if data.rating is None and message is None:
        raise ValueError("Please give a rating or a message")

    _check_rate_limit(db, user.id)

    feedback = Feedback(
        user_id=user.id,
        household_id=user.household_id,
        rating=data.rating,
        category=data.category,
        message=message,
        page_context=page_context[:500],
        user_agent=user_agent[:500] if user_agent else None,
        extra_data=data.metadata,
    )
    db.add(feedback)
    db.commit()
    db.refresh(feedback)
    logger.info(f"Feedback {feedback.id} ({feedback.category}) from user {user.id}")
    return feedback


# ============================================================================
# Admin
# ============================================================================

def serialize_feedback(feedback: Feedback, include_responses: bool = False) -> dict:
    data = {
        "id": feedback.id,
        "user_id": feedback.user_id,
        "user_email": feedback.user.email if feedback.user else None,
        "household_id": feedback.household_id,
        "rating": feedback.rating,
        "category": feedback.category,
        "message": feedback.message,
        "page_context": feedback.page_context,
        "user_agent": feedback.user_agent,
        "metadata": feedback.extra_data,
        "status": feedback.status,
        "admin_notes": feedback.admin_notes,
        "reviewed_at": feedback.reviewed_at,
        "reviewed_by": feedback.reviewed_by,
        "created_at": feedback.created_at,
        "responses": [],
    }
    if include_responses:
        data["responses"] = [
            {"id": r.id, "admin_id": r.admin_id, "response": r.response, "created_at": r.created_at}
            for r in sorted(feedback.responses, key=lambda r: r.created_at or datetime.min)
        ]
    return data


def get_feedback_stats(db: Session) -> Dict[str, Any]:
    total = db.query(func.count(Feedback.id)).scalar() or 0
    by_status = dict(db.query(Feedback.status, func.count(Feedback.id)).group_by(Feedback.status).all())
    by_category = dict(db.query(Feedback.category, func.count(Feedback.id)).group_by(Feedback.category).all())
    average = db.query(func.avg(Feedback.rating)).filter(Feedback.rating.isnot(None)).scalar()
    return {
        "total": total,
        "by_status": {status: by_status.get(status, 0) for status in VALID_FEEDBACK_STATUSES},
        "by_category": {category: by_category.get(category, 0) for category in VALID_FEEDBACK_CATEGORIES},
        "average_rating": round(float(average), 2) if average is not None else None,
    }


def list_feedback(
    db: Session,
    status: Optional[str] = None,
    category: Optional[str] = None,
    rating: Optional[int] = None,
    user_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0,
    include_stats: bool = False,
) -> dict:
    """
    Filtered feedback, newest first.

    Raises:
        ValueError: Unknown status or category
    """
    if status and status not in VALID_FEEDBACK_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(VALID_FEEDBACK_STATUSES)}")
    if category and category not in VALID_FEEDBACK_CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(VALID_FEEDBACK_CATEGORIES)}")

    query = db.query(Feedback)
    if status:
        query = query.filter(Feedback.status == status)
    if category:
        query = query.filter(Feedback.category == category)
    if rating is not None:
        query = query.filter(Feedback.rating == rating)
    if user_id:
        query = query.filter(Feedback.user_id == user_id)
    if start_date:
        query = query.filter(Feedback.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Feedback.created_at < datetime.combine(end_date + timedelta(days=1), time.min))

    total = query.count()
    items = query.order_by(Feedback.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "feedback": [serialize_feedback(f) for f in items],
        "total": total,
        "limit": limit,
        "offset": offset,
        "stats": get_feedback_stats(db) if include_stats else None,
    }


def _get_feedback(db: Session, feedback_id: UUID) -> Feedback:
    feedback = db.get(Feedback, feedback_id)
    if feedback is None:
        raise LookupError("Feedback not found")
    return feedback


def get_feedback(db: Session, feedback_id: UUID) -> dict:
    return serialize_feedback(_get_feedback(db, feedback_id), include_responses=True)


def update_feedback(db: Session, admin: User, feedback_id: UUID, data: FeedbackUpdate) -> dict:
    """
    Change status and/or admin notes, recording who reviewed it.

    Raises:
        LookupError: Unknown feedback
        ValueError: Unknown status or nothing to update
    """
    feedback = _get_feedback(db, feedback_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise ValueError("No fields to update")
    if "status" in changes and changes["status"] not in VALID_FEEDBACK_STATUSES:
        raise ValueError(f"Invalid status. Must be one of: {', '.join(VALID_FEEDBACK_STATUSES)}")

    for field, value in changes.items():
        setattr(feedback, field, value)
    feedback.reviewed_at = datetime.now(timezone.utc)
    feedback.reviewed_by = admin.id
    db.commit()
    db.refresh(feedback)
    return serialize_feedback(feedback, include_responses=True)


def respond_to_feedback(db: Session, admin: User, feedback_id: UUID, response: str) -> FeedbackResponse:
    """
    Raises:
        LookupError: Unknown feedback
        ValueError: Blank response
    """
    feedback = _get_feedback(db, feedback_id)
    text = (response or "").strip()
    if not text:
        raise ValueError("Response cannot be empty")

    entry = FeedbackResponse(feedback_id=feedback.id, admin_id=admin.id, response=text)
    db.add(entry)
    if feedback.reviewed_at is None:
        feedback.reviewed_at = datetime.now(timezone.utc)
        feedback.reviewed_by = admin.id
    db.commit()
    db.refresh(entry)
    return entry


def delete_feedback(db: Session, feedback_id: UUID) -> None:
    feedback = _get_feedback(db, feedback_id)
    db.query(FeedbackResponse).filter(FeedbackResponse.feedback_id == feedback.id).delete(synchronize_session=False)
    db.delete(feedback)
    db.commit()


def list_user_feedback(db: Session, user_id: UUID) -> List[dict]:
    items = db.query(Feedback).filter(Feedback.user_id == user_id).order_by(Feedback.created_at.desc()).all()
    return [serialize_feedback(f, include_responses=True) for f in items]

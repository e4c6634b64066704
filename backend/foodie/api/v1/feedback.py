"""
Feedback API Endpoints

User endpoints:
- POST /feedback - Send feedback (rate limited per user)
- GET /feedback/mine - Own feedback with admin responses

Admin endpoints:
- GET /feedback - Filtered list, optionally with stats
- GET /feedback/stats - Totals per status and category, average rating
- GET /feedback/{id} - One item with its responses
- PUT /feedback/{id} - Change status / admin notes
- POST /feedback/{id}/respond - Reply to the user
- DELETE /feedback/{id} - Delete an item
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from foodie.api.v1.deps import get_current_user, require_admin
from foodie.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from foodie.db.session import get_db
from foodie.models import User
from foodie.schemas.feedback import (
    FeedbackCreate,
    FeedbackCreated,
    FeedbackItem,
    FeedbackListResponse,
    FeedbackRespond,
    FeedbackResponseItem,
    FeedbackStats,
    FeedbackUpdate,
)
from foodie.services import feedback_service
from foodie.services.feedback_service import RateLimitExceeded


router = APIRouter()


@router.post("", response_model=FeedbackCreated, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: FeedbackCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Errors:
    - 400: Missing page_context, rating outside 1..5, unknown category,
      message over 5000 characters
    - 429: Previous feedback sent less than a few seconds ago
    """
    try:
        feedback = feedback_service.submit_feedback(
            db, current_user, data, user_agent=request.headers.get("user-agent")
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RateLimitExceeded as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(e),
            headers={"Retry-After": str(e.retry_after)}
        )
    return FeedbackCreated(id=feedback.id)


@router.get("/mine", response_model=List[FeedbackItem])
def list_my_feedback(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return feedback_service.list_user_feedback(db, current_user.id)


# ============================================================================
# Admin
# ============================================================================

@router.get("", response_model=FeedbackListResponse)
def list_feedback(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    rating: Optional[int] = Query(None, ge=1, le=5),
    user_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    include_stats: bool = Query(False),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return feedback_service.list_feedback(
            db,
            status=status_filter,
            category=category,
            rating=rating,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
            include_stats=include_stats,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/stats", response_model=FeedbackStats)
def get_feedback_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return feedback_service.get_feedback_stats(db)


@router.get("/{feedback_id}", response_model=FeedbackItem)
def get_feedback(
    feedback_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return feedback_service.get_feedback(db, feedback_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/{feedback_id}", response_model=FeedbackItem)
def update_feedback(
    feedback_id: UUID,
    data: FeedbackUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return feedback_service.update_feedback(db, admin, feedback_id, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/{feedback_id}/respond", response_model=FeedbackResponseItem, status_code=status.HTTP_201_CREATED)
def respond_to_feedback(
    feedback_id: UUID,
    data: FeedbackRespond,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return feedback_service.respond_to_feedback(db, admin, feedback_id, data.response)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/{feedback_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_feedback(
    feedback_id: UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        feedback_service.delete_feedback(db, feedback_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

"""
Feedback Pydantic Schemas
Request and response models for user feedback and its admin review.

Business rules (rating range, message length, required page context) are
checked by the feedback service so violations answer 400 instead of 422.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FeedbackCreate(BaseModel):
    """
    Example:
        {
            "rating": 5,
            "category": "praise",
            "message": "The randomizer is great",
            "page_context": "/plan",
            "metadata": {"screen": "1280x800"}
        }
    """
    rating: Optional[int] = Field(None, description="1 to 5 stars")
    category: str = Field("general", description="bug, feature_request, general or praise")
    message: Optional[str] = None
    page_context: Optional[str] = Field(None, description="Page the feedback was sent from")
    metadata: Optional[Dict[str, Any]] = None


class FeedbackCreated(BaseModel):
    success: bool = True
    id: UUID
    message: str = "Thank you for your feedback"


class FeedbackResponseItem(BaseModel):
    id: UUID
    admin_id: Optional[UUID] = None
    response: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FeedbackItem(BaseModel):
    id: UUID
    user_id: UUID
    user_email: Optional[str] = None
    household_id: UUID
    rating: Optional[int] = None
    category: str
    message: Optional[str] = None
    page_context: str
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    status: str
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    responses: List[FeedbackResponseItem] = Field(default_factory=list)


class FeedbackStats(BaseModel):
    total: int
    by_status: Dict[str, int]
    by_category: Dict[str, int]
    average_rating: Optional[float] = None


class FeedbackListResponse(BaseModel):
    feedback: List[FeedbackItem]
    total: int
    limit: int
    offset: int
    stats: Optional[FeedbackStats] = None


class FeedbackUpdate(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


class FeedbackRespond(BaseModel):
    response: str

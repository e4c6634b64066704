"""
Feedback Models
User feedback and admin responses.

Feedback is submitted from any page of the app (page_context records
where). Admins triage it through the status workflow
new -> reviewed -> actioned -> closed and may reply with responses.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from foodie.core.constants import FEEDBACK_CATEGORY_GENERAL, FEEDBACK_STATUS_NEW
from foodie.models.base import BaseModel


class Feedback(BaseModel):
    """Feedback submitted by a user."""

    __tablename__ = "feedback"

    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=True
    )

    rating = Column(Integer, nullable=True, comment="1-5 stars")
    category = Column(String(50), default=FEEDBACK_CATEGORY_GENERAL, nullable=False, index=True)
    message = Column(Text, nullable=True)
    page_context = Column(String(500), nullable=False, comment="Page the feedback was sent from")
    user_agent = Column(String(500), nullable=True)
    # "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSON, nullable=True)

    status = Column(String(20), default=FEEDBACK_STATUS_NEW, nullable=False, index=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    user = relationship("User", foreign_keys=[user_id])
    responses = relationship(
        "FeedbackResponse",
        back_populates="feedback",
        cascade="all, delete-orphan",
        order_by="FeedbackResponse.created_at"
    )

    def __repr__(self):
        return f"<Feedback(id={self.id}, category={self.category}, status={self.status})>"


class FeedbackResponse(BaseModel):
    """Admin reply to a feedback entry."""

    __tablename__ = "feedback_responses"

    feedback_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("feedback.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    admin_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    response = Column(Text, nullable=False)

    feedback = relationship("Feedback", back_populates="responses")

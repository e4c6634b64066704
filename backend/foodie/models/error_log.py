"""
Error Log Model
Stores application errors for debugging and monitoring.

Captures comprehensive error information including:
- Timestamp and severity
- User context
- Request details
- Full error traceback
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, Uuid

from foodie.models.base import BaseModel


class ErrorLog(BaseModel):
    """
    Error Log Model

    Each unhandled error gets one row with everything needed to understand
    and reproduce it. Admins mark rows resolved from the admin area.
    """
    __tablename__ = "error_logs"

    timestamp = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    # Error classification
    error_type = Column(String(255), nullable=False, index=True)  # e.g., "OperationalError"
    error_code = Column(String(50), nullable=True)  # HTTP status code
    severity = Column(String(20), default="error", nullable=False)  # debug, info, warning, error, critical

    # Location info
    module = Column(String(255), nullable=True)
    function = Column(String(255), nullable=True)
    line_number = Column(String(20), nullable=True)

    # User context (nullable for unauthenticated requests)
    user_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    user_email = Column(String(255), nullable=True)

    # Request context
    request_method = Column(String(10), nullable=True)
    request_path = Column(String(500), nullable=True)
    request_query = Column(Text, nullable=True)
    request_headers = Column(JSON, nullable=True)  # Selected headers
    client_ip = Column(String(50), nullable=True)
    user_agent = Column(String(500), nullable=True)

    # Error details
    message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)
    context_data = Column(JSON, nullable=True)

    # Resolution tracking
    resolved = Column(Boolean, default=False, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Uuid(as_uuid=True), nullable=True)
    resolution_notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<ErrorLog(id={self.id}, type={self.error_type}, message={self.message[:50]}...)>"

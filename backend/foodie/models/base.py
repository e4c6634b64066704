"""
Base Model Class
Provides common fields and functionality for all database models.

All application models should inherit from BaseModel instead of Base directly.
This ensures consistent ID format (UUID) and automatic timestamp tracking.
Pure association tables (collection_recipes, collection_subscriptions) and
schema_migrations inherit from Base because their keys are natural keys.
"""

import uuid

from sqlalchemy import Column, DateTime, Uuid, func

from foodie.db.base import Base


class BaseModel(Base):
    """
    Abstract base model with common fields for all tables.

    Provides:
    - UUID primary key (native UUID on PostgreSQL, CHAR(32) elsewhere)
    - created_at timestamp (automatically set on insert)
    - updated_at timestamp (automatically updated on modification)

    Example:
        class Household(BaseModel):
            __tablename__ = "households"
            name = Column(String(255), nullable=False)
            # id, created_at, updated_at are inherited automatically
    """

    # Make this an abstract base class (no table created for BaseModel itself)
    __abstract__ = True

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,  # Auto-generate UUID v4 on insert
        nullable=False
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),  # Initial value on insert
        onupdate=func.now(),  # Update on every modification
        nullable=False
    )

    def __repr__(self):
        return f"<{self.__class__.__name__}(id={self.id})>"

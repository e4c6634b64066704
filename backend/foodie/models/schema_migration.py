"""
SchemaMigration Model
Bookkeeping for SQL migration files that have been applied.

version is the migration file name without the .sql extension
(e.g. "002_search_indexes").
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from foodie.db.base import Base


class SchemaMigration(Base):
    __tablename__ = "schema_migrations"

    version = Column(String(255), primary_key=True)
    executed_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    execution_time_ms = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<SchemaMigration(version={self.version})>"

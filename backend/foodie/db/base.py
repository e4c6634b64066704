"""
SQLAlchemy Declarative Base
Defines the base class for all SQLAlchemy models.

All database models (Household, Recipe, Collection, ...) inherit from this
base, directly or through foodie.models.base.BaseModel. SQLAlchemy uses it
to track every table for create_all().
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()

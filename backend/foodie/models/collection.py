"""
Collection Models
Named groupings of recipes, optionally shared with other households.

- Collection: owned by a household; public collections can be browsed and
  subscribed to by everyone
- CollectionRecipe: membership of a recipe in a collection (ordered)
- CollectionSubscription: a household following someone else's collection
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from foodie.core.constants import DEFAULT_COLLECTION_FILENAME, DEFAULT_COLLECTION_FILENAME_DARK
from foodie.db.base import Base
from foodie.models.base import BaseModel


def _utcnow():
    return datetime.now(timezone.utc)


class Collection(BaseModel):
    """
    Collection model.

    Fields:
        title / subtitle (str): Display text
        filename / filename_dark (str): Cover artwork for light and dark themes
        url_slug (str): Slug used in URLs
        show_overlay (bool): Draw the title over the cover artwork
        public (bool): Browsable and subscribable by other households
        household_id (UUID): Owning household
        parent_id (UUID): Collection this row was copied from
    """

    __tablename__ = "collections"

    title = Column(String(255), nullable=False)
    subtitle = Column(Text, nullable=True)
    filename = Column(String(255), nullable=False, default=DEFAULT_COLLECTION_FILENAME)
    filename_dark = Column(String(255), nullable=False, default=DEFAULT_COLLECTION_FILENAME_DARK)
    url_slug = Column(String(255), nullable=False)
    show_overlay = Column(Boolean, default=True, nullable=False)
    public = Column(Boolean, default=False, nullable=False, index=True)

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("collections.id", ondelete="SET NULL"),
        nullable=True
    )

    household = relationship("Household")
    recipe_links = relationship(
        "CollectionRecipe",
        back_populates="collection",
        cascade="all, delete-orphan",
        order_by="CollectionRecipe.display_order"
    )

    def __repr__(self):
        return f"<Collection(id={self.id}, title={self.title})>"


class CollectionRecipe(Base):
    """Recipe membership in a collection."""

    __tablename__ = "collection_recipes"

    collection_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True
    )
    recipe_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipes.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )
    added_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    collection = relationship("Collection", back_populates="recipe_links")
    recipe = relationship("Recipe")

    def __repr__(self):
        return f"<CollectionRecipe(collection_id={self.collection_id}, recipe_id={self.recipe_id})>"


class CollectionSubscription(Base):
    """A household following a public collection owned by another household."""

    __tablename__ = "collection_subscriptions"

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        primary_key=True
    )
    collection_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("collections.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )
    subscribed_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<CollectionSubscription(household_id={self.household_id}, collection_id={self.collection_id})>"

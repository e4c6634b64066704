"""
Ingredient Model
Ingredients used by recipes and shopping lists.

Ingredients are owned by a household. Other households reach them through
recipes in subscribed collections or through the essentials collection.
Editing an ingredient you do not own creates a household copy whose
parent_id points at the original (copy-on-write).
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from foodie.models.base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model.

    Fields:
        name (str): Display name, e.g. "Brown onion"
        fresh (bool): Fresh produce (fresh list) or pantry item
        cost (float): Unit cost used for shopping list totals
        stockcode (str): Supermarket product code
        supermarket_category_id / pantry_category_id: Shopping list ordering
        public (bool): Visible to every household
        household_id (UUID): Owning household
        parent_id (UUID): Ingredient this row was copied from
    """

    __tablename__ = "ingredients"

    name = Column(String(255), nullable=False, index=True, comment="Ingredient name")
    fresh = Column(Boolean, default=False, nullable=False, comment="Fresh produce flag")
    cost = Column(Float, default=0.0, nullable=False, comment="Unit cost")
    stockcode = Column(String(50), nullable=True, comment="Supermarket stock code")

    supermarket_category_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("category_supermarket.id", ondelete="SET NULL"),
        nullable=True
    )
    pantry_category_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("category_pantry.id", ondelete="SET NULL"),
        nullable=True
    )

    public = Column(Boolean, default=False, nullable=False)

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning household"
    )

    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("ingredients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Original ingredient when this row is a copy"
    )

    supermarket_category = relationship("SupermarketCategory")
    pantry_category = relationship("PantryCategory")

    def __repr__(self):
        return f"<Ingredient(id={self.id}, name={self.name})>"

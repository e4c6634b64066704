"""
Shopping List Model
Denormalised per-week shopping list lines.

Lines are generated from the week's plan (one line per recipe ingredient)
or added by hand. Names, costs and categories are copied onto the line so
the list stays stable if recipes or ingredients change later.
"""

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, String, Uuid

from foodie.models.base import BaseModel


class ShoppingListItem(BaseModel):
    """
    One line of a household's weekly shopping list.

    Fields:
        week / year (int): ISO week the line belongs to
        fresh (bool): Fresh list (True) or pantry list (False)
        name (str): Display name
        sort (int): Position within its list
        cost (float): Line cost
        purchased (bool): Ticked off
        recipe_id / ingredient_id / recipe_ingredient_id: Source references
        quantity / measurement (str): Amount to buy
        supermarket_category / pantry_category (str): Category names
    """

    __tablename__ = "shopping_lists"

    week = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    fresh = Column(Boolean, default=True, nullable=False)
    name = Column(String(255), nullable=False)
    sort = Column(Integer, default=0, nullable=False)
    cost = Column(Float, default=0.0, nullable=False)
    stockcode = Column(String(50), nullable=True)
    purchased = Column(Boolean, default=False, nullable=False)

    recipe_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipes.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    ingredient_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("ingredients.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    recipe_ingredient_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipe_ingredients.id", ondelete="SET NULL"),
        nullable=True
    )

    quantity = Column(String(50), nullable=True)
    measurement = Column(String(100), nullable=True)
    supermarket_category = Column(String(100), nullable=True)
    pantry_category = Column(String(100), nullable=True)

    def __repr__(self):
        return f"<ShoppingListItem(id={self.id}, name={self.name}, week={self.week}/{self.year})>"

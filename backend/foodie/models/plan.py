"""
Plan Model
Assignment of a recipe to an ISO week for a household.

A week plan is the set of Plan rows sharing (household_id, week, year).
shop_qty decides whether the shopping list uses the 2-person or 4-person
quantities of the recipe.
"""

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from foodie.core.constants import DEFAULT_SHOP_QTY
from foodie.models.base import BaseModel


class Plan(BaseModel):
    """One planned recipe in one week."""

    __tablename__ = "plans"
    __table_args__ = (
        UniqueConstraint("household_id", "week", "year", "recipe_id", name="uq_plans_household_week_recipe"),
    )

    week = Column(Integer, nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)

    recipe_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    shop_qty = Column(Integer, default=DEFAULT_SHOP_QTY, nullable=False, comment="2 or 4 people")

    recipe = relationship("Recipe")

    def __repr__(self):
        return f"<Plan(week={self.week}, year={self.year}, recipe_id={self.recipe_id})>"

"""
Recipe Models
Recipes and their ingredient lines.

Each recipe contains:
- Basic information (name, description, prep/cook time)
- Classification (season, primary protein type, secondary carb type)
- Stored files (hero image, printable PDF)
- Ingredient lines with quantities for 2 and 4 people

Recipes belong to a household and are grouped into collections.
A recipe with shopping list history is archived instead of deleted.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from foodie.core.constants import DEFAULT_SHOP_QTY
from foodie.models.base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Fields:
        name (str): Recipe name (e.g., "Chicken Katsu Curry")
        description (str): Short description / method notes
        prep_time / cook_time (int): Minutes
        archived (bool): Hidden from planning but kept for shopping history
        season_id, primary_type_id, secondary_type_id: Lookup references
        url_slug (str): Slug used in URLs
        image_filename / pdf_filename (str): Stored file names
        shop_qty (int): Default number of people to shop for (2 or 4)
        household_id (UUID): Owning household
        parent_id (UUID): Recipe this row was copied from
    """

    __tablename__ = "recipes"

    name = Column(String(255), nullable=False, index=True, comment="Recipe name")
    description = Column(Text, nullable=True)
    prep_time = Column(Integer, nullable=True, comment="Preparation time in minutes")
    cook_time = Column(Integer, nullable=True, comment="Cooking time in minutes")
    archived = Column(Boolean, default=False, nullable=False, index=True)

    season_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("seasons.id", ondelete="SET NULL"),
        nullable=True
    )
    primary_type_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("type_proteins.id", ondelete="SET NULL"),
        nullable=True,
        comment="Main protein"
    )
    secondary_type_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("type_carbs.id", ondelete="SET NULL"),
        nullable=True,
        comment="Main carbohydrate"
    )

    public = Column(Boolean, default=False, nullable=False)
    url_slug = Column(String(255), nullable=True)
    image_filename = Column(String(255), nullable=True)
    pdf_filename = Column(String(255), nullable=True)
    shop_qty = Column(Integer, default=DEFAULT_SHOP_QTY, nullable=False)

    household_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("households.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning household"
    )

    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Original recipe when this row is a copy"
    )

    season = relationship("Season")
    primary_type = relationship("ProteinType")
    secondary_type = relationship("CarbType")
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.created_at"
    )

    def __repr__(self):
        return f"<Recipe(id={self.id}, name={self.name})>"


class RecipeIngredient(BaseModel):
    """
    One ingredient line of a recipe.

    quantity is for two people, quantity4 for four. Quantities are kept as
    text because recipes use values like "1/2" or "a pinch".
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    ingredient_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("ingredients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    quantity = Column(String(50), nullable=True, comment="Quantity for 2 people")
    quantity4 = Column(String(50), nullable=True, comment="Quantity for 4 people")

    measurement_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("measurements.id", ondelete="SET NULL"),
        nullable=True
    )
    preparation_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("preparations.id", ondelete="SET NULL"),
        nullable=True
    )

    primary_ingredient = Column(Boolean, default=False, nullable=False)

    parent_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("recipe_ingredients.id", ondelete="SET NULL"),
        nullable=True,
        comment="Original line when this row is a copy"
    )

    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient")
    measurement = relationship("Measurement")
    preparation = relationship("Preparation")

    def __repr__(self):
        return f"<RecipeIngredient(recipe_id={self.recipe_id}, ingredient_id={self.ingredient_id})>"

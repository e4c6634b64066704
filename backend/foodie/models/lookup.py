"""
Lookup Models
Small reference tables used by recipes and ingredients.

- Season: when a recipe is best cooked
- ProteinType / CarbType: a recipe's primary and secondary type, used by
  the randomizer to avoid repeats within one week
- Measurement / Preparation: recipe ingredient units and prep notes
- SupermarketCategory / PantryCategory: shopping list ordering
"""

from sqlalchemy import Column, Integer, String

from foodie.models.base import BaseModel


class LookupMixin:
    """Unique name plus optional display order."""

    name = Column(String(100), unique=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<{self.__class__.__name__}(name={self.name})>"


class Season(LookupMixin, BaseModel):
    __tablename__ = "seasons"


class ProteinType(LookupMixin, BaseModel):
    __tablename__ = "type_proteins"


class CarbType(LookupMixin, BaseModel):
    __tablename__ = "type_carbs"


class Measurement(LookupMixin, BaseModel):
    __tablename__ = "measurements"


class Preparation(LookupMixin, BaseModel):
    __tablename__ = "preparations"


class SupermarketCategory(LookupMixin, BaseModel):
    __tablename__ = "category_supermarket"


class PantryCategory(LookupMixin, BaseModel):
    __tablename__ = "category_pantry"

"""
Household Model
A household is the unit of ownership in Family Foodie.

Collections, recipes, ingredients, plans and shopping lists all belong to a
household. Every user belongs to exactly one household; new users get their
own household unless they accept an invitation to an existing one.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from foodie.models.base import BaseModel


class Household(BaseModel):
    """
    Household model.

    Fields:
        id (UUID): Primary key, inherited from BaseModel
        name (str): Display name, e.g. "The Smith Household"

    Relationships:
        users: Members of the household
        invitations: Invitations sent on behalf of the household
    """

    __tablename__ = "households"

    name = Column(
        String(255),
        nullable=False,
        comment="Household display name"
    )

    users = relationship("User", back_populates="household", order_by="User.created_at")
    invitations = relationship(
        "HouseholdInvitation",
        back_populates="household",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Household(id={self.id}, name={self.name})>"

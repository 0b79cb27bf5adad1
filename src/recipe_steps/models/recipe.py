"""
Recipe model.

A recipe owns its steps, their dependency edges and their ingredients; all
three are deleted with it.
"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        title: Recipe title (required)
        description: Optional description
        servings: Free-text servings (e.g., "Serves 4")
        steps: Ordered steps (by step_num)
        output_uses: Dependency edges between the recipe's steps
    """

    __tablename__ = "recipes"

    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    servings = Column(String(100), nullable=True)

    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStep.step_num",
    )
    output_uses = relationship(
        "StepOutputUse",
        back_populates="recipe",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, title='{self.title}')"

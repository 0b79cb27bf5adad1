"""
Recipe step models.

This module contains:
- RecipeStep: One numbered step of a recipe
- StepOutputUse: "input step uses the output of output step" edge, keyed by
  step number
- StepIngredient: An ingredient entered on a step
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class RecipeStep(BaseModel):
    """
    A step of a recipe.

    Attributes:
        recipe_id: Owning recipe
        step_num: 1-based position; unique per recipe
        title: Optional short title
        description: Step instructions
        ingredients: Ingredients entered on this step
    """

    __tablename__ = "recipe_steps"

    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step_num = Column(Integer, nullable=False)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="steps")
    ingredients = relationship(
        "StepIngredient",
        back_populates="step",
        cascade="all, delete-orphan",
        order_by="StepIngredient.id",
    )

    __table_args__ = (
        UniqueConstraint("recipe_id", "step_num", name="uq_recipe_step_num"),
    )

    def __repr__(self) -> str:
        return f"RecipeStep(id={self.id}, recipe_id={self.recipe_id}, step_num={self.step_num})"


class StepOutputUse(BaseModel):
    """
    Dependency edge between two steps of the same recipe.

    Keyed by step number, so it must be rewritten whenever steps are
    renumbered.

    Attributes:
        recipe_id: Owning recipe
        output_step_num: Step whose output is used
        input_step_num: Step that uses it
    """

    __tablename__ = "step_output_uses"

    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    output_step_num = Column(Integer, nullable=False)
    input_step_num = Column(Integer, nullable=False)

    recipe = relationship("Recipe", back_populates="output_uses")

    __table_args__ = (
        UniqueConstraint(
            "recipe_id", "output_step_num", "input_step_num", name="uq_step_output_use"
        ),
        CheckConstraint("output_step_num > 0", name="ck_output_step_positive"),
        CheckConstraint("output_step_num < input_step_num", name="ck_output_before_input"),
        Index("idx_step_output_use_input", "recipe_id", "input_step_num"),
    )

    def __repr__(self) -> str:
        return (
            f"StepOutputUse(recipe_id={self.recipe_id}, "
            f"{self.output_step_num}->{self.input_step_num})"
        )


class StepIngredient(BaseModel):
    """
    Ingredient entered on a step.

    Attributes:
        recipe_id: Owning recipe (duplicate checks span the whole recipe)
        step_id: Step the ingredient was entered on
        quantity: Unscaled base quantity; NULL for unit-only ingredients
        unit: Unit name as entered
        name: Ingredient name as entered
    """

    __tablename__ = "step_ingredients"

    recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    step_id = Column(
        Integer, ForeignKey("recipe_steps.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column(Float, nullable=True)
    unit = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)

    step = relationship("RecipeStep", back_populates="ingredients")

    __table_args__ = (
        CheckConstraint("quantity IS NULL OR quantity > 0", name="ck_step_ingredient_quantity"),
    )

    def __repr__(self) -> str:
        return f"StepIngredient(id={self.id}, unit='{self.unit}', name='{self.name}')"

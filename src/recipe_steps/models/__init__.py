"""
Database models for Recipe Steps.

This package contains all SQLAlchemy ORM models used by the persistence
service.
"""

from .base import Base, BaseModel
from .recipe import Recipe
from .recipe_step import RecipeStep, StepIngredient, StepOutputUse

__all__ = [
    "Base",
    "BaseModel",
    "Recipe",
    "RecipeStep",
    "StepIngredient",
    "StepOutputUse",
]

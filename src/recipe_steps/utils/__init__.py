"""Utilities package for the recipe-steps engine."""

from .config import get_config, reset_config

__all__ = [
    "get_config",
    "reset_config",
]

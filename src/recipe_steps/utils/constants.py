"""
Constants for the Recipe Steps engine.

This module defines all system-wide constants including:
- Application metadata
- Field length limits and quantity bounds
- Scale factor bounds
- Culinary fraction glyphs used for quantity display
- Error messages
"""

from typing import Dict, List, Tuple

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Recipe Steps"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "recipe_steps.db"

# ============================================================================
# Validation Limits
# ============================================================================

# String field lengths
MAX_RECIPE_TITLE_LENGTH = 200
MAX_RECIPE_DESCRIPTION_LENGTH = 2000
MAX_SERVINGS_LENGTH = 100
MAX_STEP_TITLE_LENGTH = 200
MAX_STEP_DESCRIPTION_LENGTH = 5000
MAX_UNIT_NAME_LENGTH = 50
MAX_INGREDIENT_NAME_LENGTH = 100

# Ingredient quantity range (inclusive)
MIN_QUANTITY = 0.001
MAX_QUANTITY = 99999

# ============================================================================
# Scaling
# ============================================================================

DEFAULT_SCALE_FACTOR = 1.0
DEFAULT_SCALE_MIN = 0.25
DEFAULT_SCALE_MAX = 50.0
DEFAULT_SCALE_STEP = 0.25

# Display precision for scaled quantities (decimal places)
QUANTITY_PRECISION = 2

SCALE_SUFFIX = "×"

# (numerator, denominator) -> glyph
FRACTION_GLYPHS: Dict[Tuple[int, int], str] = {
    (1, 2): "½",
    (1, 3): "⅓",
    (2, 3): "⅔",
    (1, 4): "¼",
    (3, 4): "¾",
    (1, 5): "⅕",
    (2, 5): "⅖",
    (3, 5): "⅗",
    (4, 5): "⅘",
    (1, 6): "⅙",
    (5, 6): "⅚",
    (1, 8): "⅛",
    (3, 8): "⅜",
    (5, 8): "⅝",
    (7, 8): "⅞",
}

# ============================================================================
# Reordering
# ============================================================================

REORDER_POLICY_DROP = "drop"
REORDER_POLICY_BLOCK = "block"

REORDER_POLICIES: List[str] = [
    REORDER_POLICY_DROP,
    REORDER_POLICY_BLOCK,
]

DIRECTION_UP = "up"
DIRECTION_DOWN = "down"

# ============================================================================
# Field Names (used to attach validation errors to form fields)
# ============================================================================

FIELD_USES_STEPS = "uses_steps"
FIELD_QUANTITY = "quantity"
FIELD_UNIT_NAME = "unit_name"
FIELD_INGREDIENT_NAME = "ingredient_name"
FIELD_STEP_TITLE = "step_title"
FIELD_DESCRIPTION = "description"
FIELD_SCALE_FACTOR = "scale_factor"
FIELD_TITLE = "title"
FIELD_SERVINGS = "servings"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_SELF_REFERENCE = "Cannot reference the current step"
ERROR_INVALID_STEP_NUMBER = "Invalid step number"
ERROR_FORWARD_REFERENCE = "Can only reference previous steps"
ERROR_DUPLICATE_INGREDIENT = "This ingredient is already in the recipe"
ERROR_INVALID_QUANTITY = "Quantity must be a valid number"
ERROR_QUANTITY_RANGE = "Quantity must be between 0.001 and 99,999"
ERROR_UNIT_REQUIRED = "Unit name is required"
ERROR_UNIT_TOO_LONG = f"Unit name must be {MAX_UNIT_NAME_LENGTH} characters or less"
ERROR_INGREDIENT_REQUIRED = "Ingredient name is required"
ERROR_INGREDIENT_TOO_LONG = (
    f"Ingredient name must be {MAX_INGREDIENT_NAME_LENGTH} characters or less"
)
ERROR_STEP_TITLE_TOO_LONG = f"Step title must be {MAX_STEP_TITLE_LENGTH} characters or less"
ERROR_STEP_DESCRIPTION_REQUIRED = "Step description is required"
ERROR_STEP_DESCRIPTION_TOO_LONG = "Description must be 5,000 characters or less"
ERROR_TITLE_REQUIRED = "Title is required"
ERROR_TITLE_TOO_LONG = f"Title must be {MAX_RECIPE_TITLE_LENGTH} characters or less"
ERROR_RECIPE_DESCRIPTION_TOO_LONG = "Description must be 2,000 characters or less"
ERROR_SERVINGS_TOO_LONG = f"Servings must be {MAX_SERVINGS_LENGTH} characters or less"
ERROR_INVALID_SCALE_FACTOR = "Scale factor must be a positive number"

"""
Input validation functions for recipe steps and ingredients.

This module provides validation functions for all user inputs including:
- String validation (required fields, length limits)
- Ingredient quantity validation
- Step and recipe text fields
- Scale factor validation

All validation functions raise a ValidationError subclass on failure and
return None on success.
"""

import math
from typing import Optional

from recipe_steps.services.exceptions import (
    OutOfRangeError,
    RequiredFieldError,
    TooLongError,
)

from .constants import (
    ERROR_INGREDIENT_REQUIRED,
    ERROR_INGREDIENT_TOO_LONG,
    ERROR_INVALID_QUANTITY,
    ERROR_INVALID_SCALE_FACTOR,
    ERROR_QUANTITY_RANGE,
    ERROR_RECIPE_DESCRIPTION_TOO_LONG,
    ERROR_SERVINGS_TOO_LONG,
    ERROR_STEP_DESCRIPTION_REQUIRED,
    ERROR_STEP_DESCRIPTION_TOO_LONG,
    ERROR_STEP_TITLE_TOO_LONG,
    ERROR_TITLE_REQUIRED,
    ERROR_TITLE_TOO_LONG,
    ERROR_UNIT_REQUIRED,
    ERROR_UNIT_TOO_LONG,
    FIELD_DESCRIPTION,
    FIELD_INGREDIENT_NAME,
    FIELD_QUANTITY,
    FIELD_SCALE_FACTOR,
    FIELD_SERVINGS,
    FIELD_STEP_TITLE,
    FIELD_TITLE,
    FIELD_UNIT_NAME,
    MAX_INGREDIENT_NAME_LENGTH,
    MAX_QUANTITY,
    MAX_RECIPE_DESCRIPTION_LENGTH,
    MAX_RECIPE_TITLE_LENGTH,
    MAX_SERVINGS_LENGTH,
    MAX_STEP_DESCRIPTION_LENGTH,
    MAX_STEP_TITLE_LENGTH,
    MAX_UNIT_NAME_LENGTH,
    MIN_QUANTITY,
)


# ============================================================================
# Generic Validators
# ============================================================================


def validate_required_string(value: Optional[str], message: str, field: str) -> None:
    """
    Validate that a string field is not empty after trimming.

    Args:
        value: The string value to validate
        message: Error message to raise with
        field: Name of the field for error attachment

    Raises:
        RequiredFieldError: If value is None or blank
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        raise RequiredFieldError(message, field=field)


def validate_string_length(
    value: Optional[str], max_length: int, message: str, field: str
) -> None:
    """
    Validate that a trimmed string doesn't exceed maximum length.

    Args:
        value: The string value to validate (None passes)
        max_length: Maximum allowed length
        message: Error message to raise with
        field: Name of the field for error attachment

    Raises:
        TooLongError: If the trimmed value is longer than max_length
    """
    if value and len(value.strip()) > max_length:
        raise TooLongError(message, field=field, max_length=max_length)


def validate_finite_number(value, message: str, field: str) -> float:
    """
    Coerce a value to a finite float.

    Returns:
        The value as float

    Raises:
        OutOfRangeError: If value is not numeric, NaN or infinite
    """
    if isinstance(value, bool):
        raise OutOfRangeError(message, field=field, value=value)
    try:
        num_value = float(value)
    except (TypeError, ValueError):
        raise OutOfRangeError(message, field=field, value=value)
    if not math.isfinite(num_value):
        raise OutOfRangeError(message, field=field, value=value)
    return num_value


# ============================================================================
# Ingredient Fields
# ============================================================================


def validate_quantity(quantity) -> None:
    """
    Validate an ingredient quantity.

    None is accepted for unit-only ingredients ("salt to taste"). Any other
    value must be finite and within [MIN_QUANTITY, MAX_QUANTITY].

    Raises:
        OutOfRangeError: If quantity is not a finite number in range
    """
    if quantity is None:
        return
    num_value = validate_finite_number(quantity, ERROR_INVALID_QUANTITY, FIELD_QUANTITY)
    if num_value <= 0 or num_value < MIN_QUANTITY or num_value > MAX_QUANTITY:
        raise OutOfRangeError(ERROR_QUANTITY_RANGE, field=FIELD_QUANTITY, value=quantity)


def validate_unit_name(unit_name: Optional[str]) -> None:
    """Validate a unit name: required, at most 50 characters."""
    validate_required_string(unit_name, ERROR_UNIT_REQUIRED, FIELD_UNIT_NAME)
    validate_string_length(unit_name, MAX_UNIT_NAME_LENGTH, ERROR_UNIT_TOO_LONG, FIELD_UNIT_NAME)


def validate_ingredient_name(name: Optional[str]) -> None:
    """Validate an ingredient name: required, at most 100 characters."""
    validate_required_string(name, ERROR_INGREDIENT_REQUIRED, FIELD_INGREDIENT_NAME)
    validate_string_length(
        name, MAX_INGREDIENT_NAME_LENGTH, ERROR_INGREDIENT_TOO_LONG, FIELD_INGREDIENT_NAME
    )


# ============================================================================
# Step Fields
# ============================================================================


def validate_step_title(title: Optional[str]) -> None:
    """Validate an optional step title (at most 200 characters)."""
    validate_string_length(
        title, MAX_STEP_TITLE_LENGTH, ERROR_STEP_TITLE_TOO_LONG, FIELD_STEP_TITLE
    )


def validate_step_description(description: Optional[str]) -> None:
    """Validate a step description: required, at most 5000 characters."""
    validate_required_string(description, ERROR_STEP_DESCRIPTION_REQUIRED, FIELD_DESCRIPTION)
    validate_string_length(
        description,
        MAX_STEP_DESCRIPTION_LENGTH,
        ERROR_STEP_DESCRIPTION_TOO_LONG,
        FIELD_DESCRIPTION,
    )


# ============================================================================
# Recipe Fields
# ============================================================================


def validate_recipe_title(title: Optional[str]) -> None:
    """Validate a recipe title: required, at most 200 characters."""
    validate_required_string(title, ERROR_TITLE_REQUIRED, FIELD_TITLE)
    validate_string_length(title, MAX_RECIPE_TITLE_LENGTH, ERROR_TITLE_TOO_LONG, FIELD_TITLE)


def validate_recipe_description(description: Optional[str]) -> None:
    validate_string_length(
        description,
        MAX_RECIPE_DESCRIPTION_LENGTH,
        ERROR_RECIPE_DESCRIPTION_TOO_LONG,
        FIELD_DESCRIPTION,
    )


def validate_servings(servings: Optional[str]) -> None:
    validate_string_length(
        servings, MAX_SERVINGS_LENGTH, ERROR_SERVINGS_TOO_LONG, FIELD_SERVINGS
    )


# ============================================================================
# Scaling
# ============================================================================


def validate_scale_factor(factor) -> float:
    """
    Validate a scale factor.

    The engine only requires the factor to be positive and finite; UI bounds
    are applied by the stepper, not here.

    Returns:
        The factor as float

    Raises:
        OutOfRangeError: If factor is not a positive finite number
    """
    value = validate_finite_number(factor, ERROR_INVALID_SCALE_FACTOR, FIELD_SCALE_FACTOR)
    if value <= 0:
        raise OutOfRangeError(ERROR_INVALID_SCALE_FACTOR, field=FIELD_SCALE_FACTOR, value=factor)
    return value

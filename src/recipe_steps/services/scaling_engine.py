"""
Scaling engine for display-time ingredient quantities.

This module provides:
- Quantity scaling by a recipe-wide factor (rounded to 2 decimal places)
- Culinary fraction formatting ("1 ½", "⅓", "2")
- Scale factor display and stepper arithmetic
- Scaling of numbers inside free-text servings strings

Rounding Strategy:
- All arithmetic goes through Decimal built from str(value), so binary
  floating-point artifacts (0.7 + 0.1 == 0.7999999999999999) never reach the
  caller. Results are rounded half-up and returned as float.
- Stored quantities are never modified; scaling only produces display values.
"""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from recipe_steps.services.dto import Ingredient, ScaledIngredient
from recipe_steps.services.logging_utils import get_service_logger, log_operation
from recipe_steps.utils.config import get_config
from recipe_steps.utils.constants import (
    FRACTION_GLYPHS,
    QUANTITY_PRECISION,
    SCALE_SUFFIX,
)
from recipe_steps.utils.validators import validate_scale_factor

logger = get_service_logger(__name__)

_CENT = Decimal(1).scaleb(-QUANTITY_PRECISION)
_THOUSANDTH = Decimal("0.001")
_NUMBER_PATTERN = re.compile(r"\d+\.?\d*")


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _trim(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros."""
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _round(value: Decimal, places: Decimal = _CENT) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


def _match_fraction(fraction: Decimal) -> Optional[str]:
    """Return the glyph whose value rounds to the same hundredth as `fraction`."""
    target = _round(fraction)
    for (numerator, denominator), glyph in FRACTION_GLYPHS.items():
        if _round(Decimal(numerator) / Decimal(denominator)) == target:
            return glyph
    return None


# ============================================================================
# Scaling
# ============================================================================


def scale(quantity: Optional[float], factor: float) -> Optional[float]:
    """
    Multiply a quantity by a scale factor, rounded to 2 decimal places.

    Args:
        quantity: Unscaled base quantity, or None for unit-only ingredients
        factor: Positive, finite scale factor

    Returns:
        Scaled quantity as float, or None when quantity is None

    Raises:
        OutOfRangeError: If factor is not positive and finite

    Example:
        >>> scale(2, 0.5)
        1.0
        >>> scale(0.333, 3)
        1.0
    """
    factor = validate_scale_factor(factor)
    if quantity is None:
        return None
    return float(_round(_to_decimal(quantity) * _to_decimal(factor)))


def scale_ingredients(ingredients: Iterable[Ingredient], factor: float) -> List[ScaledIngredient]:
    """
    Compute display values for a list of ingredients.

    Args:
        ingredients: Stored ingredients (unscaled)
        factor: Positive, finite scale factor

    Returns:
        One ScaledIngredient per input, in the same order
    """
    factor = validate_scale_factor(factor)
    result = []
    for ingredient in ingredients:
        scaled = scale(ingredient.quantity, factor)
        result.append(
            ScaledIngredient(
                ingredient=ingredient,
                quantity=scaled,
                display=format_quantity(scaled, ingredient.unit),
            )
        )
    log_operation(
        logger,
        operation="scale_ingredients",
        outcome="success",
        level=logging.DEBUG,
        factor=factor,
        count=len(result),
    )
    return result


def scale_servings_text(text: Optional[str], factor: float) -> str:
    """
    Scale every number found in a servings string.

    Whole results render as integers; anything else uses fraction formatting.

    Example:
        >>> scale_servings_text("Serves 4", 2)
        'Serves 8'
        >>> scale_servings_text("Feeds 2-4 people", 1.5)
        'Feeds 3-6 people'
        >>> scale_servings_text("Makes 3 loaves", 0.5)
        'Makes 1 ½ loaves'
    """
    if not text:
        return ""
    factor = validate_scale_factor(factor)

    def _replace(match: "re.Match") -> str:
        return format_number(scale(float(match.group(0)), factor))

    return _NUMBER_PATTERN.sub(_replace, text)


# ============================================================================
# Formatting
# ============================================================================


def format_number(quantity: Optional[float]) -> str:
    """
    Format a number using culinary fractions where one fits.

    - None or NaN renders as ""
    - Whole numbers render as integers ("3")
    - A fractional part that rounds to the same hundredth as a common
      fraction renders as a glyph
      ("1 ½", "⅓")
    - Anything else renders as a decimal with trailing zeros trimmed ("1.3")
    """
    if quantity is None or quantity != quantity:
        return ""

    value = _round(_to_decimal(quantity), _THOUSANDTH)
    sign = "-" if value < 0 else ""
    value = abs(value)

    whole = int(value)
    fraction = value - whole
    if fraction == 0:
        return f"{sign}{whole}" if whole else "0"

    glyph = _match_fraction(fraction)
    if glyph is None:
        return f"{sign}{_trim(value)}"
    if whole == 0:
        return f"{sign}{glyph}"
    return f"{sign}{whole} {glyph}"


def format_quantity(quantity: Optional[float], unit: Optional[str] = "") -> str:
    """
    Format a display quantity followed by its unit.

    Args:
        quantity: Quantity to render (usually the output of scale()), or None
        unit: Unit name; omitted from the output when empty

    Returns:
        "1 ½ cup", "2", or the unit alone when quantity is None

    Example:
        >>> format_quantity(1.5, "cup")
        '1 ½ cup'
        >>> format_quantity(scale(2, 0.5), "")
        '1'
        >>> format_quantity(None, "pinch")
        'pinch'
    """
    unit_text = (unit or "").strip()
    if quantity is None:
        return unit_text
    number = format_number(quantity)
    return f"{number} {unit_text}" if unit_text else number


def format_scale_factor(value: float) -> str:
    """
    Format a scale factor for display.

    Example:
        >>> format_scale_factor(2)
        '2×'
        >>> format_scale_factor(1.25)
        '1.25×'
        >>> format_scale_factor(0.5)
        '0.5×'
    """
    rounded = _round(_to_decimal(value))
    if rounded == rounded.to_integral_value():
        return f"{int(rounded)}{SCALE_SUFFIX}"
    return f"{_trim(rounded)}{SCALE_SUFFIX}"


# ============================================================================
# Stepper
# ============================================================================


def clamp_step(
    value: float,
    direction: int = 1,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    step: Optional[float] = None,
) -> float:
    """
    Move a scale factor one increment up or down, clamped to [minimum, maximum].

    Bounds default to the configured scale bounds (0.25, 50, 0.25).

    Args:
        value: Current scale factor
        direction: 1 to increment, -1 to decrement
        minimum: Lower bound (inclusive)
        maximum: Upper bound (inclusive)
        step: Increment size

    Returns:
        New scale factor, rounded to 2 decimal places

    Raises:
        ValueError: If direction is not 1/-1, step is not positive, or
            minimum > maximum

    Example:
        >>> clamp_step(0.7, 1, minimum=0.1, maximum=5, step=0.1)
        0.8
        >>> clamp_step(50, 1)
        50.0
    """
    config = get_config()
    minimum = config.scale_min if minimum is None else minimum
    maximum = config.scale_max if maximum is None else maximum
    step = config.scale_step if step is None else step

    if direction not in (1, -1):
        raise ValueError("direction must be 1 or -1")
    if step <= 0:
        raise ValueError("step must be > 0")
    if minimum > maximum:
        raise ValueError("minimum must be <= maximum")

    moved = _round(_to_decimal(value) + _to_decimal(step) * direction)
    return float(min(_to_decimal(maximum), max(_to_decimal(minimum), moved)))


def increment_scale(value: float, **bounds) -> float:
    """Increase a scale factor by one step (see clamp_step)."""
    return clamp_step(value, 1, **bounds)


def decrement_scale(value: float, **bounds) -> float:
    """Decrease a scale factor by one step (see clamp_step)."""
    return clamp_step(value, -1, **bounds)

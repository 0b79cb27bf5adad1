"""
Tests for the scaling engine.

Tests cover:
- scale() rounding and factor validation
- Culinary fraction formatting
- Scale factor labels and the stepper
- Scaling of servings text
"""

import math

import pytest

from recipe_steps.services.dto import Ingredient
from recipe_steps.services.exceptions import OutOfRangeError
from recipe_steps.services.scaling_engine import (
    clamp_step,
    decrement_scale,
    format_number,
    format_quantity,
    format_scale_factor,
    increment_scale,
    scale,
    scale_ingredients,
    scale_servings_text,
)


class TestScale:
    """Tests for scale()."""

    def test_half_of_two_is_one(self):
        assert scale(2, 0.5) == 1

    def test_rounds_to_two_places(self):
        assert scale(1, 1 / 3) == 0.33
        assert scale(0.333, 3) == 1.0

    def test_rounds_half_up(self):
        assert scale(0.125, 1) == 0.13

    def test_no_float_drift(self):
        assert scale(0.1, 3) == 0.3

    def test_none_quantity_passes_through(self):
        assert scale(None, 2) is None

    @pytest.mark.parametrize("factor", [0, -1, float("nan"), float("inf"), "abc", None])
    def test_invalid_factor_raises(self, factor):
        with pytest.raises(OutOfRangeError) as exc_info:
            scale(1, factor)
        assert exc_info.value.field == "scale_factor"

    def test_scale_ingredients_keeps_order_and_source(self):
        ingredients = [Ingredient(2, "cup", "flour"), Ingredient(None, "pinch", "salt")]

        result = scale_ingredients(ingredients, 0.75)

        assert [s.ingredient for s in result] == ingredients
        assert result[0].quantity == 1.5
        assert result[0].display == "1 ½ cup"
        assert result[1].quantity is None
        assert result[1].display == "pinch"
        # stored values untouched
        assert ingredients[0].quantity == 2


class TestFormatNumber:
    """Tests for fraction formatting."""

    def test_whole_numbers(self):
        assert format_number(3) == "3"
        assert format_number(3.0) == "3"
        assert format_number(0) == "0"

    def test_mixed_fraction(self):
        assert format_number(1.5) == "1 ½"
        assert format_number(2.25) == "2 ¼"
        assert format_number(0.75) == "¾"

    def test_thirds_at_two_places(self):
        assert format_number(0.33) == "⅓"
        assert format_number(1.67) == "1 ⅔"

    def test_eighths(self):
        assert format_number(0.125) == "⅛"
        assert format_number(0.375) == "⅜"

    def test_no_matching_fraction_uses_decimal(self):
        assert format_number(1.3) == "1.3"
        assert format_number(0.07) == "0.07"

    @pytest.mark.parametrize("quantity", [1.12, 1.16, 1.21, 1.34, 1.41, 1.84])
    def test_near_miss_uses_decimal(self, quantity):
        assert format_number(quantity) == str(quantity)

    def test_fraction_matches_at_display_precision(self):
        assert format_number(1.33) == "1 ⅓"
        assert format_number(1.13) == "1 ⅛"
        assert format_number(1.17) == "1 ⅙"

    def test_none_and_nan(self):
        assert format_number(None) == ""
        assert format_number(math.nan) == ""


class TestFormatQuantity:
    """Tests for format_quantity()."""

    def test_round_trip_whole_number(self):
        assert format_quantity(scale(2, 0.5), "") == "1"

    def test_with_unit(self):
        assert format_quantity(1.5, "cup") == "1 ½ cup"

    def test_near_miss_keeps_decimal(self):
        assert format_quantity(1.21, "cup") == "1.21 cup"

    def test_without_quantity(self):
        assert format_quantity(None, "pinch") == "pinch"


class TestFormatScaleFactor:
    """Tests for scale labels."""

    def test_whole(self):
        assert format_scale_factor(2) == "2×"
        assert format_scale_factor(1.0) == "1×"

    def test_fractional(self):
        assert format_scale_factor(1.25) == "1.25×"
        assert format_scale_factor(0.5) == "0.5×"


class TestStepper:
    """Tests for clamp_step() and its wrappers."""

    def test_step_by_tenth_is_exact(self):
        assert clamp_step(0.7, 1, step=0.1) == 0.8

    def test_default_step(self):
        assert increment_scale(1) == 1.25
        assert decrement_scale(1) == 0.75

    def test_clamps_to_bounds(self):
        assert increment_scale(50) == 50.0
        assert decrement_scale(0.25) == 0.25
        assert clamp_step(4.9, 1, minimum=0.5, maximum=5, step=0.5) == 5

    def test_bounds_from_config(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_SCALE_MAX", "4")
        from recipe_steps.utils.config import reset_config

        reset_config()
        assert increment_scale(4) == 4.0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            clamp_step(1, 0)
        with pytest.raises(ValueError):
            clamp_step(1, 1, step=0)
        with pytest.raises(ValueError):
            clamp_step(1, 1, minimum=5, maximum=1)


class TestScaleServingsText:
    """Tests for scale_servings_text()."""

    def test_simple(self):
        assert scale_servings_text("Serves 4", 2) == "Serves 8"

    def test_range(self):
        assert scale_servings_text("Feeds 2-4 people", 1.5) == "Feeds 3-6 people"

    def test_fraction_result(self):
        assert scale_servings_text("Makes 3 loaves", 0.5) == "Makes 1 ½ loaves"

    def test_empty(self):
        assert scale_servings_text(None, 2) == ""
        assert scale_servings_text("", 2) == ""

    def test_no_numbers(self):
        assert scale_servings_text("A crowd", 3) == "A crowd"

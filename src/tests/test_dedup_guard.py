"""
Tests for recipe-wide duplicate ingredient detection.
"""

import pytest

from recipe_steps.services.dedup_guard import (
    check_new_ingredient,
    filter_new_ingredients,
    is_duplicate,
    normalize_key,
)
from recipe_steps.services.dto import Ingredient
from recipe_steps.services.exceptions import (
    DuplicateIngredientError,
    OutOfRangeError,
    RequiredFieldError,
    TooLongError,
)


@pytest.fixture
def existing():
    return [Ingredient(2, "cup", "flour", id=1), Ingredient(1, "tsp", "salt", id=2)]


class TestIsDuplicate:
    """Tests for normalize_key() and is_duplicate()."""

    def test_normalize(self):
        assert normalize_key("CUP", "  Flour ") == ("cup", "flour")

    def test_case_and_whitespace_insensitive(self, existing):
        assert is_duplicate(existing, "CUP", "  Flour ")

    def test_different_unit_is_not_duplicate(self, existing):
        assert not is_duplicate(existing, "g", "flour")

    def test_accepts_raw_pairs(self):
        assert is_duplicate([("cup", "flour")], "cup", "FLOUR")

    def test_empty_recipe(self):
        assert not is_duplicate([], "cup", "flour")


class TestCheckNewIngredient:
    """Tests for check_new_ingredient()."""

    def test_accepts_and_trims(self, existing):
        result = check_new_ingredient(existing, 3, " tbsp ", " butter ")
        assert result == Ingredient(3.0, "tbsp", "butter")

    def test_unit_only_ingredient(self, existing):
        result = check_new_ingredient(existing, None, "pinch", "nutmeg")
        assert result.quantity is None

    def test_duplicate(self, existing):
        with pytest.raises(DuplicateIngredientError) as exc_info:
            check_new_ingredient(existing, 1, "CUP", "  Flour ")
        assert exc_info.value.field == "ingredient_name"

    @pytest.mark.parametrize("quantity", [0, -1, 0.0001, 100000, float("nan"), float("inf")])
    def test_quantity_out_of_range(self, existing, quantity):
        with pytest.raises(OutOfRangeError) as exc_info:
            check_new_ingredient(existing, quantity, "cup", "oats")
        assert exc_info.value.field == "quantity"

    def test_quantity_bounds_inclusive(self, existing):
        check_new_ingredient(existing, 0.001, "g", "yeast")
        check_new_ingredient(existing, 99999, "g", "water")

    def test_quantity_checked_before_duplicate(self, existing):
        with pytest.raises(OutOfRangeError):
            check_new_ingredient(existing, 0, "cup", "flour")

    def test_unit_required(self, existing):
        with pytest.raises(RequiredFieldError) as exc_info:
            check_new_ingredient(existing, 1, "  ", "oats")
        assert exc_info.value.field == "unit_name"

    def test_unit_too_long(self, existing):
        with pytest.raises(TooLongError) as exc_info:
            check_new_ingredient(existing, 1, "u" * 51, "oats")
        assert exc_info.value.max_length == 50

    def test_name_too_long(self, existing):
        with pytest.raises(TooLongError) as exc_info:
            check_new_ingredient(existing, 1, "cup", "n" * 101)
        assert exc_info.value.message == "Ingredient name must be 100 characters or less"

    def test_failure_is_logged(self, existing, caplog):
        caplog.set_level("INFO", logger="recipe_steps.services")
        with pytest.raises(DuplicateIngredientError):
            check_new_ingredient(existing, 1, "cup", "flour")
        record = next(
            r for r in caplog.records if r.getMessage() == "check_new_ingredient: validation_failed"
        )
        assert record.field == "ingredient_name"


class TestFilterNewIngredients:
    """Tests for batch screening of parsed ingredients."""

    def test_splits_accepted_and_rejected(self, existing):
        candidates = [
            (2, "tbsp", "butter"),
            (1, "Cup", "flour"),
            (0, "g", "yeast"),
            (1, "TBSP", "Butter"),
            (None, "pinch", "salt"),
        ]

        accepted, rejected = filter_new_ingredients(existing, candidates)

        assert [(i.unit, i.name) for i in accepted] == [("tbsp", "butter"), ("pinch", "salt")]
        assert [c for c, _ in rejected] == [candidates[1], candidates[2], candidates[3]]
        assert isinstance(rejected[0][1], DuplicateIngredientError)
        assert isinstance(rejected[1][1], OutOfRangeError)
        assert isinstance(rejected[2][1], DuplicateIngredientError)

"""
Tests for the ordered step list.

Tests cover:
- append() numbering
- remove() renumbering, edge remapping and the deletion guard
- renumber() gap repair
- Step text updates and ingredient attach/detach
"""

import pytest

from recipe_steps.services import step_sequence
from recipe_steps.services.dto import DependencyEdge, Ingredient, Step
from recipe_steps.services.exceptions import (
    DuplicateIngredientError,
    IngredientNotFound,
    RequiredFieldError,
    StepInUseError,
    StepNotFound,
    TooLongError,
)


def edges(*pairs):
    return frozenset(DependencyEdge(output_step_num=o, input_step_num=i) for o, i in pairs)


def numbers(steps):
    return [(s.id, s.step_num) for s in steps]


class TestAppend:
    """Tests for append()."""

    def test_append_to_empty(self):
        result = step_sequence.append((), Step(id="x", step_num=99, description="Preheat"))
        assert numbers(result) == [("x", 1)]

    def test_append_takes_next_number(self, three_steps):
        result = step_sequence.append(three_steps, Step(id="d", step_num=0, description="Cool"))
        assert numbers(result) == [("a", 1), ("b", 2), ("c", 3), ("d", 4)]

    def test_input_not_modified(self, three_steps):
        step_sequence.append(three_steps, Step(id="d", step_num=0, description="Cool"))
        assert len(three_steps) == 3


class TestRemove:
    """Tests for remove()."""

    def test_remove_middle_remaps_edges(self, three_steps):
        steps, new_edges = step_sequence.remove(three_steps, edges((1, 3)), "b")

        assert numbers(steps) == [("a", 1), ("c", 2)]
        assert new_edges == edges((1, 2))

    def test_remove_last(self, three_steps):
        steps, new_edges = step_sequence.remove(three_steps, edges((1, 2)), "c")
        assert numbers(steps) == [("a", 1), ("b", 2)]
        assert new_edges == edges((1, 2))

    def test_removed_steps_own_edges_are_dropped(self, four_steps):
        steps, new_edges = step_sequence.remove(
            four_steps, edges((1, 3), (2, 3), (1, 4)), "c"
        )
        assert numbers(steps) == [("a", 1), ("b", 2), ("d", 3)]
        assert new_edges == edges((1, 3))

    def test_used_step_cannot_be_removed(self, three_steps):
        original = edges((1, 2), (1, 3))
        with pytest.raises(StepInUseError) as exc_info:
            step_sequence.remove(three_steps, original, "a")
        assert str(exc_info.value) == "Cannot delete Step 1 because it is used by Steps 2 and 3"
        assert numbers(three_steps) == [("a", 1), ("b", 2), ("c", 3)]

    def test_unknown_step(self, three_steps):
        with pytest.raises(StepNotFound):
            step_sequence.remove(three_steps, frozenset(), "zzz")

    def test_remove_only_step(self):
        steps, new_edges = step_sequence.remove(
            (Step(id=1, step_num=1, description="Only"),), frozenset(), 1
        )
        assert steps == ()
        assert new_edges == frozenset()


class TestRenumber:
    """Tests for renumber() and is_contiguous()."""

    def test_contiguous(self, three_steps):
        assert step_sequence.is_contiguous(three_steps)
        assert step_sequence.is_contiguous(())

    def test_gap_is_closed(self, caplog):
        steps = (
            Step(id="a", step_num=1, description="One"),
            Step(id="b", step_num=3, description="Three"),
            Step(id="c", step_num=7, description="Seven"),
        )
        assert not step_sequence.is_contiguous(steps)

        caplog.set_level("WARNING", logger="recipe_steps.services")
        new_steps, new_edges = step_sequence.renumber(steps, edges((1, 7), (3, 7)))

        assert numbers(new_steps) == [("a", 1), ("b", 2), ("c", 3)]
        assert new_edges == edges((1, 3), (2, 3))
        assert any(r.getMessage() == "renumber: repaired" for r in caplog.records)

    def test_edges_to_missing_numbers_dropped(self):
        steps = (Step(id="a", step_num=1, description="One"), Step(id="b", step_num=4, description="Four"))
        _, new_edges = step_sequence.renumber(steps, edges((2, 4), (1, 4)))
        assert new_edges == edges((1, 2))


class TestUpdateStep:
    """Tests for update_step()."""

    def test_updates_text(self, three_steps):
        result = step_sequence.update_step(three_steps, "b", "  Cream  ", " Beat until fluffy ")
        step = step_sequence.find_step(result, "b")
        assert step.title == "Cream"
        assert step.description == "Beat until fluffy"
        assert step.step_num == 2

    def test_blank_title_becomes_none(self, three_steps):
        result = step_sequence.update_step(three_steps, "a", "   ", "Mix")
        assert step_sequence.find_step(result, "a").title is None

    def test_description_required(self, three_steps):
        with pytest.raises(RequiredFieldError):
            step_sequence.update_step(three_steps, "a", None, "  ")

    def test_description_too_long(self, three_steps):
        with pytest.raises(TooLongError) as exc_info:
            step_sequence.update_step(three_steps, "a", None, "x" * 5001)
        assert exc_info.value.message == "Description must be 5,000 characters or less"

    def test_title_too_long(self, three_steps):
        with pytest.raises(TooLongError):
            step_sequence.update_step(three_steps, "a", "t" * 201, "Mix")


class TestStepIngredients:
    """Tests for add_ingredient() and remove_ingredient()."""

    def test_add_to_step(self, four_steps):
        result = step_sequence.add_ingredient(four_steps, "c", 1, "tsp", " Vanilla ", ingredient_id=9)
        step = step_sequence.find_step(result, "c")
        assert step.ingredients == (Ingredient(1.0, "tsp", "Vanilla", id=9),)

    def test_duplicate_on_another_step_rejected(self, four_steps):
        with pytest.raises(DuplicateIngredientError) as exc_info:
            step_sequence.add_ingredient(four_steps, "d", 1, "CUP", "  Flour ")
        assert exc_info.value.message == "This ingredient is already in the recipe"

    def test_remove_ingredient(self, four_steps):
        result = step_sequence.remove_ingredient(four_steps, 2)
        assert step_sequence.find_step(result, "b").ingredients == ()
        assert len(step_sequence.find_step(result, "a").ingredients) == 1

    def test_remove_unknown_ingredient(self, four_steps):
        with pytest.raises(IngredientNotFound):
            step_sequence.remove_ingredient(four_steps, 42)

"""
Ordered step list of a recipe.

Owns the contiguous numbering invariant: the step numbers of a recipe are
always exactly 1..N. Appends take N+1; removals close the gap and shift the
dependency edges through dependency_graph.remap_edges().

Functions take the current steps (and edges) by value and return new tuples;
inputs are never modified.
"""

import logging
from dataclasses import replace
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Tuple

from recipe_steps.services import dependency_graph, dedup_guard
from recipe_steps.services.dto import DependencyEdge, Step
from recipe_steps.services.exceptions import IngredientNotFound, StepNotFound
from recipe_steps.services.logging_utils import get_service_logger, log_operation
from recipe_steps.utils.validators import validate_step_description, validate_step_title

logger = get_service_logger(__name__)

Steps = Tuple[Step, ...]
Edges = FrozenSet[DependencyEdge]


def find_step(steps: Iterable[Step], step_id: Hashable) -> Step:
    """
    Look up a step by its stable id.

    Raises:
        StepNotFound: If no step has this id
    """
    for step in steps:
        if step.id == step_id:
            return step
    raise StepNotFound(step_id)


def ordered(steps: Iterable[Step]) -> Steps:
    """Steps sorted by step_num."""
    return tuple(sorted(steps, key=lambda s: s.step_num))


def is_contiguous(steps: Iterable[Step]) -> bool:
    """True when the step numbers are exactly 1..N with no gaps or duplicates."""
    nums = sorted(step.step_num for step in steps)
    return nums == list(range(1, len(nums) + 1))


# ============================================================================
# Structural Mutations
# ============================================================================


def append(steps: Iterable[Step], draft: Step) -> Steps:
    """
    Add a step at the end of the recipe.

    The draft's step_num is ignored and replaced with N+1. Never fails.

    Args:
        steps: Current steps
        draft: New step (any step_num)

    Returns:
        Steps ordered by number, with the new step last
    """
    current = ordered(steps)
    new_step = draft.with_step_num(len(current) + 1)
    log_operation(
        logger,
        operation="append",
        outcome="success",
        level=logging.DEBUG,
        step_id=new_step.id,
        step_num=new_step.step_num,
    )
    return current + (new_step,)


def remove(
    steps: Iterable[Step], edges: Iterable[DependencyEdge], step_id: Hashable
) -> Tuple[Steps, Edges]:
    """
    Remove a step, renumbering later steps and remapping edges.

    The deletion guard runs first. The removed step's own dependency edges are
    discarded; every step and edge endpoint numbered above the removed step
    moves down by one.

    Args:
        steps: Current steps
        edges: Current edges
        step_id: Id of the step to remove

    Returns:
        (steps, edges) after removal

    Raises:
        StepNotFound: If step_id is unknown
        StepInUseError: If another step uses the target's output

    Example:
        Edges {1->3}, removing step 2 yields edges {1->2}.
    """
    steps = tuple(steps)
    edges = frozenset(edges)
    target = find_step(steps, step_id)
    removed_num = target.step_num

    dependency_graph.can_remove(edges, removed_num)

    def _shift(num: int) -> Optional[int]:
        if num == removed_num:
            return None
        return num - 1 if num > removed_num else num

    new_steps = ordered(
        step.with_step_num(_shift(step.step_num)) if step.step_num > removed_num else step
        for step in steps
        if step.id != step_id
    )
    new_edges, dropped = dependency_graph.remap_edges(edges, _shift)

    log_operation(
        logger,
        operation="remove",
        outcome="success",
        level=logging.DEBUG,
        step_id=step_id,
        step_num=removed_num,
        dropped_edges=len(dropped),
    )
    return new_steps, new_edges


def renumber(
    steps: Iterable[Step], edges: Iterable[DependencyEdge]
) -> Tuple[Steps, Edges]:
    """
    Close gaps in a materialized step list while keeping its order.

    Steps are sorted by (step_num, id position in input) and numbered 1..N.
    Edges follow the same mapping; edges referring to numbers no step held are
    dropped.

    Returns:
        (steps, edges) with contiguous numbering
    """
    indexed = list(enumerate(steps))
    indexed.sort(key=lambda pair: (pair[1].step_num, pair[0]))

    mapping: Dict[int, Optional[int]] = {}
    new_steps: List[Step] = []
    for position, (_, step) in enumerate(indexed, start=1):
        mapping.setdefault(step.step_num, position)
        new_steps.append(step.with_step_num(position))

    new_edges, dropped = dependency_graph.remap_edges(
        edges, lambda num: mapping.get(num)
    )
    if dropped or any(s.step_num != n.step_num for (_, s), n in zip(indexed, new_steps)):
        log_operation(
            logger,
            operation="renumber",
            outcome="repaired",
            level=logging.WARNING,
            step_count=len(new_steps),
            dropped_edges=len(dropped),
        )
    return tuple(new_steps), new_edges


# ============================================================================
# Step Content
# ============================================================================


def update_step(
    steps: Iterable[Step],
    step_id: Hashable,
    title: Optional[str],
    description: str,
) -> Steps:
    """
    Replace the title and description of one step.

    Raises:
        StepNotFound: If step_id is unknown
        TooLongError: Title over 200 or description over 5000 characters
        RequiredFieldError: Description blank
    """
    steps = tuple(steps)
    find_step(steps, step_id)
    validate_step_title(title)
    validate_step_description(description)

    clean_title = title.strip() if title and title.strip() else None
    return ordered(
        replace(s, title=clean_title, description=description.strip()) if s.id == step_id else s
        for s in steps
    )


def add_ingredient(
    steps: Iterable[Step],
    step_id: Hashable,
    quantity: Optional[float],
    unit: str,
    name: str,
    ingredient_id: Optional[int] = None,
) -> Steps:
    """
    Attach an ingredient to one step after the recipe-wide duplicate check.

    Raises:
        StepNotFound: If step_id is unknown
        ValidationError: Subclass from dedup_guard.check_new_ingredient
    """
    steps = tuple(steps)
    target = find_step(steps, step_id)
    existing = [i for step in steps for i in step.ingredients]
    ingredient = dedup_guard.check_new_ingredient(existing, quantity, unit, name)
    if ingredient_id is not None:
        ingredient = replace(ingredient, id=ingredient_id)

    return ordered(
        replace(s, ingredients=s.ingredients + (ingredient,)) if s.id == target.id else s
        for s in steps
    )


def remove_ingredient(steps: Iterable[Step], ingredient_id: int) -> Steps:
    """
    Remove an ingredient by id from whichever step holds it.

    Raises:
        IngredientNotFound: If no step holds an ingredient with this id
    """
    steps = tuple(steps)
    found = False
    result = []
    for step in steps:
        remaining = tuple(i for i in step.ingredients if i.id != ingredient_id)
        if len(remaining) != len(step.ingredients):
            found = True
            step = replace(step, ingredients=remaining)
        result.append(step)
    if not found:
        raise IngredientNotFound(ingredient_id)
    return ordered(result)

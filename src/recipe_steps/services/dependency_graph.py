"""
Dependency graph between the steps of one recipe.

Edges record that a step uses the output of an earlier step. They are keyed
by step number, not step id, so every renumbering must rewrite them. All
rewriting goes through remap_edges(); no other code builds shifted edges.

This module provides:
- Validation of a step's candidate dependency set (fail-fast)
- Full replacement of a step's edges
- Dependents/dependency queries
- The deletion guard (can_remove) and its conflict message
"""

import logging
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from recipe_steps.services.dto import DependencyEdge
from recipe_steps.services.exceptions import (
    ForwardReferenceError,
    InvalidStepNumberError,
    SelfReferenceError,
    StepInUseError,
    ValidationError,
)
from recipe_steps.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

Edges = FrozenSet[DependencyEdge]
StepNumMapping = Union[Mapping[int, Optional[int]], Callable[[int], Optional[int]]]


# ============================================================================
# Validation
# ============================================================================


def _as_step_num(candidate) -> int:
    """Return candidate as an int step number, accepting integral floats (3.0)."""
    if isinstance(candidate, bool):
        raise InvalidStepNumberError(candidate)
    if isinstance(candidate, float) and candidate.is_integer():
        return int(candidate)
    if not isinstance(candidate, int):
        raise InvalidStepNumberError(candidate)
    return candidate


def validate_step_reference(candidate: int, current_step_num: int) -> None:
    """
    Validate a single dependency candidate for the step at current_step_num.

    Rules, in priority order:
        1. candidate == current_step_num -> SelfReferenceError
        2. candidate <= 0                -> InvalidStepNumberError
        3. candidate >= current_step_num -> ForwardReferenceError

    Integral floats such as 3.0 are checked as the integer they equal; other
    non-integer candidates are reported as InvalidStepNumberError.
    """
    candidate = _as_step_num(candidate)
    if candidate == current_step_num:
        raise SelfReferenceError(candidate)
    if candidate <= 0:
        raise InvalidStepNumberError(candidate)
    if candidate >= current_step_num:
        raise ForwardReferenceError(candidate, current_step_num)


def validate_edge_set(current_step_num: int, candidate_output_nums: Iterable[int]) -> None:
    """
    Validate every candidate in a dependency selection, stopping at the first error.

    Step 1 accepts only the empty set, since it has no predecessors.

    Args:
        current_step_num: Number of the step being edited
        candidate_output_nums: Step numbers whose output it would use

    Raises:
        SelfReferenceError: "Cannot reference the current step"
        InvalidStepNumberError: "Invalid step number"
        ForwardReferenceError: "Can only reference previous steps"
    """
    for candidate in candidate_output_nums:
        try:
            validate_step_reference(candidate, current_step_num)
        except ValidationError as e:
            log_operation(
                logger,
                operation="validate_edge_set",
                outcome="validation_failed",
                step_num=current_step_num,
                candidate=candidate,
                error=e.message,
            )
            raise


# ============================================================================
# Mutation
# ============================================================================


def replace_edges(
    edges: Iterable[DependencyEdge],
    input_step_num: int,
    new_output_nums: Iterable[int],
) -> Edges:
    """
    Replace all edges of one step with a new validated selection.

    Existing edges with this input_step_num are discarded; one edge is added per
    distinct entry of new_output_nums. Applying the same selection twice gives
    the same edge set.

    Args:
        edges: Current edges of the recipe
        input_step_num: The step whose dependencies are being saved
        new_output_nums: Step numbers it uses the output of

    Returns:
        New edge set

    Raises:
        ValidationError: Subclass for the first invalid candidate; edges are
            left untouched
    """
    outputs = list(new_output_nums)
    validate_edge_set(input_step_num, outputs)
    outputs = [_as_step_num(n) for n in outputs]

    kept = {e for e in edges if e.input_step_num != input_step_num}
    added = {DependencyEdge(output_step_num=n, input_step_num=input_step_num) for n in outputs}
    result = frozenset(kept | added)

    log_operation(
        logger,
        operation="replace_edges",
        outcome="success",
        level=logging.DEBUG,
        input_step_num=input_step_num,
        outputs=sorted(set(outputs)),
    )
    return result


def remap_edges(edges: Iterable[DependencyEdge], mapping: StepNumMapping) -> Tuple[Edges, Edges]:
    """
    Rewrite both endpoints of every edge through a step-number mapping.

    This is the single routine used by every structural mutation (remove,
    swap, renumber). Numbers missing from a dict mapping are left unchanged;
    a mapping result of None removes that step. An edge is dropped when either
    endpoint is removed or when the rewritten edge would no longer point
    strictly backward.

    Args:
        edges: Current edges
        mapping: dict {old_num: new_num_or_None} or callable old_num -> new_num_or_None

    Returns:
        (kept, dropped): kept holds the rewritten edges, dropped the original
        edges that could not be carried over
    """
    if callable(mapping):
        lookup = mapping
    else:
        lookup = lambda num: mapping.get(num, num)  # noqa: E731

    kept = set()
    dropped = set()
    for edge in edges:
        new_output = lookup(edge.output_step_num)
        new_input = lookup(edge.input_step_num)
        if new_output is None or new_input is None or not (0 < new_output < new_input):
            dropped.add(edge)
            continue
        kept.add(DependencyEdge(output_step_num=new_output, input_step_num=new_input))
    return frozenset(kept), frozenset(dropped)


# ============================================================================
# Queries
# ============================================================================


def dependents_of(edges: Iterable[DependencyEdge], step_num: int) -> List[int]:
    """
    Steps that use the output of step_num, ascending.

    Example:
        >>> dependents_of({DependencyEdge(1, 3), DependencyEdge(1, 2)}, 1)
        [2, 3]
    """
    return sorted({e.input_step_num for e in edges if e.output_step_num == step_num})


def dependencies_of(edges: Iterable[DependencyEdge], step_num: int) -> List[int]:
    """Steps whose output step_num uses, ascending."""
    return sorted({e.output_step_num for e in edges if e.input_step_num == step_num})


def usage_by_step(edges: Iterable[DependencyEdge]) -> Dict[int, List[int]]:
    """
    Map each consuming step number to the step numbers it uses.

    Returns:
        {input_step_num: [output_step_num, ...]} with ascending lists
    """
    result: Dict[int, List[int]] = {}
    for edge in sorted(edges, key=lambda e: (e.input_step_num, e.output_step_num)):
        result.setdefault(edge.input_step_num, []).append(edge.output_step_num)
    return result


# ============================================================================
# Deletion Guard
# ============================================================================


def can_remove(edges: Iterable[DependencyEdge], step_num: int) -> None:
    """
    Permit or refuse removal of the step at step_num.

    Raises:
        StepInUseError: If any step uses its output. The message lists the
            dependents ascending, e.g.
            "Cannot delete Step 1 because it is used by Steps 2 and 3"
    """
    dependents = dependents_of(edges, step_num)
    if dependents:
        log_operation(
            logger,
            operation="can_remove",
            outcome="blocked",
            step_num=step_num,
            dependents=dependents,
        )
        raise StepInUseError(step_num, dependents)


def format_in_use_message(step_num: int, dependents: Iterable[int]) -> str:
    """Deletion-conflict text for display without raising."""
    return str(StepInUseError(step_num, list(dependents)))

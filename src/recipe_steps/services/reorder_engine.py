"""
Adjacent-swap reordering of recipe steps.

Moving a step up or down swaps its number with the neighbouring step and
applies the same transposition to both endpoints of every dependency edge, so
"who uses whom" is preserved by identity even though edges are keyed by
number.

A transposition keeps every edge backward except an edge directly between
the two swapped steps (the later one using the earlier one). What happens to
that edge depends on the reorder policy:

- "drop" (default): the swap proceeds and the edge is dropped and reported in
  MoveResult.dropped_edges.
- "block": the swap is refused with StepReorderBlocked, using check_reorder().
"""

import logging
from typing import Hashable, Iterable, Optional

from recipe_steps.services import dependency_graph
from recipe_steps.services.dto import DependencyEdge, MoveResult, Step
from recipe_steps.services.exceptions import StepReorderBlocked
from recipe_steps.services.logging_utils import get_service_logger, log_operation
from recipe_steps.services.step_sequence import find_step, ordered
from recipe_steps.utils.config import get_config
from recipe_steps.utils.constants import (
    DIRECTION_DOWN,
    DIRECTION_UP,
    REORDER_POLICIES,
    REORDER_POLICY_BLOCK,
)

logger = get_service_logger(__name__)


def check_reorder(
    edges: Iterable[DependencyEdge], current_step_num: int, new_position: int
) -> None:
    """
    Refuse a move that would carry a step past a step it is linked to.

    - Moving later: any step that uses this step's output and sits at or
      before new_position blocks the move.
    - Moving earlier: any step whose output this step uses and sits at or
      after new_position blocks the move.

    Raises:
        StepReorderBlocked: With the blocking step numbers, ascending
    """
    edges = frozenset(edges)
    if new_position > current_step_num:
        blocking = [
            n for n in dependency_graph.dependents_of(edges, current_step_num)
            if n <= new_position
        ]
        if blocking:
            raise StepReorderBlocked(current_step_num, new_position, blocking, uses_output=True)
    elif new_position < current_step_num:
        blocking = [
            n for n in dependency_graph.dependencies_of(edges, current_step_num)
            if n >= new_position
        ]
        if blocking:
            raise StepReorderBlocked(current_step_num, new_position, blocking, uses_output=False)


def _resolve_policy(policy: Optional[str]) -> str:
    if policy is None:
        return get_config().reorder_policy
    if policy not in REORDER_POLICIES:
        raise ValueError(f"Unknown reorder policy: {policy}")
    return policy


def _swap(
    steps: Iterable[Step],
    edges: Iterable[DependencyEdge],
    step_id: Hashable,
    offset: int,
    policy: Optional[str],
) -> MoveResult:
    steps = ordered(steps)
    edges = frozenset(edges)
    operation = "move_up" if offset < 0 else "move_down"

    step = find_step(steps, step_id)
    current = step.step_num
    target = current + offset

    if target < 1 or target > len(steps):
        log_operation(
            logger,
            operation=operation,
            outcome="noop",
            level=logging.DEBUG,
            step_id=step_id,
            step_num=current,
        )
        return MoveResult(steps=steps, edges=edges, moved=False)

    if _resolve_policy(policy) == REORDER_POLICY_BLOCK:
        try:
            check_reorder(edges, current, target)
        except StepReorderBlocked as e:
            log_operation(
                logger,
                operation=operation,
                outcome="blocked",
                step_id=step_id,
                step_num=current,
                blocking_steps=e.blocking_steps,
            )
            raise

    transposition = {current: target, target: current}
    new_steps = ordered(
        s.with_step_num(transposition[s.step_num]) if s.step_num in transposition else s
        for s in steps
    )
    new_edges, dropped = dependency_graph.remap_edges(edges, transposition)

    log_operation(
        logger,
        operation=operation,
        outcome="success",
        level=logging.DEBUG,
        step_id=step_id,
        step_num=current,
        new_step_num=target,
        dropped_edges=len(dropped),
    )
    return MoveResult(steps=new_steps, edges=new_edges, moved=True, dropped_edges=dropped)


def move_up(
    steps: Iterable[Step],
    edges: Iterable[DependencyEdge],
    step_id: Hashable,
    policy: Optional[str] = None,
) -> MoveResult:
    """
    Swap a step with the one before it.

    A step already at number 1 is a no-op: the result carries the unchanged
    state with moved=False and callers should skip persistence.

    Args:
        steps: Current steps
        edges: Current edges
        step_id: Id of the step to move
        policy: "drop" or "block"; defaults to the configured reorder policy

    Returns:
        MoveResult

    Raises:
        StepNotFound: If step_id is unknown
        StepReorderBlocked: Only under the "block" policy

    Example:
        Steps [A@1, B@2, C@3], move_up(C) -> [A@1, C@2, B@3]
    """
    return _swap(steps, edges, step_id, -1, policy)


def move_down(
    steps: Iterable[Step],
    edges: Iterable[DependencyEdge],
    step_id: Hashable,
    policy: Optional[str] = None,
) -> MoveResult:
    """Swap a step with the one after it. No-op for the last step (see move_up)."""
    return _swap(steps, edges, step_id, 1, policy)


def move(
    steps: Iterable[Step],
    edges: Iterable[DependencyEdge],
    step_id: Hashable,
    direction: str,
    policy: Optional[str] = None,
) -> MoveResult:
    """
    Dispatch a move by direction name.

    Raises:
        ValueError: If direction is not "up" or "down"
    """
    if direction == DIRECTION_UP:
        return move_up(steps, edges, step_id, policy)
    if direction == DIRECTION_DOWN:
        return move_down(steps, edges, step_id, policy)
    raise ValueError(f"Unknown direction: {direction}")


"""
Randomized operation sequences over the pure engine.

After every append/remove/move/replace the step numbers must be exactly
1..N and every edge must point strictly backward.
"""

import itertools
import random

import pytest

from recipe_steps.services import dependency_graph, reorder_engine, step_sequence
from recipe_steps.services.dto import Step
from recipe_steps.services.exceptions import StepInUseError


def assert_invariants(steps, edges):
    assert sorted(s.step_num for s in steps) == list(range(1, len(steps) + 1))
    assert len({s.id for s in steps}) == len(steps)
    for edge in edges:
        assert 0 < edge.output_step_num < edge.input_step_num <= len(steps)


@pytest.mark.parametrize("seed", range(25))
def test_random_operation_sequences(seed):
    rng = random.Random(seed)
    ids = itertools.count(1)
    steps, edges = (), frozenset()

    for _ in range(60):
        op = rng.choice(["append", "append", "remove", "up", "down", "deps"])

        if op == "append" or not steps:
            steps = step_sequence.append(steps, Step(id=next(ids), step_num=0, description="step"))
        elif op == "remove":
            target = rng.choice(steps)
            try:
                steps, edges = step_sequence.remove(steps, edges, target.id)
            except StepInUseError as e:
                assert e.dependents == dependency_graph.dependents_of(edges, target.step_num)
        elif op in ("up", "down"):
            target = rng.choice(steps)
            result = reorder_engine.move(steps, edges, target.id, op, policy="drop")
            steps, edges = result.steps, result.edges
        else:
            target = rng.choice(steps)
            earlier = list(range(1, target.step_num))
            chosen = rng.sample(earlier, rng.randint(0, len(earlier)))
            edges = dependency_graph.replace_edges(edges, target.step_num, chosen)

        assert_invariants(steps, edges)


@pytest.mark.parametrize("seed", range(10))
def test_moves_preserve_surviving_links(seed):
    """A swap keeps every edge except one directly between the two swapped steps."""
    rng = random.Random(seed)
    steps = tuple(Step(id=n, step_num=n, description="step") for n in range(1, 8))
    edges = frozenset()
    for step in steps[1:]:
        earlier = list(range(1, step.step_num))
        edges = dependency_graph.replace_edges(
            edges, step.step_num, rng.sample(earlier, rng.randint(0, len(earlier)))
        )

    def links(current_steps, current_edges):
        by_num = {s.step_num: s.id for s in current_steps}
        return {(by_num[e.output_step_num], by_num[e.input_step_num]) for e in current_edges}

    for _ in range(20):
        target = rng.choice(steps)
        before = links(steps, edges)
        result = reorder_engine.move(steps, edges, target.id, rng.choice(["up", "down"]))
        after = links(result.steps, result.edges)
        dropped = links(steps, result.dropped_edges)

        assert after | dropped == before
        assert len(dropped) <= 1
        steps, edges = result.steps, result.edges

"""Data Transfer Objects for the step engine.

This module provides the immutable value types the engine operates on. A
recipe's steps and dependency edges travel together as one RecipeSnapshot;
every engine operation returns new values and never mutates its inputs.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Hashable, List, Optional, Tuple


@dataclass(frozen=True)
class Ingredient:
    """An ingredient attached to a step.

    Attributes:
        quantity: Unscaled base amount, or None for unit-only ingredients
        unit: Unit name as entered (e.g., "cup")
        name: Ingredient name as entered (e.g., "flour")
        id: Storage identifier, None for ingredients not yet persisted
    """

    quantity: Optional[float]
    unit: str
    name: str
    id: Optional[int] = None


@dataclass(frozen=True)
class Step:
    """A recipe step.

    `step_num` is positional (1-based) and changes on remove/reorder; `id` is
    the stable identity.

    Attributes:
        id: Stable identifier
        step_num: 1-based position within the recipe
        description: Step instructions
        title: Optional short title
        ingredients: Ingredients used by this step, in entry order
    """

    id: Hashable
    step_num: int
    description: str
    title: Optional[str] = None
    ingredients: Tuple[Ingredient, ...] = ()

    def with_step_num(self, step_num: int) -> "Step":
        return replace(self, step_num=step_num)


@dataclass(frozen=True, order=True)
class DependencyEdge:
    """A declared "uses output of" relationship between two steps.

    Read as: the input step uses the output of the output step.

    Edges are keyed by step number. Construction enforces the backward-only
    invariant.

    Raises:
        ValueError: If output_step_num < 1 or output_step_num >= input_step_num

    Examples:
        >>> DependencyEdge(output_step_num=1, input_step_num=3)
        DependencyEdge(output_step_num=1, input_step_num=3)
    """

    output_step_num: int
    input_step_num: int

    def __post_init__(self) -> None:
        if self.output_step_num < 1:
            raise ValueError("output_step_num must be >= 1")
        if self.output_step_num >= self.input_step_num:
            raise ValueError("output_step_num must be less than input_step_num")


@dataclass(frozen=True)
class RecipeSnapshot:
    """Steps and dependency edges of one recipe, treated as a single value.

    Attributes:
        steps: All steps of the recipe (any storage order)
        edges: All dependency edges of the recipe
    """

    steps: Tuple[Step, ...] = ()
    edges: FrozenSet[DependencyEdge] = field(default_factory=frozenset)

    def ordered_steps(self) -> List[Step]:
        """Steps sorted by step_num."""
        return sorted(self.steps, key=lambda s: s.step_num)

    def all_ingredients(self) -> List[Ingredient]:
        """Every ingredient in the recipe, in step order."""
        result = []
        for step in self.ordered_steps():
            result.extend(step.ingredients)
        return result

    def sorted_edges(self) -> List[DependencyEdge]:
        """Edges ordered by (input_step_num, output_step_num)."""
        return sorted(self.edges, key=lambda e: (e.input_step_num, e.output_step_num))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [
                {
                    "id": s.id,
                    "step_num": s.step_num,
                    "title": s.title,
                    "description": s.description,
                    "ingredients": [
                        {"id": i.id, "quantity": i.quantity, "unit": i.unit, "name": i.name}
                        for i in s.ingredients
                    ],
                }
                for s in self.ordered_steps()
            ],
            "edges": [
                {"output_step_num": e.output_step_num, "input_step_num": e.input_step_num}
                for e in self.sorted_edges()
            ],
        }


@dataclass(frozen=True)
class ScaledIngredient:
    """Display-time view of an ingredient at a given scale factor.

    Attributes:
        ingredient: The stored (unscaled) ingredient
        quantity: Scaled quantity, None for unit-only ingredients
        display: Formatted "quantity unit" text
    """

    ingredient: Ingredient
    quantity: Optional[float]
    display: str


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a move-up/move-down request.

    Attributes:
        steps: Steps after the move (unchanged when moved is False)
        edges: Edges after the move
        moved: False when the step was already at the boundary
        dropped_edges: Edges discarded because the swap would make them forward
    """

    steps: Tuple[Step, ...]
    edges: FrozenSet[DependencyEdge]
    moved: bool = True
    dropped_edges: FrozenSet[DependencyEdge] = field(default_factory=frozenset)

"""
Recipe Step Service - persistence around the step engine.

Each mutating call:
1. Takes the recipe's lock (mutations are serialized per recipe)
2. Opens one session_scope() transaction
3. Loads the full RecipeSnapshot (all steps, edges and ingredients)
4. Applies the pure engine operation
5. Writes back a complete replacement of steps and edges

Renumbered steps are written in two phases (negative placeholders first) so
the (recipe_id, step_num) unique constraint holds at every flush.
"""

import threading
import weakref
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from recipe_steps.models import Recipe, RecipeStep, StepIngredient, StepOutputUse
from recipe_steps.services import (
    dedup_guard,
    dependency_graph,
    reorder_engine,
    scaling_engine,
    step_sequence,
)
from recipe_steps.services.database import session_scope
from recipe_steps.services.dto import (
    DependencyEdge,
    Ingredient,
    MoveResult,
    RecipeSnapshot,
    Step,
)
from recipe_steps.services.exceptions import (
    DatabaseError,
    IngredientNotFound,
    RecipeNotFound,
    ServiceError,
    StepNotFound,
    ValidationError,
)
from recipe_steps.services.logging_utils import get_service_logger, log_operation
from recipe_steps.utils.constants import DEFAULT_SCALE_FACTOR
from recipe_steps.utils.validators import (
    validate_recipe_description,
    validate_recipe_title,
    validate_scale_factor,
    validate_servings,
    validate_step_description,
    validate_step_title,
)

logger = get_service_logger(__name__)


class _RecipeLock:
    """Weak-referenceable holder for one recipe's RLock."""

    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.RLock()


_locks_guard = threading.Lock()
# Entries disappear once no thread holds or waits on the recipe's lock.
_recipe_locks: "weakref.WeakValueDictionary[int, _RecipeLock]" = weakref.WeakValueDictionary()


@contextmanager
def recipe_lock(recipe_id: int):
    """Serialize mutations of one recipe across threads."""
    with _locks_guard:
        holder = _recipe_locks.get(recipe_id)
        if holder is None:
            holder = _RecipeLock()
            _recipe_locks[recipe_id] = holder
    with holder.lock:
        yield


# ============================================================================
# Snapshot Loading / Writing
# ============================================================================


def _get_recipe(session, recipe_id: int) -> Recipe:
    recipe = session.query(Recipe).filter_by(id=recipe_id).first()
    if not recipe:
        raise RecipeNotFound(recipe_id)
    return recipe


def _to_step(row: RecipeStep) -> Step:
    return Step(
        id=row.id,
        step_num=row.step_num,
        description=row.description,
        title=row.title,
        ingredients=tuple(
            Ingredient(quantity=i.quantity, unit=i.unit, name=i.name, id=i.id)
            for i in row.ingredients
        ),
    )


def _load_snapshot(session, recipe_id: int) -> RecipeSnapshot:
    _get_recipe(session, recipe_id)
    step_rows = (
        session.query(RecipeStep)
        .filter_by(recipe_id=recipe_id)
        .order_by(RecipeStep.step_num)
        .all()
    )
    edge_rows = session.query(StepOutputUse).filter_by(recipe_id=recipe_id).all()

    steps = tuple(_to_step(row) for row in step_rows)
    edges = frozenset(
        DependencyEdge(output_step_num=e.output_step_num, input_step_num=e.input_step_num)
        for e in edge_rows
    )
    if not step_sequence.is_contiguous(steps):
        steps, edges = step_sequence.renumber(steps, edges)
    return RecipeSnapshot(steps=steps, edges=edges)


def _write_steps(session, recipe_id: int, steps: Iterable[Step]) -> None:
    """Replace the stored step rows of a recipe with `steps` (matched by id)."""
    steps = list(steps)
    rows = {row.id: row for row in session.query(RecipeStep).filter_by(recipe_id=recipe_id)}
    keep_ids = {s.id for s in steps}

    for row_id, row in rows.items():
        if row_id not in keep_ids:
            session.delete(row)
    session.flush()

    renumbered = [s for s in steps if rows[s.id].step_num != s.step_num]
    for step in renumbered:
        rows[step.id].step_num = -step.step_num
    session.flush()
    for step in steps:
        row = rows[step.id]
        row.step_num = step.step_num
        row.title = step.title
        row.description = step.description
    session.flush()


def _write_edges(session, recipe_id: int, edges: Iterable[DependencyEdge]) -> None:
    """Replace every stored edge of a recipe with `edges`."""
    for row in session.query(StepOutputUse).filter_by(recipe_id=recipe_id).all():
        session.delete(row)
    session.flush()
    for edge in sorted(edges):
        session.add(
            StepOutputUse(
                recipe_id=recipe_id,
                output_step_num=edge.output_step_num,
                input_step_num=edge.input_step_num,
            )
        )
    session.flush()


# ============================================================================
# Recipes
# ============================================================================


def create_recipe(
    title: str, description: Optional[str] = None, servings: Optional[str] = None
) -> Dict:
    """
    Create an empty recipe.

    Returns:
        Dictionary with the recipe's columns

    Raises:
        ValidationError: If a field fails validation
        DatabaseError: If database operation fails
    """
    validate_recipe_title(title)
    validate_recipe_description(description)
    validate_servings(servings)

    try:
        with session_scope() as session:
            recipe = Recipe(
                title=title.strip(),
                description=(description or "").strip() or None,
                servings=(servings or "").strip() or None,
            )
            session.add(recipe)
            session.flush()
            log_operation(logger, operation="create_recipe", outcome="success", recipe_id=recipe.id)
            return recipe.to_dict()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe_snapshot(recipe_id: int) -> RecipeSnapshot:
    """
    Load the full step list and edge list of a recipe.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            return _load_snapshot(session, recipe_id)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load steps for recipe {recipe_id}", e)


def get_step_usage(recipe_id: int, step_num: int) -> List[int]:
    """Step numbers that use the output of step_num, ascending."""
    return dependency_graph.dependents_of(get_recipe_snapshot(recipe_id).edges, step_num)


def get_scaled_recipe(recipe_id: int, factor: float = DEFAULT_SCALE_FACTOR) -> Dict:
    """
    Build display data for a recipe at a given scale factor.

    Stored quantities are not modified.

    Returns:
        Dictionary with title, scaled servings text, the scale label and one
        entry per step (scaled ingredients, uses_steps, used_by)

    Raises:
        RecipeNotFound: If recipe doesn't exist
        OutOfRangeError: If factor is not positive and finite
        DatabaseError: If database operation fails
    """
    factor = validate_scale_factor(factor)
    try:
        with session_scope() as session:
            recipe = _get_recipe(session, recipe_id)
            title = recipe.title
            servings = recipe.servings
            snapshot = _load_snapshot(session, recipe_id)
    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load recipe {recipe_id}", e)

    steps = []
    for step in snapshot.ordered_steps():
        scaled = scaling_engine.scale_ingredients(step.ingredients, factor)
        steps.append(
            {
                "id": step.id,
                "step_num": step.step_num,
                "title": step.title,
                "description": step.description,
                "uses_steps": dependency_graph.dependencies_of(snapshot.edges, step.step_num),
                "used_by": dependency_graph.dependents_of(snapshot.edges, step.step_num),
                "ingredients": [
                    {
                        "id": s.ingredient.id,
                        "name": s.ingredient.name,
                        "unit": s.ingredient.unit,
                        "quantity": s.ingredient.quantity,
                        "scaled_quantity": s.quantity,
                        "display": s.display,
                    }
                    for s in scaled
                ],
            }
        )

    return {
        "recipe_id": recipe_id,
        "title": title,
        "servings": scaling_engine.scale_servings_text(servings, factor),
        "scale_factor": factor,
        "scale_label": scaling_engine.format_scale_factor(factor),
        "steps": steps,
    }


# ============================================================================
# Steps
# ============================================================================


def add_step(
    recipe_id: int,
    description: str,
    title: Optional[str] = None,
    uses_steps: Optional[Iterable[int]] = None,
) -> Step:
    """
    Append a step to a recipe, optionally with its dependency selection.

    Args:
        recipe_id: Recipe to extend
        description: Step instructions (required)
        title: Optional short title
        uses_steps: Earlier step numbers whose output the new step uses

    Returns:
        The created Step (with its new id and step_num N+1)

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: Subclass for invalid text or dependency selection
        DatabaseError: If database operation fails
    """
    validate_step_title(title)
    validate_step_description(description)

    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            draft = Step(
                id=None,
                step_num=0,
                description=description.strip(),
                title=title.strip() if title and title.strip() else None,
            )
            steps = step_sequence.append(snapshot.steps, draft)
            new_step = steps[-1]
            edges = dependency_graph.replace_edges(
                snapshot.edges, new_step.step_num, list(uses_steps or [])
            )

            _write_steps(session, recipe_id, steps[:-1])
            row = RecipeStep(
                recipe_id=recipe_id,
                step_num=new_step.step_num,
                title=new_step.title,
                description=new_step.description,
            )
            session.add(row)
            session.flush()
            _write_edges(session, recipe_id, edges)

            log_operation(
                logger,
                operation="add_step",
                outcome="success",
                recipe_id=recipe_id,
                step_id=row.id,
                step_num=row.step_num,
            )
            return replace(new_step, id=row.id)
    except (RecipeNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to add step to recipe {recipe_id}", e)


def update_step(
    recipe_id: int,
    step_id: int,
    title: Optional[str],
    description: str,
    uses_steps: Optional[Iterable[int]] = None,
) -> Step:
    """
    Save a step's text and, when given, its dependency selection.

    Dependencies use full-replace semantics: the step's old edges are
    discarded and one edge per selected step is stored.

    Raises:
        RecipeNotFound / StepNotFound: Unknown recipe or step
        ValidationError: Subclass for invalid text or dependency selection
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            steps = step_sequence.update_step(snapshot.steps, step_id, title, description)
            edges = snapshot.edges
            if uses_steps is not None:
                step = step_sequence.find_step(steps, step_id)
                edges = dependency_graph.replace_edges(edges, step.step_num, list(uses_steps))

            _write_steps(session, recipe_id, steps)
            _write_edges(session, recipe_id, edges)

            log_operation(
                logger, operation="update_step", outcome="success", recipe_id=recipe_id, step_id=step_id
            )
            return step_sequence.find_step(steps, step_id)
    except (RecipeNotFound, StepNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update step {step_id}", e)


def update_step_dependencies(
    recipe_id: int, step_id: int, output_step_nums: Iterable[int]
) -> List[int]:
    """
    Replace the dependency selection of one step.

    Returns:
        The step numbers the step now uses, ascending

    Raises:
        RecipeNotFound / StepNotFound: Unknown recipe or step
        SelfReferenceError / InvalidStepNumberError / ForwardReferenceError:
            First invalid candidate; nothing is written
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            step = step_sequence.find_step(snapshot.steps, step_id)
            edges = dependency_graph.replace_edges(
                snapshot.edges, step.step_num, list(output_step_nums)
            )
            _write_steps(session, recipe_id, snapshot.steps)
            _write_edges(session, recipe_id, edges)

            uses = dependency_graph.dependencies_of(edges, step.step_num)
            log_operation(
                logger,
                operation="update_step_dependencies",
                outcome="success",
                recipe_id=recipe_id,
                step_num=step.step_num,
                outputs=uses,
            )
            return uses
    except (RecipeNotFound, StepNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update dependencies of step {step_id}", e)


def remove_step(recipe_id: int, step_id: int) -> RecipeSnapshot:
    """
    Delete a step, renumbering the remaining steps and their edges.

    Returns:
        The recipe's snapshot after removal

    Raises:
        RecipeNotFound / StepNotFound: Unknown recipe or step
        StepInUseError: If another step uses its output; nothing is written
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            steps, edges = step_sequence.remove(snapshot.steps, snapshot.edges, step_id)
            _write_steps(session, recipe_id, steps)
            _write_edges(session, recipe_id, edges)

            log_operation(
                logger, operation="remove_step", outcome="success", recipe_id=recipe_id, step_id=step_id
            )
            return RecipeSnapshot(steps=steps, edges=edges)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to remove step {step_id}", e)


def move_step(
    recipe_id: int, step_id: int, direction: str, policy: Optional[str] = None
) -> MoveResult:
    """
    Move a step one position up or down.

    A move at the boundary is a no-op and writes nothing.

    Args:
        recipe_id: Recipe containing the step
        step_id: Step to move
        direction: "up" or "down"
        policy: Reorder policy override ("drop" or "block")

    Raises:
        RecipeNotFound / StepNotFound: Unknown recipe or step
        StepReorderBlocked: Under the "block" policy
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            result = reorder_engine.move(
                snapshot.steps, snapshot.edges, step_id, direction, policy
            )
            if not result.moved:
                return result

            _write_steps(session, recipe_id, result.steps)
            _write_edges(session, recipe_id, result.edges)

            log_operation(
                logger,
                operation="move_step",
                outcome="success",
                recipe_id=recipe_id,
                step_id=step_id,
                direction=direction,
                dropped_edges=len(result.dropped_edges),
            )
            return result
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to move step {step_id}", e)


# ============================================================================
# Ingredients
# ============================================================================


def add_ingredient(
    recipe_id: int,
    step_id: int,
    quantity: Optional[float],
    unit: str,
    name: str,
) -> Ingredient:
    """
    Add one ingredient to a step after the recipe-wide duplicate check.

    Returns:
        The stored Ingredient (with id)

    Raises:
        RecipeNotFound / StepNotFound: Unknown recipe or step
        OutOfRangeError / RequiredFieldError / TooLongError /
        DuplicateIngredientError: First failing check; nothing is written
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            step_sequence.find_step(snapshot.steps, step_id)
            ingredient = dedup_guard.check_new_ingredient(
                snapshot.all_ingredients(), quantity, unit, name
            )
            row = _insert_ingredient(session, recipe_id, step_id, ingredient)
            log_operation(
                logger,
                operation="add_ingredient",
                outcome="success",
                recipe_id=recipe_id,
                step_id=step_id,
                ingredient_id=row.id,
            )
            return Ingredient(quantity=row.quantity, unit=row.unit, name=row.name, id=row.id)
    except (RecipeNotFound, StepNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add ingredient", e)


def add_ingredients(
    recipe_id: int,
    step_id: int,
    parsed: Iterable[Tuple[Optional[float], str, str]],
) -> Tuple[List[Ingredient], List[Tuple[Tuple[Optional[float], str, str], ValidationError]]]:
    """
    Add a batch of structured (quantity, unit, name) tuples from the parser.

    Invalid or duplicate entries are skipped and returned with their errors;
    the rest are stored in one transaction.

    Returns:
        (stored ingredients, rejected entries)
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            snapshot = _load_snapshot(session, recipe_id)
            step_sequence.find_step(snapshot.steps, step_id)
            accepted, rejected = dedup_guard.filter_new_ingredients(
                snapshot.all_ingredients(), parsed
            )
            stored = []
            for ingredient in accepted:
                row = _insert_ingredient(session, recipe_id, step_id, ingredient)
                stored.append(
                    Ingredient(quantity=row.quantity, unit=row.unit, name=row.name, id=row.id)
                )
            log_operation(
                logger,
                operation="add_ingredients",
                outcome="success",
                recipe_id=recipe_id,
                step_id=step_id,
                accepted=len(stored),
                rejected=len(rejected),
            )
            return stored, rejected
    except (RecipeNotFound, StepNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add ingredients", e)


def _insert_ingredient(session, recipe_id: int, step_id: int, ingredient: Ingredient):
    row = StepIngredient(
        recipe_id=recipe_id,
        step_id=step_id,
        quantity=ingredient.quantity,
        unit=ingredient.unit,
        name=ingredient.name,
    )
    session.add(row)
    session.flush()
    return row


def remove_ingredient(recipe_id: int, ingredient_id: int) -> bool:
    """
    Delete one ingredient by id.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        IngredientNotFound: If the ingredient isn't part of this recipe
        DatabaseError: If database operation fails
    """
    try:
        with recipe_lock(recipe_id), session_scope() as session:
            _get_recipe(session, recipe_id)
            row = (
                session.query(StepIngredient)
                .filter_by(id=ingredient_id, recipe_id=recipe_id)
                .first()
            )
            if not row:
                raise IngredientNotFound(ingredient_id)
            session.delete(row)
            log_operation(
                logger,
                operation="remove_ingredient",
                outcome="success",
                recipe_id=recipe_id,
                ingredient_id=ingredient_id,
            )
            return True
    except (RecipeNotFound, IngredientNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to remove ingredient {ingredient_id}", e)

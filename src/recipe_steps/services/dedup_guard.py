"""
Recipe-wide duplicate ingredient detection.

An ingredient is identified by its (unit, name) pair after trimming and
lower-casing both parts. The check spans every step of the recipe: adding
"  Flour " in "CUP" to step 4 is rejected when step 1 already uses "flour" in
"cup". The same name with a different unit is not a duplicate.

The add-ingredient gate also runs the field checks (quantity range, unit and
name length) before the duplicate check, failing on the first problem found.
"""

import logging
from typing import Iterable, List, Optional, Set, Tuple, Union

from recipe_steps.services.dto import Ingredient
from recipe_steps.services.exceptions import DuplicateIngredientError, ValidationError
from recipe_steps.services.logging_utils import get_service_logger, log_operation
from recipe_steps.utils.validators import (
    validate_ingredient_name,
    validate_quantity,
    validate_unit_name,
)

logger = get_service_logger(__name__)

IngredientKey = Tuple[str, str]
ExistingIngredients = Iterable[Union[Ingredient, IngredientKey]]


def normalize_key(unit: Optional[str], name: Optional[str]) -> IngredientKey:
    """
    Build the duplicate-detection key for an ingredient.

    Example:
        >>> normalize_key("CUP", "  Flour ")
        ('cup', 'flour')
    """
    return ((unit or "").strip().lower(), (name or "").strip().lower())


def _key_of(item: Union[Ingredient, IngredientKey]) -> IngredientKey:
    if isinstance(item, Ingredient):
        return normalize_key(item.unit, item.name)
    unit, name = item
    return normalize_key(unit, name)


def existing_keys(existing: ExistingIngredients) -> Set[IngredientKey]:
    """Normalized keys for every ingredient already in the recipe."""
    return {_key_of(item) for item in existing}


def is_duplicate(existing: ExistingIngredients, unit: str, name: str) -> bool:
    """
    Check whether (unit, name) is already used anywhere in the recipe.

    Args:
        existing: Ingredients (or raw (unit, name) pairs) across all steps
        unit: Candidate unit
        name: Candidate name

    Returns:
        True if the normalized pair is already present
    """
    return normalize_key(unit, name) in existing_keys(existing)


def check_new_ingredient(
    existing: ExistingIngredients,
    quantity: Optional[float],
    unit: str,
    name: str,
) -> Ingredient:
    """
    Gate for adding one ingredient to a recipe.

    Checks run in order and stop at the first failure: quantity range, unit
    name, ingredient name, duplicate.

    Args:
        existing: Ingredients across all steps of the recipe
        quantity: Unscaled quantity (None allowed)
        unit: Unit name
        name: Ingredient name

    Returns:
        The accepted Ingredient with unit and name trimmed

    Raises:
        OutOfRangeError: Quantity not finite or outside [0.001, 99999]
        RequiredFieldError: Unit or name blank
        TooLongError: Unit over 50 or name over 100 characters
        DuplicateIngredientError: (unit, name) already in the recipe
    """
    try:
        validate_quantity(quantity)
        validate_unit_name(unit)
        validate_ingredient_name(name)
        if is_duplicate(existing, unit, name):
            raise DuplicateIngredientError(unit, name)
    except ValidationError as e:
        log_operation(
            logger,
            operation="check_new_ingredient",
            outcome="validation_failed",
            field=e.field,
            error=e.message,
        )
        raise

    return Ingredient(
        quantity=None if quantity is None else float(quantity),
        unit=unit.strip(),
        name=name.strip(),
    )


def filter_new_ingredients(
    existing: ExistingIngredients,
    candidates: Iterable[Tuple[Optional[float], str, str]],
) -> Tuple[List[Ingredient], List[Tuple[Tuple[Optional[float], str, str], ValidationError]]]:
    """
    Screen a batch of structured (quantity, unit, name) tuples from the parser.

    Each candidate is checked against the recipe and against the candidates
    accepted before it, so a batch can never introduce a duplicate.

    Returns:
        (accepted, rejected) where rejected pairs each candidate with its error
    """
    seen = list(existing)
    accepted: List[Ingredient] = []
    rejected = []
    for candidate in candidates:
        quantity, unit, name = candidate
        try:
            ingredient = check_new_ingredient(seen, quantity, unit, name)
        except ValidationError as e:
            rejected.append((candidate, e))
            continue
        accepted.append(ingredient)
        seen.append(ingredient)

    log_operation(
        logger,
        operation="filter_new_ingredients",
        outcome="success",
        level=logging.DEBUG,
        accepted=len(accepted),
        rejected=len(rejected),
    )
    return accepted, rejected

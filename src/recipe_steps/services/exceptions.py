"""Service layer exception classes for Recipe Steps.

This module defines all custom exceptions used by the step engine and the
persistence service so callers get consistent, recoverable errors.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError (field + message)
    │   ├── SelfReferenceError
    │   ├── InvalidStepNumberError
    │   ├── ForwardReferenceError
    │   ├── OutOfRangeError
    │   ├── TooLongError
    │   ├── RequiredFieldError
    │   └── DuplicateIngredientError
    ├── StepInUseError
    ├── StepReorderBlocked
    ├── StepNotFound
    ├── RecipeNotFound
    ├── IngredientNotFound
    └── DatabaseError
"""

from typing import List, Optional, Sequence

from recipe_steps.utils.constants import (
    ERROR_DUPLICATE_INGREDIENT,
    ERROR_FORWARD_REFERENCE,
    ERROR_INVALID_STEP_NUMBER,
    ERROR_SELF_REFERENCE,
    FIELD_INGREDIENT_NAME,
    FIELD_USES_STEPS,
)


def format_step_list(step_nums: Sequence[int]) -> str:
    """Render step numbers the way error messages refer to them.

    Example:
        >>> format_step_list([2])
        'Step 2'
        >>> format_step_list([2, 3])
        'Steps 2 and 3'
        >>> format_step_list([2, 3, 5])
        'Steps 2, 3, and 5'
    """
    nums = [str(n) for n in step_nums]
    if len(nums) == 1:
        return f"Step {nums[0]}"
    if len(nums) == 2:
        return f"Steps {nums[0]} and {nums[1]}"
    return f"Steps {', '.join(nums[:-1])}, and {nums[-1]}"


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class ValidationError(ServiceError):
    """Raised when caller input fails validation.

    Args:
        message: Human readable message suitable for display next to a field
        field: Name of the form field the message belongs to (optional)

    Example:
        >>> raise ValidationError("Title is required", field="title")
        ValidationError: Title is required
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        self.errors = [message]
        super().__init__(message)


class SelfReferenceError(ValidationError):
    """Raised when a step lists itself as a dependency."""

    def __init__(self, step_num: int):
        self.step_num = step_num
        super().__init__(ERROR_SELF_REFERENCE, field=FIELD_USES_STEPS)


class InvalidStepNumberError(ValidationError):
    """Raised when a dependency candidate is zero or negative."""

    def __init__(self, step_num: int):
        self.step_num = step_num
        super().__init__(ERROR_INVALID_STEP_NUMBER, field=FIELD_USES_STEPS)


class ForwardReferenceError(ValidationError):
    """Raised when a dependency candidate is not strictly earlier than the step."""

    def __init__(self, step_num: int, current_step_num: int):
        self.step_num = step_num
        self.current_step_num = current_step_num
        super().__init__(ERROR_FORWARD_REFERENCE, field=FIELD_USES_STEPS)


class OutOfRangeError(ValidationError):
    """Raised when a numeric field is non-finite or outside its allowed range."""

    def __init__(self, message: str, field: str, value=None):
        self.value = value
        super().__init__(message, field=field)


class TooLongError(ValidationError):
    """Raised when a text field exceeds its maximum length."""

    def __init__(self, message: str, field: str, max_length: int):
        self.max_length = max_length
        super().__init__(message, field=field)


class RequiredFieldError(ValidationError):
    """Raised when a required text field is missing or blank."""

    pass


class DuplicateIngredientError(ValidationError):
    """Raised when an ingredient with the same unit and name is already in the recipe.

    Example:
        >>> raise DuplicateIngredientError("cup", "flour")
        DuplicateIngredientError: This ingredient is already in the recipe
    """

    def __init__(self, unit: str, name: str):
        self.unit = unit
        self.name = name
        super().__init__(ERROR_DUPLICATE_INGREDIENT, field=FIELD_INGREDIENT_NAME)


class StepInUseError(ServiceError):
    """Raised when attempting to remove a step whose output other steps use.

    Args:
        step_num: Number of the step being removed
        dependents: Step numbers that use its output

    Example:
        >>> raise StepInUseError(1, [3, 2])
        StepInUseError: Cannot delete Step 1 because it is used by Steps 2 and 3
    """

    def __init__(self, step_num: int, dependents: Sequence[int]):
        self.step_num = step_num
        self.dependents: List[int] = sorted(dependents)
        super().__init__(
            f"Cannot delete Step {step_num} because it is used by "
            f"{format_step_list(self.dependents)}"
        )


class StepReorderBlocked(ServiceError):
    """Raised when a move would carry a step past a step it is linked to.

    Args:
        step_num: Current number of the step being moved
        new_position: Target number
        blocking_steps: Linked step numbers that would be passed
        uses_output: True when blocking steps use this step's output (moving
            later); False when this step uses theirs (moving earlier)
    """

    def __init__(
        self,
        step_num: int,
        new_position: int,
        blocking_steps: Sequence[int],
        uses_output: bool,
    ):
        self.step_num = step_num
        self.new_position = new_position
        self.blocking_steps: List[int] = sorted(blocking_steps)
        self.uses_output = uses_output

        prefix = f"Cannot move Step {step_num} to position {new_position} because"
        steps_text = format_step_list(self.blocking_steps)
        if uses_output:
            verb = "uses" if len(self.blocking_steps) == 1 else "use"
            message = f"{prefix} {steps_text} {verb} its output"
        else:
            message = f"{prefix} it uses output from {steps_text}"
        super().__init__(message)


class StepNotFound(ServiceError):
    """Raised when a step cannot be found by ID."""

    def __init__(self, step_id):
        self.step_id = step_id
        super().__init__(f"Step with ID {step_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class IngredientNotFound(ServiceError):
    """Raised when a step ingredient cannot be found by ID."""

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")

"""Service layer logging utilities.

Provides structured logging functions for engine and service operations,
enabling a consistent log format and context across step mutations.

Usage:
    from recipe_steps.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log successful operation
    log_operation(
        logger,
        operation="remove_step",
        outcome="success",
        recipe_id=12,
        step_num=3,
    )

    # Log a guard refusal
    log_operation(
        logger,
        operation="can_remove",
        outcome="blocked",
        step_num=1,
        dependents=[2, 3],
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'recipe_steps.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'recipe_steps.services.step_sequence'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"recipe_steps.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log an operation with structured context.

    The message is "{operation}: {outcome}"; the operation, outcome and every
    context field are attached to the record via 'extra'.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "move_up", "replace_edges")
        outcome: Outcome description (e.g., "success", "noop", "blocked")
        level: Log level (default: INFO). Engine internals use DEBUG.
        **context: Additional context fields
            Common fields:
            - recipe_id: Recipe being mutated
            - step_id / step_num: Step being mutated
            - dependents: Steps blocking a removal
            - dropped_edges: Edges discarded by a swap
            - error: Error message if outcome is "validation_failed"
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

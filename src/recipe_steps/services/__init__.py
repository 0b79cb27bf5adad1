"""
Service layer for Recipe Steps.

The engine modules (step_sequence, reorder_engine, dependency_graph,
dedup_guard, scaling_engine) are pure functions over immutable snapshots.
recipe_step_service persists their results through SQLAlchemy.

Import the module you need, e.g.:
    from recipe_steps.services import recipe_step_service
"""

"""Pytest configuration and fixtures for engine and service tests."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session

from recipe_steps.models.base import Base
from recipe_steps.services.dto import Ingredient, Step
from recipe_steps.utils.config import reset_config

_ENV_VARS = [
    "RECIPE_STEPS_ENV",
    "RECIPE_STEPS_DATABASE_URL",
    "RECIPE_STEPS_REORDER_POLICY",
    "RECIPE_STEPS_SCALE_MIN",
    "RECIPE_STEPS_SCALE_MAX",
    "RECIPE_STEPS_SCALE_STEP",
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Give every test a fresh Config built from a clean environment."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine("sqlite:///:memory:", echo=False)

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import recipe_steps.services.database as db_module

    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


@pytest.fixture
def three_steps():
    """Steps A@1, B@2, C@3 with no ingredients."""
    return (
        Step(id="a", step_num=1, description="Mix dry ingredients"),
        Step(id="b", step_num=2, description="Cream butter and sugar"),
        Step(id="c", step_num=3, description="Combine and bake"),
    )


@pytest.fixture
def four_steps():
    """Steps A@1..D@4, with flour on A and sugar on B."""
    return (
        Step(
            id="a",
            step_num=1,
            description="Whisk flour and salt",
            ingredients=(Ingredient(2, "cup", "flour", id=1),),
        ),
        Step(
            id="b",
            step_num=2,
            description="Cream butter and sugar",
            ingredients=(Ingredient(0.5, "cup", "sugar", id=2),),
        ),
        Step(id="c", step_num=3, description="Fold together"),
        Step(id="d", step_num=4, description="Bake"),
    )


@pytest.fixture
def recipe(test_db):
    """A persisted recipe with no steps."""
    from recipe_steps.services import recipe_step_service

    return recipe_step_service.create_recipe("Sandwich Bread", servings="Makes 2 loaves")

"""
Configuration management for the Recipe Steps engine.

This module handles:
- Database path configuration
- Scale factor bounds used by the scaling engine
- Reorder policy for adjacent step swaps
- Environment-specific configuration (development vs. production)

Environment variables:
    RECIPE_STEPS_ENV: 'production' (default) or 'development'
    RECIPE_STEPS_DATABASE_URL: Full SQLAlchemy URL, overrides the file path
    RECIPE_STEPS_REORDER_POLICY: 'drop' (default) or 'block'
    RECIPE_STEPS_SCALE_MIN / RECIPE_STEPS_SCALE_MAX / RECIPE_STEPS_SCALE_STEP
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_SCALE_MAX,
    DEFAULT_SCALE_MIN,
    DEFAULT_SCALE_STEP,
    REORDER_POLICIES,
    REORDER_POLICY_DROP,
)

logger = logging.getLogger(__name__)


def _float_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


class Config:
    """
    Application configuration manager.

    Handles database location, scaling bounds and the reorder policy.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get("RECIPE_STEPS_DATABASE_URL")

        self._scale_min = _float_from_env("RECIPE_STEPS_SCALE_MIN", DEFAULT_SCALE_MIN)
        self._scale_max = _float_from_env("RECIPE_STEPS_SCALE_MAX", DEFAULT_SCALE_MAX)
        self._scale_step = _float_from_env("RECIPE_STEPS_SCALE_STEP", DEFAULT_SCALE_STEP)

        policy = os.environ.get("RECIPE_STEPS_REORDER_POLICY", REORDER_POLICY_DROP).lower()
        if policy not in REORDER_POLICIES:
            logger.warning(
                f"Unknown reorder policy {policy!r}; falling back to '{REORDER_POLICY_DROP}'"
            )
            policy = REORDER_POLICY_DROP
        self._reorder_policy = policy

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.recipe_steps
        """
        return Path.home() / ".recipe_steps"

    def ensure_directories(self):
        """Create the database directory if it doesn't exist."""
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            RECIPE_STEPS_DATABASE_URL if set, otherwise a SQLite URL for database_path
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def scale_min(self) -> float:
        """Smallest scale factor the stepper allows."""
        return self._scale_min

    @property
    def scale_max(self) -> float:
        """Largest scale factor the stepper allows."""
        return self._scale_max

    @property
    def scale_step(self) -> float:
        """Increment used by the scale stepper."""
        return self._scale_step

    @property
    def reorder_policy(self) -> str:
        """Either 'drop' (drop edges broken by a swap) or 'block' (refuse the swap)."""
        return self._reorder_policy

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return (
            f"Config(environment='{self.environment}', "
            f"database_url='{self.database_url}', "
            f"reorder_policy='{self._reorder_policy}')"
        )


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    RECIPE_STEPS_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get("RECIPE_STEPS_ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database_url

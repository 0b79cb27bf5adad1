"""
Tests for configuration management.
"""

from pathlib import Path

from recipe_steps.utils.config import Config, get_config, get_database_url, reset_config


class TestConfig:
    """Tests for Config."""

    def test_defaults(self):
        config = Config()
        assert config.is_production
        assert config.reorder_policy == "drop"
        assert config.scale_min == 0.25
        assert config.scale_max == 50.0
        assert config.scale_step == 0.25
        assert config.database_path == Path.home() / ".recipe_steps" / "recipe_steps.db"

    def test_development_uses_project_data_dir(self):
        config = Config("development")
        assert config.is_development
        assert config.database_path.parent.name == "data"

    def test_database_url_override(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_DATABASE_URL", "sqlite:///:memory:")
        assert Config().database_url == "sqlite:///:memory:"

    def test_database_url_from_path(self):
        config = Config()
        assert config.database_url.startswith("sqlite:///")
        assert config.database_url.endswith("recipe_steps.db")

    def test_reorder_policy_from_env(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_REORDER_POLICY", "BLOCK")
        assert Config().reorder_policy == "block"

    def test_unknown_reorder_policy_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("RECIPE_STEPS_REORDER_POLICY", "shuffle")
        assert Config().reorder_policy == "drop"
        assert "Unknown reorder policy" in caplog.text

    def test_scale_bounds_from_env(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_SCALE_MIN", "0.5")
        monkeypatch.setenv("RECIPE_STEPS_SCALE_STEP", "not-a-number")
        config = Config()
        assert config.scale_min == 0.5
        assert config.scale_step == 0.25


class TestConfigSingleton:
    """Tests for get_config() / reset_config()."""

    def test_singleton(self):
        assert get_config() is get_config()

    def test_environment_from_env(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_ENV", "development")
        reset_config()
        assert get_config().environment == "development"

    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_get_database_url(self, monkeypatch):
        monkeypatch.setenv("RECIPE_STEPS_DATABASE_URL", "sqlite:///:memory:")
        reset_config()
        assert get_database_url() == "sqlite:///:memory:"

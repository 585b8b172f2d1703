"""Tests for environment configuration."""

import pytest

from kiodb.config import DatabaseConfig
from kiodb.errors import ConfigError

ENV_VARS = [
    "KIODB_AUTOSAVE_INTERVAL",
    "KIODB_WRITE_THROUGH",
    "KIODB_INDENT",
    "KIODB_ALLOW_UNCONDITIONAL_WRITES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDatabaseConfig:
    """Tests for DatabaseConfig."""

    def test_defaults(self):
        config = DatabaseConfig()
        assert config.autosave_interval == 0.0
        assert config.write_through
        assert config.indent is None
        assert config.allow_unconditional_writes

    def test_from_env_defaults(self):
        assert DatabaseConfig.from_env() == DatabaseConfig()

    def test_from_env_values(self, monkeypatch):
        monkeypatch.setenv("KIODB_AUTOSAVE_INTERVAL", "2.5")
        monkeypatch.setenv("KIODB_WRITE_THROUGH", "off")
        monkeypatch.setenv("KIODB_INDENT", "2")
        monkeypatch.setenv("KIODB_ALLOW_UNCONDITIONAL_WRITES", "No")
        config = DatabaseConfig.from_env()
        assert config == DatabaseConfig(
            autosave_interval=2.5,
            write_through=False,
            indent=2,
            allow_unconditional_writes=False,
        )

    @pytest.mark.parametrize(
        "name,value",
        [
            ("KIODB_AUTOSAVE_INTERVAL", "soon"),
            ("KIODB_AUTOSAVE_INTERVAL", "-1"),
            ("KIODB_WRITE_THROUGH", "maybe"),
            ("KIODB_INDENT", "two"),
            ("KIODB_INDENT", "-4"),
        ],
    )
    def test_invalid_env_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigError):
            DatabaseConfig.from_env()

    def test_config_is_frozen(self):
        config = DatabaseConfig()
        with pytest.raises(AttributeError):
            config.indent = 4

"""
Unit tests for settings loading.
"""

import pytest

from slipkit.config import Settings, load_settings

ENV_VARS = [
    "SLIPKIT_CACHE_TTL_SECONDS",
    "SLIPKIT_CACHE_CAPACITY",
    "SLIPKIT_DEFAULT_LIMIT",
    "SLIPKIT_MAX_LIMIT",
    "SLIPKIT_DEFAULT_RANGE_DAYS",
    "SLIPKIT_SLIP_NUMBER_FORMAT",
    "SLIPKIT_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test without SLIPKIT_* variables and outside any project .env."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self):
        assert load_settings() == Settings()

    def test_environment_variables(self, monkeypatch):
        monkeypatch.setenv("SLIPKIT_CACHE_TTL_SECONDS", "5.5")
        monkeypatch.setenv("SLIPKIT_DEFAULT_LIMIT", "20")
        monkeypatch.setenv("SLIPKIT_SLIP_NUMBER_FORMAT", " INV-0000 ")
        monkeypatch.setenv("SLIPKIT_LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.cache_ttl_seconds == 5.5
        assert settings.default_limit == 20
        assert settings.slip_number_format == "INV-0000"
        assert settings.log_level == "DEBUG"

    def test_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("SLIPKIT_MAX_LIMIT=50\nSLIPKIT_CACHE_CAPACITY=8\n", encoding="utf-8")
        # load_dotenv writes into os.environ; let monkeypatch undo it
        monkeypatch.setenv("SLIPKIT_MAX_LIMIT", "")
        monkeypatch.setenv("SLIPKIT_CACHE_CAPACITY", "")
        monkeypatch.delenv("SLIPKIT_MAX_LIMIT")
        monkeypatch.delenv("SLIPKIT_CACHE_CAPACITY")

        settings = load_settings(env_file)

        assert settings.max_limit == 50
        assert settings.cache_capacity == 8

    def test_environment_wins_over_env_file(self, monkeypatch, tmp_path):
        env_file = tmp_path / "custom.env"
        env_file.write_text("SLIPKIT_DEFAULT_RANGE_DAYS=7\n", encoding="utf-8")
        monkeypatch.setenv("SLIPKIT_DEFAULT_RANGE_DAYS", "14")

        assert load_settings(env_file).default_range_days == 14

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("SLIPKIT_CACHE_CAPACITY", "lots")

        with pytest.raises(ValueError, match="SLIPKIT_CACHE_CAPACITY"):
            load_settings()

    @pytest.mark.parametrize("name,value", [
        ("SLIPKIT_CACHE_CAPACITY", "0"),
        ("SLIPKIT_DEFAULT_LIMIT", "0"),
        ("SLIPKIT_MAX_LIMIT", "5"),
        ("SLIPKIT_DEFAULT_RANGE_DAYS", "0"),
    ])
    def test_out_of_range(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            load_settings()

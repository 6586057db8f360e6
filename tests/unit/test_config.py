"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from warhost.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    settings = Settings()
    assert settings.rules_dir == Path("rules")
    assert settings.rules_version == "1"
    assert settings.result_topic == "combat-result"
    assert settings.dice_seed_prefix == "warhost"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WARHOST_RULES_DIR", str(tmp_path / "packs"))
    monkeypatch.setenv("WARHOST_RESULT_TOPIC", "results")
    settings = get_settings()
    assert settings.rules_dir == tmp_path / "packs"
    assert settings.result_topic == "results"
    assert get_settings() is settings


def test_env_file(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("WARHOST_LOG_LEVEL=DEBUG\n")
    assert Settings().log_level == "DEBUG"

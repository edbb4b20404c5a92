"""
Unit tests for settings loading and secret validation.
"""

from pathlib import Path

import pytest

from expander.config.loader import get_required_env_key, load_settings, validate_secret_env
from expander.models import ProviderConfig, SettingsConfig

SETTINGS_PATH = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"


def test_shipped_settings_load():
    settings = load_settings(str(SETTINGS_PATH))
    assert settings.default_provider == "anthropic"
    assert {"anthropic", "openai", "deepseek", "grok", "perplexity", "gemini"} <= set(settings.providers)
    assert settings.expansion.convergence_ratio == 0.95
    assert settings.expansion.max_attempts_per_section == 20
    assert settings.agent("section").max_tokens == 8000
    assert not settings.persistence.enabled


def test_missing_file_raises():
    with pytest.raises(FileNotFoundError, match="Missing config file"):
        load_settings("does/not/exist.yaml")


def test_non_mapping_root_rejected(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Expected object"):
        load_settings(str(path))


def test_unknown_agent_falls_back_to_defaults():
    settings = SettingsConfig()
    agent = settings.agent("nonexistent")
    assert agent.max_tokens == 4000
    assert agent.temperature == 0.7


def test_required_env_key_resolution():
    settings = SettingsConfig(
        providers={
            "explicit": ProviderConfig(kind="chat_completions", model="m", api_key_env="MY_KEY"),
            "anthropic": ProviderConfig(kind="anthropic", model="claude"),
            "gemini": ProviderConfig(kind="pydantic_ai", model="google-gla:gemini-2.5-pro"),
            "local": ProviderConfig(kind="pydantic_ai", model="ollama:llama3"),
        }
    )
    assert get_required_env_key(settings, "explicit") == "MY_KEY"
    assert get_required_env_key(settings, "anthropic") == "ANTHROPIC_API_KEY"
    assert get_required_env_key(settings, "gemini") == "GEMINI_API_KEY"
    assert get_required_env_key(settings, "local") is None
    assert get_required_env_key(settings, "unknown") is None


def test_validate_secret_env(monkeypatch):
    settings = SettingsConfig(
        default_provider="openai",
        providers={"openai": ProviderConfig(model="gpt-4o", api_key_env="EXPANDER_TEST_OPENAI_KEY")},
    )
    monkeypatch.delenv("EXPANDER_TEST_OPENAI_KEY", raising=False)
    assert validate_secret_env(settings) == ["EXPANDER_TEST_OPENAI_KEY"]

    monkeypatch.setenv("EXPANDER_TEST_OPENAI_KEY", "sk-test")
    assert validate_secret_env(settings) == []

"""YAML and env loader with fail-fast validation."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from expander.models import SettingsConfig

DEFAULT_SETTINGS_PATH = "config/settings.yaml"

# Map pydantic-ai model string prefixes to the env var that provider reads.
_PREFIX_TO_ENV: dict[str, str] = {
    "google-gla:": "GEMINI_API_KEY",
    "google-vertex:": "GEMINI_API_KEY",
    "anthropic:": "ANTHROPIC_API_KEY",
    "openai:": "OPENAI_API_KEY",
    "groq:": "GROQ_API_KEY",
    "mistral:": "MISTRAL_API_KEY",
}


def _read_yaml(path: str) -> dict:
    resolved = Path(path)
    if not resolved.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with resolved.open("r", encoding="utf-8") as file_obj:
        loaded = yaml.safe_load(file_obj) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Expected object at root of YAML file: {path}")
    return loaded


def load_settings(settings_path: str = DEFAULT_SETTINGS_PATH) -> SettingsConfig:
    load_dotenv()
    return SettingsConfig.model_validate(_read_yaml(settings_path))


def get_required_env_key(settings: SettingsConfig, provider: str | None = None) -> str | None:
    """Return the env var the selected provider needs, or None if it needs none we know of."""
    name = (provider or settings.default_provider).lower()
    cfg = settings.providers.get(name)
    if cfg is None:
        return None
    if cfg.api_key_env:
        return cfg.api_key_env
    if cfg.kind == "anthropic":
        return "ANTHROPIC_API_KEY"
    for prefix, env_key in _PREFIX_TO_ENV.items():
        if cfg.model.startswith(prefix):
            return env_key
    return None


def validate_secret_env(settings: SettingsConfig, provider: str | None = None) -> list[str]:
    """Return list of missing required env var names for the selected provider."""
    load_dotenv()
    required = get_required_env_key(settings, provider)
    if required is None:
        return []
    return [required] if not os.getenv(required) else []

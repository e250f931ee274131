# -*- coding: utf-8 -*-
"""Settings persistence and validation."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any

from electrorescue.constants import ANALYSIS_PROVIDERS, DEFAULT_SETTINGS_FILE
from electrorescue.utils.file_utils import read_env_file, read_json_file, write_json_file


KEY_PLACEHOLDER = "USE_ENV_FILE"

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openrouter": "google/gemini-2.5-flash",
}

DEFAULT_CONFIG: dict[str, Any] = {
    "api_keys": {"gemini": KEY_PLACEHOLDER, "openrouter": KEY_PLACEHOLDER},
    "analysis": {
        "provider": "gemini",
        "model": DEFAULT_MODELS["gemini"],
        "temperature": 0.2,
        "timeout_seconds": 60,
    },
    "uploader": {"max_file_mb": 20},
    "ui": {"window_width": 1280, "window_height": 860},
}

# Environment variable names, first match wins.
ENV_KEY_NAMES: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "API_KEY"),
    "openrouter": ("OPENROUTER_API_KEY",),
}


class ConfigError(ValueError):
    """Raised when settings are invalid."""


def get_default_config() -> dict[str, Any]:
    """Return a deep copy of the default config."""
    return deepcopy(DEFAULT_CONFIG)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(config: dict[str, Any], env_values: dict[str, str]) -> dict[str, Any]:
    """Apply API keys from the .env file to the runtime config."""
    merged = deepcopy(config)
    for provider, names in ENV_KEY_NAMES.items():
        for name in names:
            value = env_values.get(name, "").strip()
            if value:
                merged.setdefault("api_keys", {})
                merged["api_keys"][provider] = value
                break
    return merged


def get_api_key(config: dict[str, Any], provider: str) -> str:
    """Return the usable API key for a provider, or an empty string."""
    key = str(config.get("api_keys", {}).get(provider, "") or "").strip()
    if key == KEY_PLACEHOLDER:
        return ""
    return key


def validate_config(config: dict[str, Any]) -> None:
    """Validate the fields used by the analyzer and the uploader."""
    analysis = config.get("analysis", {})
    provider = analysis.get("provider")
    if provider not in ANALYSIS_PROVIDERS:
        raise ConfigError(f"analysis.provider must be one of {', '.join(ANALYSIS_PROVIDERS)}")

    model = analysis.get("model")
    if not isinstance(model, str) or not model.strip():
        raise ConfigError("analysis.model must be a non-empty string")

    temperature = analysis.get("temperature")
    if not isinstance(temperature, (float, int)) or not (0 <= float(temperature) <= 2):
        raise ConfigError("analysis.temperature must be in range 0..2")

    timeout = analysis.get("timeout_seconds")
    if not isinstance(timeout, (float, int)) or not (1 <= float(timeout) <= 600):
        raise ConfigError("analysis.timeout_seconds must be in range 1..600")

    max_file_mb = config.get("uploader", {}).get("max_file_mb")
    if not isinstance(max_file_mb, (float, int)) or not (1 <= float(max_file_mb) <= 100):
        raise ConfigError("uploader.max_file_mb must be in range 1..100")


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load config from JSON, merge into defaults and apply .env keys."""
    config_path = Path(path or DEFAULT_SETTINGS_FILE)
    env_values = read_env_file(config_path.parent / ".env")
    if not config_path.exists():
        return _apply_env_overrides(get_default_config(), env_values)

    try:
        loaded = read_json_file(config_path)
    except ValueError as exc:
        raise ConfigError(f"Cannot read settings from {config_path}: {exc}") from exc
    merged = _deep_merge(get_default_config(), loaded)
    merged = _apply_env_overrides(merged, env_values)
    validate_config(merged)
    return merged


def _strip_api_keys(config: dict[str, Any]) -> dict[str, Any]:
    """Replace real API keys with the placeholder before saving to disk."""
    config_copy = deepcopy(config)
    api_keys = config_copy.get("api_keys", {})
    for provider in ENV_KEY_NAMES:
        current_value = str(api_keys.get(provider, "") or "")
        # Short values are test markers or empty, keep them as typed.
        if len(current_value) > 20:
            api_keys[provider] = KEY_PLACEHOLDER
    return config_copy


def save_config(config: dict[str, Any], path: str | Path | None = None) -> Path:
    """Validate and save config as JSON, but without real API keys.

    API keys belong in the .env file next to settings.json.
    """
    validate_config(config)
    config_path = Path(path or DEFAULT_SETTINGS_FILE)
    write_json_file(config_path, _strip_api_keys(config))
    return config_path

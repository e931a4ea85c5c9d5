"""
Configuration management for shotsort.

Uses pydantic-settings to load runtime settings from environment variables
and .env files, and merges an optional JSON file holding the category
taxonomy and provider settings over the built-in defaults.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from shotsort.models.schemas import AppConfig


DEFAULT_CONFIG: Dict[str, Any] = {
    "categories": {
        "code": "the majority of the text is computer code",
        "reference": "the image is a photograph",
        "web": "the image shows a webpage",
        "other": "the image doesn't belong to other categories",
    },
    "ollama": {
        "baseURL": "http://localhost:11434/v1/",
        "model": "llava",
        "maxTokens": 30,
    },
    "openai": {
        "baseURL": "https://api.openai.com/v1",
        "model": "gpt-4o-mini",
        "maxTokens": 30,
    },
}

SUPPORTED_PROVIDERS = ("openai", "ollama")


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Provider credentials
    openai_api_key: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    # Paths
    watch_dir: Path = Path("~/Desktop")
    user_config_path: Path = Path("user.config.json")

    # Classification
    request_timeout: float = 60.0  # seconds

    # Watcher debounce
    stability_threshold: float = 2.0  # seconds
    poll_interval: float = 0.5  # seconds

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def merge_config(user_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge the user's ``default`` section over the built-in defaults.

    Args:
        user_config: Parsed contents of the user config file

    Returns:
        Merged configuration dictionary
    """
    merged = dict(DEFAULT_CONFIG)
    merged.update(user_config.get("default") or {})
    return merged


def load_app_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load the category taxonomy and provider settings.

    Falls back to the defaults when the file is missing or invalid.

    Args:
        path: Location of the user config file

    Returns:
        Validated application config
    """
    config_path = Path(path or get_settings().user_config_path).expanduser()
    defaults = AppConfig.model_validate(DEFAULT_CONFIG)

    if not config_path.exists():
        logger.info("User configuration file not found. Using default configuration.")
        return defaults

    try:
        user_config = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(user_config, dict):
            raise ValueError("top-level value must be an object")
        if not isinstance(user_config.get("default", {}), dict):
            raise ValueError("\"default\" must be an object")
        return AppConfig.model_validate(merge_config(user_config))

    except (OSError, ValueError, ValidationError) as e:
        logger.warning(f"Error loading user configuration {config_path}: {e}")
        return defaults

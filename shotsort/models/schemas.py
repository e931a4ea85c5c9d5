"""
Pydantic models for shotsort.

Shared data models across the pipeline.
"""

from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ProviderName = Literal["openai", "ollama"]
DetailLevel = Literal["low", "high", "auto"]

ORIGINALS_DIR_NAME = "original"


# =====================================================
# Configuration Models
# =====================================================

class ProviderConfig(BaseModel):
    """Connection settings for one model provider."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    base_url: str = Field(alias="baseURL")
    model: str
    max_tokens: int = Field(default=30, alias="maxTokens", gt=0)


class AppConfig(BaseModel):
    """Category taxonomy and per-provider settings."""
    model_config = ConfigDict(frozen=True)

    categories: Dict[str, str]
    ollama: ProviderConfig
    openai: ProviderConfig

    @field_validator("categories")
    @classmethod
    def check_category_names(cls, categories: Dict[str, str]) -> Dict[str, str]:
        """Category names become folder names directly under the output root."""
        for name in categories:
            if not name.strip() or name in (".", "..", ORIGINALS_DIR_NAME):
                raise ValueError(f"invalid category name: {name!r}")
            if "/" in name or "\\" in name:
                raise ValueError(f"category name must not contain a path separator: {name!r}")
        return categories

    def provider(self, name: str) -> ProviderConfig:
        """Return the settings for provider ``name``."""
        return getattr(self, name)


class SorterConfig(BaseModel):
    """
    Runtime configuration built once at startup.

    Passed by reference into the classifier, relocator, queue and watcher.
    """
    model_config = ConfigDict(frozen=True)

    provider_name: ProviderName
    provider: ProviderConfig
    api_key: str
    detail: DetailLevel = "low"
    categories: Dict[str, str]
    watch_dir: Path
    output_root: Path
    retroactive: bool = False
    watch: bool = False
    request_timeout: float = 60.0
    stability_threshold: float = 2.0
    poll_interval: float = 0.5

    @property
    def originals_dir(self) -> Path:
        """Directory holding pre-rename backups."""
        return self.output_root / ORIGINALS_DIR_NAME

    def category_dir(self, category: str) -> Path:
        """Destination directory for ``category``."""
        return self.output_root / category


# =====================================================
# Pipeline Models
# =====================================================

class ScreenshotFile(BaseModel):
    """A discovered screenshot on disk."""
    model_config = ConfigDict(frozen=True)

    path: Path
    capture_date: str = ""

    @property
    def name(self) -> str:
        return self.path.name


class ClassificationResult(BaseModel):
    """Model suggestion for a screenshot. ``filename`` has no extension."""
    category: Optional[str] = None
    filename: str

"""Shared fixtures for shotsort tests."""

from pathlib import Path

import pytest

from shotsort.models.schemas import ProviderConfig, SorterConfig
from shotsort.utils.config import DEFAULT_CONFIG
from tests.helpers import PNG_BYTES


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Desktop"
    path.mkdir()
    return path


@pytest.fixture
def make_config(tmp_path: Path, watch_dir: Path):
    """Factory for runtime configs rooted in ``tmp_path``."""

    def _make(**overrides) -> SorterConfig:
        values = {
            "provider_name": "ollama",
            "provider": ProviderConfig.model_validate(DEFAULT_CONFIG["ollama"]),
            "api_key": "ollama",
            "detail": "low",
            "categories": DEFAULT_CONFIG["categories"],
            "watch_dir": watch_dir,
            "output_root": tmp_path / "out",
            "retroactive": True,
            "stability_threshold": 0.05,
            "poll_interval": 0.01,
        }
        values.update(overrides)
        return SorterConfig(**values)

    return _make


@pytest.fixture
def make_screenshot(watch_dir: Path):
    """Write a fake PNG into the watch directory."""

    def _make(name: str = "Screenshot 2024-03-05 at 10.15.42 AM.png", data: bytes = PNG_BYTES) -> Path:
        path = watch_dir / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def output_dirs(make_config):
    """Create the output tree for the default config."""
    config = make_config()
    config.output_root.mkdir(parents=True, exist_ok=True)
    for category in config.categories:
        config.category_dir(category).mkdir(exist_ok=True)
    config.originals_dir.mkdir(exist_ok=True)
    return config

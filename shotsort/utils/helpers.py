"""
Helper utilities for shotsort.

Common path and filename functions used across the pipeline.
"""

import re
from pathlib import Path

from loguru import logger


IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic", ".tiff")


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def sanitize_filename(filename: str) -> str:
    """
    Clean a model-suggested filename.

    Removes path separators and reserved characters, collapses whitespace
    into dashes and strips a trailing image extension.

    Args:
        filename: Suggested name

    Returns:
        Sanitised name, possibly empty
    """
    name = filename.strip()
    lowered = name.lower()
    for ext in IMAGE_EXTENSIONS:
        if lowered.endswith(ext):
            name = name[: -len(ext)]
            break

    # Remove invalid filename characters
    sanitized = re.sub(r'[<>:"/\\|?*\x00-\x1f]', '', name)
    sanitized = re.sub(r'\s+', '-', sanitized)
    # Remove leading/trailing spaces, dots and dashes
    sanitized = sanitized.strip('. -')
    # Limit length
    if len(sanitized) > 200:
        sanitized = sanitized[:200]
    return sanitized


def ensure_dir(path: Path) -> bool:
    """
    Create ``path`` if missing.

    Returns:
        True if the directory was created, False if it already existed
    """
    if path.is_dir():
        return False

    path.mkdir(parents=True, exist_ok=True)
    logger.opt(colors=True).success("Created folder: <yellow>{}</yellow>", path)
    return True

"""
Backup, rename and move classified screenshots.

The destination is ``<output_root>/<category>/<date>-<name><ext>`` when the
category is configured, otherwise ``<output_root>/<date>-<name><ext>``.
Existing files are never overwritten; a numeric suffix is added instead.
"""

import asyncio
import shutil
from pathlib import Path

from loguru import logger

from shotsort.models.schemas import ClassificationResult, SorterConfig


class RelocationError(Exception):
    """Backup or move of a screenshot failed."""


def unique_destination(path: Path, overwrite: bool = False) -> Path:
    """
    Return the first free path for ``path``.

    Tries ``name.ext``, then ``name-1.ext``, ``name-2.ext`` and so on.
    """
    if overwrite:
        return path

    candidate = path
    count = 0
    while candidate.exists():
        count += 1
        candidate = path.with_name(f"{path.stem}-{count}{path.suffix}")
    return candidate


class Relocator:
    """Moves screenshots into the category tree."""

    def __init__(self, config: SorterConfig):
        self.config = config
        self.output_root = config.output_root
        self.originals_dir = config.originals_dir
        self.categories = set(config.categories)

    def destination_dir(self, category: str | None) -> Path:
        """Category folder when ``category`` is configured, else the output root."""
        if category and category in self.categories:
            return self.config.category_dir(category)
        return self.output_root

    def destination_for(
        self, source: Path, classification: ClassificationResult, capture_date: str
    ) -> Path:
        """Compute the destination path before collision handling."""
        filename = f"{capture_date}-{classification.filename}{source.suffix}"
        return self.destination_dir(classification.category) / filename

    async def backup(self, source: Path) -> Path:
        """
        Copy ``source`` into the originals folder under its own name.

        A previous backup with the same name is replaced.
        """
        target = self.originals_dir / source.name
        await asyncio.to_thread(shutil.copyfile, source, target)
        logger.debug(f"Backed up {source.name} to {target}")
        return target

    async def relocate(
        self,
        source: Path,
        classification: ClassificationResult,
        capture_date: str,
        overwrite: bool = False,
    ) -> Path:
        """
        Back up ``source`` and move it to its collision-free destination.

        Args:
            source: Screenshot to move
            classification: Suggested category and filename
            capture_date: ``YYMMDD`` prefix, may be empty
            overwrite: Replace an existing destination instead of numbering

        Returns:
            Final path of the moved file

        Raises:
            RelocationError: If the backup or the move fails
        """
        destination = self.destination_for(source, classification, capture_date)

        try:
            await self.backup(source)
        except OSError as e:
            raise RelocationError(f"Error backing up the file {source}: {e}") from e

        new_path = unique_destination(destination, overwrite)

        try:
            await asyncio.to_thread(shutil.move, str(source), str(new_path))
        except OSError as e:
            raise RelocationError(f"Error renaming the file {source}: {e}") from e

        logger.opt(colors=True).success("File renamed to <yellow>{}</yellow>", new_path)
        return new_path

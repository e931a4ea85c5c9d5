#!/usr/bin/env python3
"""
shotsort - command line entry point.

Renames and organizes Mac screenshots by their contents with the help of a
vision model. Watches for new screenshots, renames each one to describe its
content and moves it into one of the configured category folders.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

from shotsort import __version__
from shotsort.models.schemas import SorterConfig
from shotsort.pipeline.classifier import Classifier, build_prompt
from shotsort.pipeline.relocator import Relocator
from shotsort.pipeline.work_queue import ScreenshotPipeline, WorkQueue
from shotsort.utils.config import SUPPORTED_PROVIDERS, Settings, get_settings, load_app_config
from shotsort.utils.helpers import ensure_dir, normalise_path
from shotsort.watchers.filesystem import ScreenshotWatcher


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


class StartupError(Exception):
    """Configuration problem detected before any file is processed."""


def configure_logging(level: str = "INFO"):
    """Replace the default loguru sink with the console format."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level.upper())


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        prog="shotsort",
        description=(
            "Rename and organize Mac screenshots by their contents with the help of AI. "
            "Watches for new screenshots, renames each one to describe its content and "
            "moves it to one of the pre-defined category directories."
        ),
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--detail",
        choices=("low", "high", "auto"),
        default="low",
        help="What image resolution to use for inference (default: low).",
    )
    parser.add_argument(
        "--provider",
        default="ollama",
        help="Choose supported API provider - openai or ollama (default: ollama).",
    )
    parser.add_argument(
        "--outdir",
        type=Path,
        default=None,
        help="Path to save renamed images to (default: <watch dir>/Screenshots).",
    )
    parser.add_argument(
        "--retroactive",
        action="store_true",
        help="Process already existing screenshots.",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Watch for new screenshots.",
    )
    parser.add_argument(
        "--watch-dir",
        type=Path,
        default=None,
        help="Folder to look for screenshots in (default: ~/Desktop).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="User configuration file with categories and provider settings.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: from LOG_LEVEL or INFO).",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, settings: Settings) -> SorterConfig:
    """
    Validate CLI options and settings into the runtime configuration.

    Raises:
        StartupError: If the options cannot be used
    """
    if not args.watch and not args.retroactive:
        raise StartupError("Missing options. Add --watch and/or --retroactive")

    provider_name = args.provider.lower()
    if provider_name not in SUPPORTED_PROVIDERS:
        raise StartupError(f"Selected provider {provider_name} is not supported")

    if provider_name == "openai":
        if not settings.openai_api_key:
            raise StartupError(
                "OPENAI_API_KEY is not provided. Create `.env` file and add the API key."
            )
        api_key = settings.openai_api_key
    else:
        api_key = "ollama"

    watch_dir = normalise_path(args.watch_dir or settings.watch_dir)
    if not watch_dir.is_dir():
        raise StartupError(f"Watch directory does not exist: {watch_dir}")

    output_root = normalise_path(args.outdir) if args.outdir else watch_dir / "Screenshots"
    app_config = load_app_config(args.config or settings.user_config_path)

    return SorterConfig(
        provider_name=provider_name,
        provider=app_config.provider(provider_name),
        api_key=api_key,
        detail=args.detail,
        categories=app_config.categories,
        watch_dir=watch_dir,
        output_root=output_root,
        retroactive=args.retroactive,
        watch=args.watch,
        request_timeout=settings.request_timeout,
        stability_threshold=settings.stability_threshold,
        poll_interval=settings.poll_interval,
    )


def prepare_output_dirs(config: SorterConfig):
    """
    Create the output root, category folders and originals folder.

    Raises:
        StartupError: If a folder cannot be created
    """
    try:
        ensure_dir(config.output_root)
        for category in config.categories:
            ensure_dir(config.category_dir(category))
        ensure_dir(config.originals_dir)
    except OSError as e:
        raise StartupError(f"Cannot create output folders in {config.output_root}: {e}") from e


async def run(config: SorterConfig, client: Optional[httpx.AsyncClient] = None) -> int:
    """
    Process screenshots until done (one-shot) or until stopped (watch mode).

    Args:
        config: Runtime configuration
        client: Optional HTTP client for the classifier

    Returns:
        Process exit status
    """
    prompt = build_prompt(config.categories)

    async with Classifier(config, prompt, client=client) as classifier:
        pipeline = ScreenshotPipeline(classifier, Relocator(config))
        queue = WorkQueue(
            pipeline.process_file,
            on_drain=lambda: logger.success("All screenshots have been processed."),
        )
        watcher = ScreenshotWatcher(config, queue)

        if config.retroactive:
            found = watcher.enqueue_existing()
            if found == 0 and not config.watch:
                logger.info("No screenshot was found. Use --watch for continuous monitoring.")
                return 0

        if not config.watch:
            await queue.join()
            return 0

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, stop_event.set)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handler for {signum} not supported")

        watcher.start_watching()
        try:
            await stop_event.wait()
            logger.info("Stopping screenshot watcher...")
        finally:
            await watcher.stop_watching()
            await queue.close()

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI."""

    args = parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        config = build_config(args, settings)
        prepare_output_dirs(config)
    except StartupError as e:
        logger.error(str(e))
        return 1

    logger.opt(colors=True).info(
        "Using <yellow>{} ({})</yellow>, saving to <yellow>{}</yellow>",
        config.provider.model,
        config.provider_name,
        config.output_root,
    )

    try:
        return asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("shotsort stopped by user")
        return 0


def run_cli():
    """Console script bridge."""
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    run_cli()

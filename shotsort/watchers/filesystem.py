"""
Screenshot source watcher.

Admits screenshots into the work queue from a one-off scan of the watch
directory and from watchdog creation events. Watching is non-recursive and
new files are only admitted once their size has stopped changing.
"""

import asyncio
from pathlib import Path
from typing import Callable, Optional, Set

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from shotsort.models.schemas import SorterConfig
from shotsort.pipeline.matcher import is_screenshot_name
from shotsort.pipeline.work_queue import WorkQueue
from shotsort.utils.helpers import normalise_path


async def wait_for_stable_size(
    path: Path, stability_threshold: float = 2.0, poll_interval: float = 0.5
) -> bool:
    """
    Wait until the size of ``path`` is unchanged for ``stability_threshold`` seconds.

    Args:
        path: File being written
        stability_threshold: Seconds the size must stay the same
        poll_interval: Seconds between size checks

    Returns:
        True once stable, False if the file disappeared
    """
    loop = asyncio.get_running_loop()
    last_size: Optional[int] = None
    stable_since = loop.time()

    while True:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return False

        now = loop.time()
        if size != last_size:
            last_size = size
            stable_since = now
        elif now - stable_since >= stability_threshold:
            return True

        await asyncio.sleep(poll_interval)


class ScreenshotEventHandler(FileSystemEventHandler):
    """Forwards new files from the observer thread to the event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        watch_dir: Path,
        admit: Callable[[Path], None],
    ):
        """
        Initialize event handler.

        Args:
            loop: Event loop owning the work queue
            watch_dir: Watched directory
            admit: Called on the loop thread for each candidate path
        """
        super().__init__()
        self.loop = loop
        self.watch_dir = watch_dir
        self.admit = admit

    def should_process(self, path: Path) -> bool:
        """Only direct children of the watch directory named like screenshots."""
        return (
            is_screenshot_name(path.name)
            and normalise_path(path.parent) == normalise_path(self.watch_dir)
        )

    def on_created(self, event: FileSystemEvent):
        """Handle file creation."""
        if event.is_directory:
            return
        self._dispatch(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle files renamed into the watch directory."""
        if event.is_directory:
            return
        dest = getattr(event, "dest_path", None)
        if dest:
            self._dispatch(dest)

    def _dispatch(self, raw_path):
        try:
            path = Path(raw_path)
            if not self.should_process(path):
                return

            logger.debug(f"Created: {path}")
            self.loop.call_soon_threadsafe(self.admit, path)

        except Exception as e:
            logger.error(f"Error while watching {self.watch_dir}: {e}")


class ScreenshotWatcher:
    """Feeds screenshots from the watch directory into the work queue."""

    def __init__(self, config: SorterConfig, queue: WorkQueue):
        """
        Initialize screenshot watcher.

        Args:
            config: Runtime configuration
            queue: Work queue receiving paths
        """
        self.config = config
        self.queue = queue
        self.watch_dir = config.watch_dir
        self.observer: Optional[Observer] = None
        self._waiting: Set[Path] = set()
        self._admissions: Set[asyncio.Task] = set()

    def scan_existing(self) -> list[Path]:
        """
        List screenshots already present in the watch directory.

        Returns:
            Sorted list of matching files
        """
        found = []
        for entry in self.watch_dir.iterdir():
            if entry.is_symlink() or not entry.is_file():
                continue
            if not is_screenshot_name(entry.name):
                continue
            found.append(entry)

        return sorted(found)

    def enqueue_existing(self) -> int:
        """
        Queue every existing screenshot.

        Returns:
            Number of files queued
        """
        files = self.scan_existing()
        logger.info(f"Found {len(files)} existing screenshots in {self.watch_dir}")

        for path in files:
            self.queue.push(path)

        return len(files)

    def admit(self, path: Path):
        """Queue ``path`` once it is fully written. Runs on the loop thread."""
        if path in self._waiting:
            return

        try:
            task = asyncio.get_running_loop().create_task(self._admit(path))
        except Exception as e:
            logger.error(f"Error while watching {self.watch_dir}: {e}")
            return

        self._waiting.add(path)
        self._admissions.add(task)
        task.add_done_callback(self._admissions.discard)

    async def _admit(self, path: Path):
        try:
            stable = await wait_for_stable_size(
                path,
                stability_threshold=self.config.stability_threshold,
                poll_interval=self.config.poll_interval,
            )
            if stable:
                logger.info(f"New screenshot: {path.name}")
                self.queue.push(path)
            else:
                logger.debug(f"File disappeared before it settled: {path}")

        except Exception as e:
            logger.error(f"Error while watching {self.watch_dir}: {e}")
        finally:
            self._waiting.discard(path)

    def start_watching(self):
        """Start the watchdog observer. Must be called from the event loop."""
        handler = ScreenshotEventHandler(
            loop=asyncio.get_running_loop(),
            watch_dir=self.watch_dir,
            admit=self.admit,
        )

        self.observer = Observer()
        self.observer.schedule(handler, str(self.watch_dir), recursive=False)
        self.observer.daemon = True
        self.observer.start()
        logger.opt(colors=True).success("Watching <yellow>{}</yellow>", self.watch_dir)

    async def stop_watching(self):
        """Stop the observer and cancel admissions still settling."""
        if self.observer is not None:
            self.observer.stop()
            await asyncio.to_thread(self.observer.join)
            self.observer = None
            logger.info("File system observer stopped")

        for task in list(self._admissions):
            task.cancel()

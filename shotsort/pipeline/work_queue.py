"""
Single-concurrency FIFO work queue and the per-file pipeline.

One file at a time runs matcher -> classifier -> relocator. This keeps the
model request rate down and the log output in order. A failing task is
logged and reported on its own future; later tasks still run.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from shotsort.models.schemas import ScreenshotFile
from shotsort.pipeline.classifier import Classifier
from shotsort.pipeline.matcher import extract_date, is_screenshot_name
from shotsort.pipeline.relocator import Relocator


TaskHandler = Callable[[Path], Awaitable[Any]]


class ScreenshotPipeline:
    """Classifies and relocates one screenshot."""

    def __init__(self, classifier: Classifier, relocator: Relocator):
        self.classifier = classifier
        self.relocator = relocator

    async def process_file(self, path: Path) -> Optional[Path]:
        """
        Generate a new filename, back up the original, rename and move it.

        Args:
            path: Candidate file

        Returns:
            New path, or None if the file was skipped
        """
        if not is_screenshot_name(path.name):
            logger.debug(f"Skipping non-screenshot file: {path.name}")
            return None

        # may have been handled already when admitted twice
        if not path.is_file():
            logger.debug(f"Skipping missing file: {path}")
            return None

        screenshot = ScreenshotFile(path=path, capture_date=extract_date(path.name))
        logger.debug(f"Processing {screenshot.name}")
        classification = await self.classifier.classify(screenshot.path)

        return await self.relocator.relocate(
            screenshot.path, classification, screenshot.capture_date
        )


@dataclass
class QueueTask:
    """A queued path and the future completed when it has been processed."""

    path: Path
    future: asyncio.Future


def _retrieve_exception(future: asyncio.Future):
    # failures are already logged by the worker
    if not future.cancelled():
        future.exception()


class WorkQueue:
    """FIFO queue processed by a single worker task."""

    def __init__(self, handler: TaskHandler, on_drain: Optional[Callable[[], None]] = None):
        """
        Initialize work queue.

        Args:
            handler: Coroutine function run for each path
            on_drain: Called every time the queue becomes empty and idle
        """
        self.handler = handler
        self.on_drain = on_drain
        self._queue: asyncio.Queue[QueueTask] = asyncio.Queue()
        self._pending = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._worker: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        """Number of queued plus executing tasks."""
        return self._pending

    def push(self, path: Path) -> asyncio.Future:
        """
        Enqueue ``path``. Must be called from the event loop thread.

        Returns:
            Future resolved with the handler's result or its exception
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        future.add_done_callback(_retrieve_exception)

        self._pending += 1
        self._idle.clear()
        self._queue.put_nowait(QueueTask(path=Path(path), future=future))

        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())
        return future

    async def join(self):
        """Wait until no task is queued or executing."""
        await self._idle.wait()

    async def close(self):
        """Stop the worker. Queued tasks are cancelled."""
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        while not self._queue.empty():
            self._queue.get_nowait().future.cancel()
        self._pending = 0
        self._idle.set()

    async def _run(self):
        while True:
            task = await self._queue.get()
            try:
                result = await self.handler(task.path)
            except asyncio.CancelledError:
                task.future.cancel()
                raise
            except Exception as e:
                logger.error(f"Error processing file {task.path}: {e}")
                if not task.future.done():
                    task.future.set_exception(e)
            else:
                if not task.future.done():
                    task.future.set_result(result)
            finally:
                self._queue.task_done()
                self._pending -= 1

            if self._pending == 0:
                self._idle.set()
                if self.on_drain is not None:
                    self.on_drain()

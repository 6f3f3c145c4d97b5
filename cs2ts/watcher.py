"""Watch mode: debounced filesystem changes feeding single-file rebuilds."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from watchfiles import Change, DefaultFilter, awatch

from .config import Config
from .engine import IncrementalEngine
from .logging import get_logger
from .models import ProcessingStats

DEBOUNCE_MS = 500

RebuildCallback = Callable[[Path, ProcessingStats], None]


class WatchError(RuntimeError):
    """Raised when the watcher cannot be started."""


class SourceFilter(DefaultFilter):
    """Pass only selected source files, on top of the default VCS/cache ignores."""

    def __init__(self, config: Config) -> None:
        super().__init__()
        self.config = config

    def __call__(self, change: Change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        return self.config.is_valid_extension(path) and not self.config.should_ignore(path)


class WatchSession:
    """Pairs a filesystem watcher with a single consumer driving the engine.

    The watcher only enqueues ``(change, path)`` pairs; the consumer owns the
    engine, so rebuilds never overlap and run in event order.
    """

    def __init__(
        self,
        engine: IncrementalEngine,
        input_root: Path,
        output_root: Path,
        *,
        debounce_ms: int = DEBOUNCE_MS,
        on_rebuild: Optional[RebuildCallback] = None,
    ) -> None:
        self.engine = engine
        self.input_root = Path(input_root)
        self.output_root = Path(output_root)
        self.debounce_ms = debounce_ms
        self.on_rebuild = on_rebuild
        self.queue: asyncio.Queue[Optional[Tuple[Change, Path]]] = asyncio.Queue()
        self.logger = get_logger("watcher")

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Watch until ``stop_event`` is set (or forever), then drain the queue."""
        if not self.input_root.is_dir():
            raise WatchError(f"Cannot watch {self.input_root}: not a directory")
        consumer = asyncio.create_task(self.consume())
        try:
            await self.produce(stop_event)
        finally:
            await self.queue.put(None)
            await consumer

    async def produce(self, stop_event: Optional[asyncio.Event] = None) -> None:
        self.logger.info("Watching for changes in %s", self.input_root)
        try:
            async for changes in awatch(
                self.input_root,
                watch_filter=SourceFilter(self.engine.config),
                debounce=self.debounce_ms,
                recursive=True,
                stop_event=stop_event,
            ):
                for change, path in collapse_changes(changes):
                    await self.queue.put((change, path))
        except FileNotFoundError as exc:
            raise WatchError(f"Cannot watch {self.input_root}: {exc}") from exc

    async def consume(self) -> None:
        while True:
            item = await self.queue.get()
            try:
                if item is None:
                    return
                change, path = item
                self.handle_change(change, path)
            except Exception:
                self.logger.exception("Unexpected failure while handling %s", item[1])
            finally:
                self.queue.task_done()

    def handle_change(self, change: Change, path: Path) -> bool:
        """Apply one filesystem change. Returns True when the engine was invoked.

        Per-file I/O failures are logged and swallowed so the session keeps
        running.
        """
        config = self.engine.config
        if not config.is_valid_extension(path) or config.should_ignore(path):
            return False

        before = self.engine.stats.snapshot()
        # Safe-write editors report a delete for a file that is back on disk.
        if change == Change.deleted and not path.is_file():
            removed = self.engine.forget(path)
            self.logger.info("Source removed: %s (%d outputs deleted)", path, len(removed))
        else:
            if not path.is_file():
                return False
            self.logger.info("File changed: %s", path)
            try:
                self.engine.process_file(path, self.input_root, self.output_root)
            except OSError:
                self.logger.exception("Failed to regenerate outputs for %s", path)
                return True

        if self.on_rebuild is not None:
            self.on_rebuild(path, self.engine.stats.since(before))
        return True


def collapse_changes(changes: Iterable[Tuple[Change, str]]) -> List[Tuple[Change, Path]]:
    """Reduce a debounced batch to one entry per path, reflecting the disk state.

    A batch can hold ``added`` and ``deleted`` for the same path in any
    order; whether the file exists now decides which one wins.
    """
    collapsed: List[Tuple[Change, Path]] = []
    for raw_path in sorted({raw_path for _, raw_path in changes}):
        path = Path(raw_path)
        collapsed.append((Change.modified if path.is_file() else Change.deleted, path))
    return collapsed


__all__ = ["DEBOUNCE_MS", "SourceFilter", "WatchError", "WatchSession", "collapse_changes"]

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from pathlib import Path

from watchfiles import Change, DefaultFilter, awatch

from thrift_ts.core.paths import THRIFT_EXTENSIONS
from thrift_ts.core.ports.watcher import ChangeCallback

logger = logging.getLogger(__name__)

# Milliseconds of quiet before a batch of changes is delivered.
DEFAULT_DEBOUNCE_MS = 300


def _is_idl_file(path: Path) -> bool:
    return path.suffix in THRIFT_EXTENSIONS


class IdlFilter(DefaultFilter):
    """Pass ``.thrift`` files only, skipping VCS/cache dirs and any ``ignore_paths`` (e.g. the output root)."""

    def __init__(self, *, ignore_paths: Sequence[str | Path] = ()) -> None:
        super().__init__(ignore_paths=[str(path) for path in ignore_paths])

    def __call__(self, change: Change, path: str) -> bool:
        return _is_idl_file(Path(path)) and super().__call__(change, path)


class WatchfilesWatcher:
    """Watch a source root for IDL changes and hand each debounced batch to a callback.

    Implements the ``SourceWatcherPort`` protocol. Batches are delivered one at
    a time: changes that arrive while the callback runs are coalesced into the
    next batch instead of starting a second rebuild.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: ChangeCallback,
        *,
        ignore_paths: Sequence[str | Path] = (),
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._filter = IdlFilter(ignore_paths=ignore_paths)
        self._debounce_ms = debounce_ms
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watching %s for IDL changes", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped watching %s", self._directory)

    async def wait(self) -> None:
        """Block until the watch loop ends."""
        if self._task is not None:
            await self._task

    async def _watch(self) -> None:
        batches = awatch(self._directory, watch_filter=self._filter, debounce=self._debounce_ms)
        async for changes in batches:
            paths = {Path(path) for change, path in changes if self._filter(change, path)}
            if not paths:
                continue
            logger.info("Rebuilding after changes in %d IDL file(s)", len(paths))
            try:
                await self._on_change(paths)
            except Exception:
                logger.exception("Rebuild after %s failed", ", ".join(sorted(map(str, paths))))

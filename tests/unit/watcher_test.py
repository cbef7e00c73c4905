"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from watchfiles import Change

from thrift_ts.watcher.watchfiles_adapter import DEFAULT_DEBOUNCE_MS, IdlFilter, WatchfilesWatcher, _is_idl_file


class TestIsIdlFile:
    def test_thrift_file(self) -> None:
        assert _is_idl_file(Path("api/service.thrift")) is True

    def test_generated_typescript_is_ignored(self) -> None:
        assert _is_idl_file(Path("gen/service.ts")) is False

    def test_no_extension(self) -> None:
        assert _is_idl_file(Path("Makefile")) is False

    def test_extension_is_case_sensitive(self) -> None:
        assert _is_idl_file(Path("LEGACY.THRIFT")) is False


class TestIdlFilter:
    def test_passes_idl_files(self) -> None:
        assert IdlFilter()(Change.modified, "/idl/api/service.thrift") is True

    def test_rejects_other_files(self) -> None:
        assert IdlFilter()(Change.added, "/idl/gen/service.ts") is False

    def test_rejects_vcs_directories(self) -> None:
        assert IdlFilter()(Change.modified, "/idl/.git/objects/x.thrift") is False

    def test_rejects_ignored_paths(self) -> None:
        idl_filter = IdlFilter(ignore_paths=[Path("/idl/gen")])
        assert idl_filter(Change.added, "/idl/gen/copy.thrift") is False
        assert idl_filter(Change.added, "/idl/api.thrift") is True


class TestWatchfilesWatcher:
    def test_implements_protocol(self) -> None:
        from thrift_ts.core.ports.watcher import SourceWatcherPort

        callback = AsyncMock()
        watcher: SourceWatcherPort = WatchfilesWatcher("/tmp", callback)
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")

    @pytest.mark.asyncio
    async def test_start_creates_task(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/tmp", callback)

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _blocking_iter()
            await watcher.start()
            assert watcher._task is not None
            await watcher.stop()
            assert watcher._task is None

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_double_start_keeps_first_task(self) -> None:
        watcher = WatchfilesWatcher("/tmp", AsyncMock())

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _blocking_iter()
            await watcher.start()
            first = watcher._task
            await watcher.start()
            assert watcher._task is first
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_idl_files_only(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/idl", callback)

        changes = {(1, "/idl/a.thrift"), (2, "/idl/notes.md"), (1, "/idl/sub/b.thrift")}

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        paths = callback.call_args[0][0]
        assert paths == {Path("/idl/a.thrift"), Path("/idl/sub/b.thrift")}

    @pytest.mark.asyncio
    async def test_callback_not_called_without_idl_changes(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/idl", callback)

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/idl/readme.txt")})
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_watching(self) -> None:
        callback = AsyncMock(side_effect=[RuntimeError("boom"), None])
        watcher = WatchfilesWatcher("/idl", callback)

        batches = [{(1, "/idl/a.thrift")}, {(2, "/idl/b.thrift")}]

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _batches_iter(batches)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        assert callback.call_count == 2

    @pytest.mark.asyncio
    async def test_awatch_gets_filter_and_debounce(self) -> None:
        watcher = WatchfilesWatcher("/idl", AsyncMock(), ignore_paths=["/idl/gen"], debounce_ms=50)

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _batches_iter([])
            await watcher.start()
            await watcher.wait()
            await watcher.stop()

        args, kwargs = mock_awatch.call_args
        assert args == (Path("/idl"),)
        assert isinstance(kwargs["watch_filter"], IdlFilter)
        assert kwargs["debounce"] == 50

    def test_default_debounce(self) -> None:
        assert WatchfilesWatcher("/idl", AsyncMock())._debounce_ms == DEFAULT_DEBOUNCE_MS

    @pytest.mark.asyncio
    async def test_changes_under_ignored_paths_are_dropped(self) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher("/idl", callback, ignore_paths=["/idl/gen"])

        changes = {(1, "/idl/gen/stale.thrift"), (2, "/idl/api.thrift")}

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once_with({Path("/idl/api.thrift")})

    @pytest.mark.asyncio
    async def test_wait_returns_when_loop_ends(self) -> None:
        watcher = WatchfilesWatcher("/idl", AsyncMock())

        with patch("thrift_ts.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _batches_iter([])
            await watcher.start()
            await asyncio.wait_for(watcher.wait(), timeout=1)
            await watcher.stop()


async def _blocking_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return


async def _batches_iter(batches: list[set[tuple[int, str]]]) -> AsyncIterator[set[tuple[int, str]]]:
    for batch in batches:
        yield batch

"""Compile entry IDL files, and every file they include, into TypeScript.

Each file is one task on a thread pool. A task parses its file, writes the
generated module under the output root and submits a task per include. A
shared seen-set admits every absolute source path once, so diamonds and
include cycles terminate. Errors travel back to the driver over a queue; the
first one fails the build.
"""

import logging
import os
import queue
import shutil
import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from thrift_ts.core.generate import GenerateOptions, Generator
from thrift_ts.core.parse import ParseError, Parser
from thrift_ts.core.paths import (
    include_path,
    output_path,
    relative_source_path,
    resolve_root,
    source_path,
)
from thrift_ts.core.visit import collect_includes

logger = logging.getLogger(__name__)

WORKERS_ENV = "THRIFT_TS_WORKERS"

_FINISHED = object()


class CompileError(Exception):
    """A failed build, worded for the user."""


def default_workers() -> int:
    value = os.getenv(WORKERS_ENV, "").strip()
    if not value:
        return os.cpu_count() or 1
    try:
        workers = int(value)
    except ValueError:
        raise CompileError(f"{WORKERS_ENV} must be a positive integer, got {value!r}") from None
    if workers < 1:
        raise CompileError(f"{WORKERS_ENV} must be a positive integer, got {value!r}")
    return workers


class Compiler:
    def __init__(
        self,
        inputs: Iterable[str | Path],
        src_root: str | Path,
        out_root: str | Path,
        options: GenerateOptions | None = None,
        workers: int | None = None,
    ) -> None:
        self.inputs = list(inputs)
        self.src_root = src_root
        self.out_root = out_root
        self.options = options or GenerateOptions()
        self.workers = workers

    def compile(self) -> list[Path]:
        """Run the build. Returns the written files, raises ``CompileError`` on failure."""
        src_root = resolve_root(self.src_root)
        out_root = resolve_root(self.out_root)
        workers = default_workers() if self.workers is None else self.workers
        if workers < 1:
            raise CompileError(f"workers must be a positive integer, got {workers}")

        _scrub_output(out_root, src_root)

        build = _Build(src_root, out_root, self.options, workers)
        written = build.run([source_path(src_root, file) for file in self.inputs])
        logger.info("Compiled %d file(s) into %s", len(written), out_root)
        return written


def compile_idl(
    inputs: Iterable[str | Path],
    src_root: str | Path,
    out_root: str | Path,
    options: GenerateOptions | None = None,
    workers: int | None = None,
) -> list[Path]:
    return Compiler(inputs, src_root, out_root, options, workers).compile()


def _scrub_output(out_root: str, src_root: str) -> None:
    if src_root == out_root or src_root.startswith(out_root.rstrip(os.sep) + os.sep):
        raise CompileError(f"Refusing to remove output root {out_root}: it contains the source root {src_root}")
    if not os.path.lexists(out_root):
        return
    logger.debug("Removing stale output root %s", out_root)
    try:
        shutil.rmtree(out_root)
    except OSError as exc:
        raise CompileError(f"Compiler failed: cannot remove output root {out_root}. {exc}") from exc


class _Build:
    """State shared by the tasks of one ``compile`` call."""

    def __init__(self, src_root: str, out_root: str, options: GenerateOptions, workers: int) -> None:
        self.src_root = src_root
        self.out_root = out_root
        self.options = options
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="thrift-ts")
        self._errors: queue.Queue[object] = queue.Queue()
        self._seen: set[str] = set()
        self._seen_lock = threading.Lock()
        self._state_lock = threading.Lock()
        # The driver holds one count itself until every input is submitted.
        self._pending = 1
        self._aborted = threading.Event()
        self._written: list[Path] = []

    def run(self, files: list[str]) -> list[Path]:
        try:
            for file in files:
                self._submit(file)
            self._release()
            outcome = self._errors.get()
        finally:
            self._abort()
            self._executor.shutdown(wait=True, cancel_futures=True)
        if outcome is not _FINISHED:
            raise CompileError(str(outcome))
        return sorted(self._written)

    def _submit(self, file: str) -> None:
        with self._state_lock:
            if self._aborted.is_set():
                return
            self._pending += 1
            self._executor.submit(self._compile_file, file)

    def _release(self) -> None:
        with self._state_lock:
            self._pending -= 1
            if self._pending == 0:
                self._errors.put(_FINISHED)

    def _abort(self) -> None:
        with self._state_lock:
            self._aborted.set()

    def _admit(self, file: str) -> bool:
        with self._seen_lock:
            if file in self._seen:
                return False
            self._seen.add(file)
            return True

    def _compile_file(self, file: str) -> None:
        try:
            if self._aborted.is_set():
                return
            if not self._admit(file):
                logger.debug("Skipping %s, already compiled", file)
                return
            self._build_file(file)
        except CompileError as exc:
            self._errors.put(str(exc))
        except Exception as exc:
            logger.exception("Unexpected failure while compiling %s", file)
            self._errors.put(f"Compiler failed: {self._display_path(file)}. Internal error: {exc!r}")
        finally:
            self._release()

    def _display_path(self, file: str) -> str:
        try:
            return relative_source_path(self.src_root, file)
        except ValueError:
            return file

    def _build_file(self, file: str) -> None:
        try:
            relative = relative_source_path(self.src_root, file)
        except ValueError as exc:
            raise CompileError(f"Compiler failed: {file}. {exc}") from exc

        try:
            code = Path(file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CompileError(f"Compiler failed: {relative}. {exc}") from exc

        try:
            document = Parser(code, relative).parse()
        except ParseError as exc:
            raise CompileError(f"Compiler failed: {relative}. {exc}") from exc

        ts_code = Generator(document).build(self.options)

        target = output_path(self.out_root, relative)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(ts_code, encoding="utf-8")
        except OSError as exc:
            raise CompileError(f"Compiler failed: {relative}. {exc}") from exc
        with self._state_lock:
            self._written.append(target)
        logger.debug("Compiled %s -> %s", relative, target)

        for include in sorted(collect_includes(document)):
            self._submit(include_path(file, include))

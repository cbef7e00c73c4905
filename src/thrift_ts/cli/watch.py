import asyncio
from pathlib import Path

from rich.markup import escape

from thrift_ts.cli.common import (
    InputsArgument,
    OutOption,
    SrcOption,
    VerboseOption,
    WorkersOption,
    configure_logging,
    console,
    print_failure,
)
from thrift_ts.core.compile import CompileError, Compiler
from thrift_ts.core.paths import resolve_root
from thrift_ts.watcher.watchfiles_adapter import WatchfilesWatcher


def watch(
    inputs: InputsArgument,
    src: SrcOption = Path("."),
    out: OutOption = Path("gen"),
    workers: WorkersOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Compile, then rebuild from scratch whenever an IDL file under --src changes."""
    configure_logging(verbose)
    compiler = Compiler(inputs, src, out, workers=workers)

    def _build() -> None:
        try:
            written = compiler.compile()
        except CompileError as exc:
            print_failure(str(exc))
            return
        console.print(f"[green]Compiled[/green] {len(written)} file(s) into {escape(str(out))}")

    async def _on_change(paths: set[Path]) -> None:
        await asyncio.to_thread(_build)

    async def _run() -> None:
        await asyncio.to_thread(_build)
        watcher = WatchfilesWatcher(resolve_root(src), _on_change, ignore_paths=[resolve_root(out)])
        await watcher.start()
        try:
            await watcher.wait()
        finally:
            await watcher.stop()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped watching.")

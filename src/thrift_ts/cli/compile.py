from pathlib import Path

import typer
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
from thrift_ts.core.compile import CompileError, compile_idl


def compile_command(
    inputs: InputsArgument,
    src: SrcOption = Path("."),
    out: OutOption = Path("gen"),
    workers: WorkersOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Compile IDL files, and every file they include, into TypeScript."""
    configure_logging(verbose)
    try:
        written = compile_idl(inputs, src, out, workers=workers)
    except CompileError as exc:
        print_failure(str(exc))
        raise typer.Exit(1) from None
    console.print(f"[green]Compiled[/green] {len(written)} file(s) into {escape(str(out))}")

"""Options and console plumbing shared by the CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from thrift_ts.core.compile import WORKERS_ENV

console = Console()
err_console = Console(stderr=True)

InputsArgument = Annotated[list[Path], typer.Argument(help="Entry IDL files, absolute or relative to --src.")]
SrcOption = Annotated[Path, typer.Option("--src", "-s", help="Source root of the IDL tree.")]
OutOption = Annotated[Path, typer.Option("--out", "-o", help="Output root. Removed and rebuilt on every run.")]
WorkersOption = Annotated[
    int | None,
    typer.Option("--workers", "-j", min=1, help=f"Worker threads (default: ${WORKERS_ENV} or the CPU count)."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log every compiled file.")]


def configure_logging(verbose: bool) -> None:
    logger = logging.getLogger("thrift_ts")
    logger.handlers = [RichHandler(console=err_console, show_path=False)]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


def print_failure(message: str) -> None:
    """One plain line on stderr, no markup and no wrapping."""
    err_console.print(message, markup=False, highlight=False, soft_wrap=True)

import typer

from thrift_ts.cli.compile import compile_command
from thrift_ts.cli.watch import watch

app = typer.Typer(
    name="thrift-ts",
    help="thrift-ts — compile Thrift IDL into TypeScript declarations.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("compile")(compile_command)
app.command("watch")(watch)


def main() -> None:
    app()

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from codex_twoslash.cli.options import options
from codex_twoslash.cli.render import render
from codex_twoslash.config import get_settings

app = typer.Typer(
    name="codex-twoslash",
    help="Codex Twoslash CLI: render annotated code samples.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every pipeline step.")] = False,
) -> None:
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(level=level, format="%(message)s", handlers=[RichHandler(show_path=False)], force=True)


app.command("render")(render)
app.command("options")(options)


def main() -> None:
    app()

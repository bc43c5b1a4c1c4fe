from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from codex_twoslash.core.twoslash import twoslasher
from codex_twoslash.errors import TwoSlashError
from codex_twoslash.models import TwoSlashReturn

console = Console()

_SYNTAX_LEXERS = {"ts": "typescript", "tsx": "tsx", "d.ts": "typescript", "js": "javascript", "jsx": "jsx"}


def _render_records(result: TwoSlashReturn) -> None:
    console.print(Syntax(result.code, _SYNTAX_LEXERS.get(result.extension, result.extension), line_numbers=True))

    if result.highlights:
        table = Table(title="highlights")
        for h in ("position", "length", "description"):
            table.add_column(h)
        for highlight in result.highlights:
            table.add_row(str(highlight.position), str(highlight.length), highlight.description)
        console.print(table)

    if result.queries:
        table = Table(title="queries")
        for h in ("start", "line", "text"):
            table.add_column(h)
        for query in result.queries:
            table.add_row(str(query.start), str(query.line), query.text or "")
        console.print(table)

    if result.errors:
        table = Table(title="errors")
        for h in ("code", "line", "character", "message"):
            table.add_column(h)
        for err in result.errors:
            table.add_row(str(err.code), str(err.line), str(err.character), err.rendered_message)
        console.print(table)

    console.print(f"({len(result.static_quick_infos)} quick infos)")
    console.print(result.playground_url, style="dim")


def render(
    path: Annotated[Path | None, typer.Argument(help="Path to an annotated sample.")] = None,
    code: Annotated[str | None, typer.Option(help="Sample source string to render instead of a file path.")] = None,
    extension: Annotated[
        str | None, typer.Option(help="Sample language (ts, tsx, js, jsx, json, d.ts). Defaults to the file suffix.")
    ] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the full result as JSON.")] = False,
) -> None:
    """Render an annotated code sample."""
    if code is None:
        if path is None:
            raise typer.BadParameter("Provide a sample path or --code.")
        code = path.read_text(encoding="utf-8")
    resolved_extension = extension or (path.suffix.lstrip(".") if path is not None else "ts")

    try:
        result = twoslasher(code, resolved_extension)
    except TwoSlashError as exc:
        console.print(str(exc), style="red", markup=False, highlight=False)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(result.model_dump_json(by_alias=True, indent=2))
    else:
        _render_records(result)

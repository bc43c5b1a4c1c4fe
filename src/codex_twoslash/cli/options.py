from rich.console import Console
from rich.table import Table

from codex_twoslash.core.ports.engine import EnumOption, ListOption, OptionDeclaration
from codex_twoslash.engine import OPTION_DECLARATIONS

console = Console()


def _kind(declaration: OptionDeclaration) -> str:
    if isinstance(declaration, ListOption):
        return f"list[{_kind(declaration.element)}]"
    if isinstance(declaration, EnumOption):
        return " | ".join(declaration.values)
    return type(declaration).__name__.removesuffix("Option").lower()


def options() -> None:
    """List the compiler options a sample may set with // @name: value."""
    table = Table(show_lines=False)
    table.add_column("name", no_wrap=True)
    table.add_column("type")
    table.add_column("description")
    for declaration in sorted(OPTION_DECLARATIONS.values(), key=lambda d: d.name.lower()):
        table.add_row(declaration.name, _kind(declaration), declaration.description)
    console.print(table)
    console.print(f"({len(OPTION_DECLARATIONS)} rows)")

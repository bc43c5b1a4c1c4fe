from typing import Any

from codex_twoslash.core.ports.engine import DiagnosticMessageChain
from codex_twoslash.errors import InvalidOptionValueError


def parse_primitive(value: str, kind: str) -> Any:
    """Coerce the raw text of a directive into a boolean, number or string."""
    if kind == "string":
        return value
    if kind == "boolean":
        return value.lower() == "true" or len(value) == 0
    if kind == "number":
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            raise InvalidOptionValueError(f"Expected a number, got '{value}'") from None
    raise InvalidOptionValueError(f"Unknown primitive type {kind} with - {value}")


def escape_html(text: str) -> str:
    return text.replace("<", "&lt;").replace(">", "&gt;")


def clean_markdown_escaped(code: str) -> str:
    """Undo the escapes markdown renderers apply to ``$`` and ``~``."""
    return code.replace("¨D", "$").replace("¨T", "~")


def flatten_diagnostic_message_text(message: str | DiagnosticMessageChain | None, new_line: str, indent: int = 0) -> str:
    if message is None:
        return ""
    if isinstance(message, str):
        return message

    result = ""
    if indent:
        result += new_line + "  " * indent
    result += message.message_text
    for chain in message.next:
        result += flatten_diagnostic_message_text(chain, new_line, indent + 1)
    return result


def line_and_character(code: str, position: int) -> tuple[int, int]:
    """Zero-based line and column of ``position`` within ``code``."""
    prefix = code[:position]
    line = prefix.count("\n")
    return line, position - (prefix.rfind("\n") + 1)

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from lzstring import LZString

from codex_twoslash.config import DEFAULT_COMPILER_OPTIONS, DEFAULT_PLAYGROUND_URL
from codex_twoslash.core.ports.engine import CompilerOptions


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_query_value(v) for v in value)
    return str(value)


def build_playground_url(
    code: str,
    compiler_options: CompilerOptions,
    base_url: str = DEFAULT_PLAYGROUND_URL,
    defaults: Mapping[str, Any] = DEFAULT_COMPILER_OPTIONS,
) -> str:
    """Link to the sample in the playground, carrying the options that differ from the defaults."""
    changed = {
        name: _query_value(value) for name, value in compiler_options.items() if defaults.get(name) != value
    }
    query = f"?{urlencode(changed)}" if changed else ""
    compressed = LZString().compressToEncodedURIComponent(code)
    return f"{base_url}{query}#code/{compressed}"

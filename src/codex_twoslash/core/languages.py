from pathlib import PurePosixPath

from codex_twoslash.errors import InputValidationError

_EXTENSION_ALIASES = {
    "d.ts": "d.ts",
    "javascript": "js",
    "js": "js",
    "json": "json",
    "jsx": "jsx",
    "ts": "ts",
    "tsx": "tsx",
    "typescript": "ts",
}

_EXTENSION_LANGUAGE_MAP = {
    ".cjs": "javascript",
    ".cts": "typescript",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".mts": "typescript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

_EMIT_EXTENSIONS = {
    ".cjs": ".cjs",
    ".cts": ".cjs",
    ".js": ".js",
    ".jsx": ".jsx",
    ".mjs": ".mjs",
    ".mts": ".mjs",
    ".ts": ".js",
    ".tsx": ".jsx",
}


def types_to_extension(types: str) -> str:
    normalized = types.strip().lower()
    if normalized not in _EXTENSION_ALIASES:
        raise InputValidationError(
            f"Cannot handle the file extension: '{types}'. Supported: {sorted(_EXTENSION_ALIASES)}"
        )
    return _EXTENSION_ALIASES[normalized]


def is_declaration_file(file_name: str) -> bool:
    return file_name.lower().endswith((".d.ts", ".d.mts", ".d.cts"))


def detect_language_from_file_name(file_name: str) -> str | None:
    """Return the tree-sitter grammar for a virtual file, or None for plain text."""
    suffix = PurePosixPath(file_name).suffix.lower()
    return _EXTENSION_LANGUAGE_MAP.get(suffix)


def emitted_file_name(file_name: str) -> str | None:
    """Name of the script emitted for ``file_name``, None when nothing is emitted."""
    if is_declaration_file(file_name):
        return None
    path = PurePosixPath(file_name)
    emitted_suffix = _EMIT_EXTENSIONS.get(path.suffix.lower())
    if emitted_suffix is None:
        return None
    return str(path.with_suffix(emitted_suffix))


def extension_of(file_name: str) -> str:
    return file_name.rsplit(".", 1)[-1]

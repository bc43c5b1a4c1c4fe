from tree_sitter import Node

from codex_twoslash.core.ports.engine import CompilerOptions
from codex_twoslash.engine.declarations import walk
from codex_twoslash.engine.documents import Document

# Statements which only exist in the type system and vanish from the output.
_TYPE_ONLY_STATEMENTS = frozenset(
    {
        "interface_declaration",
        "type_alias_declaration",
        "ambient_declaration",
        "function_signature",
        "abstract_method_signature",
        "index_signature",
    }
)

_TYPE_ONLY_NODES = frozenset({"type_annotation", "type_parameters", "type_arguments"})

_MODIFIER_TOKENS = frozenset({"accessibility_modifier", "override_modifier", "readonly", "declare", "abstract"})

Range = tuple[int, int]


def _line_range(source: bytes, start: int, end: int) -> Range:
    """Widen ``start:end`` to whole lines when nothing else shares those lines."""
    line_start = source.rfind(b"\n", 0, start) + 1
    line_end = source.find(b"\n", end)
    if line_end == -1:
        line_end = len(source)
    if source[line_start:start].strip() or source[end:line_end].strip():
        return start, end
    return line_start, min(line_end + 1, len(source))


def _with_leading_space(source: bytes, start: int, end: int) -> Range:
    while start > 0 and source[start - 1 : start] in (b" ", b"\t"):
        start -= 1
    return start, end


def _is_type_only_import(node: Node) -> bool:
    return any(child.type == "type" for child in node.children)


def _is_type_only_export(node: Node) -> bool:
    declaration = node.child_by_field_name("declaration")
    if declaration is not None and declaration.type in _TYPE_ONLY_STATEMENTS:
        return True
    return any(child.type == "type" for child in node.children)


def _removals(document: Document, remove_comments: bool) -> list[Range]:
    root = document.root
    if root is None:
        return []
    source = document.source
    ranges: list[Range] = []
    prune = _TYPE_ONLY_STATEMENTS | _TYPE_ONLY_NODES

    for node in walk(root, prune=prune):
        kind = node.type
        if kind in _TYPE_ONLY_STATEMENTS:
            ranges.append(_line_range(source, node.start_byte, node.end_byte))
        elif kind in _TYPE_ONLY_NODES:
            ranges.append((node.start_byte, node.end_byte))
        elif kind == "export_statement" and _is_type_only_export(node):
            ranges.append(_line_range(source, node.start_byte, node.end_byte))
        elif kind == "import_statement" and _is_type_only_import(node):
            ranges.append(_line_range(source, node.start_byte, node.end_byte))
        elif kind == "implements_clause":
            ranges.append(_with_leading_space(source, node.start_byte, node.end_byte))
        elif kind in ("as_expression", "satisfies_expression") and node.named_child_count > 0:
            ranges.append((node.named_children[0].end_byte, node.end_byte))
        elif kind == "non_null_expression":
            ranges.append((node.end_byte - 1, node.end_byte))
        elif kind == "optional_parameter":
            ranges.extend((child.start_byte, child.end_byte) for child in node.children if child.type == "?")
        elif kind in _MODIFIER_TOKENS and node.parent is not None and node.parent.type != "program":
            start, end = node.start_byte, node.end_byte
            while end < len(source) and source[end : end + 1] in (b" ", b"\t"):
                end += 1
            ranges.append((start, end))
        elif kind == "comment" and remove_comments:
            ranges.append(_line_range(source, node.start_byte, node.end_byte))
    return ranges


def _apply(source: bytes, ranges: list[Range]) -> bytes:
    output = bytearray()
    cursor = 0
    for start, end in sorted(ranges):
        if end <= cursor:
            continue
        output += source[cursor : max(start, cursor)]
        cursor = end
    output += source[cursor:]
    return bytes(output)


def emit_javascript(document: Document, options: CompilerOptions) -> str:
    """Strip TypeScript-only syntax, leaving the runtime code in place.

    Enums, namespaces and constructor parameter properties are emitted as
    written; they have runtime semantics a syntactic strip cannot reproduce.
    """
    remove_comments = bool(options.get("removeComments", False))
    return _apply(document.source, _removals(document, remove_comments)).decode("utf-8")

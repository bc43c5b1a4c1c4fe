import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import cast

from tree_sitter import Node, Query, QueryCursor
from tree_sitter_language_pack import SupportedLanguage, get_language

from codex_twoslash.config import DEFAULT_COMPILER_OPTIONS
from codex_twoslash.core.languages import emitted_file_name
from codex_twoslash.core.ports.engine import (
    CompilerOptions,
    Diagnostic,
    DiagnosticCategory,
    EmitOutput,
    OptionDeclaration,
    OutputFile,
    QuickInfo,
    SymbolDisplayPart,
    TextSpan,
)
from codex_twoslash.engine.declarations import (
    IDENTIFIER_TYPES,
    Declaration,
    DeclarationIndex,
    display_text,
    identifier_at,
    jsdoc_for,
    walk,
)
from codex_twoslash.engine.documents import Document, DocumentRegistry, options_key
from codex_twoslash.engine.emit import emit_javascript
from codex_twoslash.engine.schema import OPTION_DECLARATIONS

logger = logging.getLogger(__name__)

_BLOCK_SCOPED_KINDS = frozenset({"const", "let"})
_REDECLARABLE_KINDS = _BLOCK_SCOPED_KINDS | {"var", "class", "function"}

_ASSIGNMENT_TARGETS = {
    "assignment_expression": "left",
    "augmented_assignment_expression": "left",
    "update_expression": "argument",
}


@lru_cache(maxsize=None)
def _load_query(language: str, query_type: str) -> Query | None:
    queries_dir = Path(__file__).parent.parent / "queries"
    query_path = queries_dir / f"{language}_{query_type}.scm"
    if not query_path.exists():
        return None
    query_text = query_path.read_text(encoding="utf-8")
    return Query(get_language(cast(SupportedLanguage, language)), query_text)


def _captured_nodes(query: Query, root: Node) -> list[Node]:
    captures = QueryCursor(query).captures(root)
    if isinstance(captures, dict):
        return [node for nodes in captures.values() for node in nodes]
    return [node for node, _ in captures]


class TreeSitterLanguageService:
    """Language service backed by tree-sitter syntax trees.

    Documents only change through ``update_document``; lookups always run
    against the last snapshot handed over for a file.
    """

    def __init__(self, options: CompilerOptions | None = None, registry: DocumentRegistry | None = None) -> None:
        self._options: CompilerOptions = MappingProxyType(
            dict(options if options is not None else DEFAULT_COMPILER_OPTIONS)
        )
        self._registry = registry or DocumentRegistry()
        self._indexes: dict[str, tuple[int, DeclarationIndex]] = {}

    @property
    def option_declarations(self) -> Mapping[str, OptionDeclaration]:
        return OPTION_DECLARATIONS

    @property
    def options(self) -> CompilerOptions:
        return self._options

    def with_options(self, options: CompilerOptions) -> "TreeSitterLanguageService":
        self._registry.invalidate(options_key(options))
        return TreeSitterLanguageService(options, self._registry)

    def update_document(self, file_name: str, options: CompilerOptions, snapshot: str, version: int) -> None:
        self._registry.update_document(file_name, options, snapshot, version)

    def _document(self, file_name: str) -> Document | None:
        return self._registry.get(file_name)

    def _index(self, document: Document) -> DeclarationIndex:
        cached = self._indexes.get(document.file_name)
        if cached is not None and cached[0] == document.version and cached[1].document is document:
            return cached[1]
        index = DeclarationIndex(document)
        self._indexes[document.file_name] = (document.version, index)
        return index

    def _span(self, document: Document, node: Node) -> TextSpan:
        start = document.to_char(node.start_byte)
        return TextSpan(start=start, length=document.to_char(node.end_byte) - start)

    def get_quick_info_at_position(self, file_name: str, position: int) -> QuickInfo | None:
        document = self._document(file_name)
        if document is None:
            return None
        node = identifier_at(document, position)
        if node is None:
            return None
        declaration = self._index(document).resolve(node)
        if declaration is None:
            return None

        docs = jsdoc_for(document, declaration)
        return QuickInfo(
            kind=declaration.kind,
            text_span=self._span(document, node),
            display_parts=[SymbolDisplayPart(display_text(document, declaration))],
            documentation=[SymbolDisplayPart(docs)] if docs else [],
        )

    def get_identifier_spans(self, file_name: str) -> list[TextSpan]:
        document = self._document(file_name)
        if document is None or document.root is None or document.language is None:
            return []
        query = _load_query(document.language, "identifiers")
        if query is None:
            return []
        nodes = {(n.start_byte, n.end_byte): n for n in _captured_nodes(query, document.root)}
        return [self._span(document, nodes[key]) for key in sorted(nodes)]

    def _diagnostic(self, document: Document, node: Node, message: str, code: int) -> Diagnostic:
        span = self._span(document, node)
        return Diagnostic(
            file_name=document.file_name,
            start=span.start,
            length=span.length,
            message_text=message,
            category=DiagnosticCategory.ERROR,
            code=code,
        )

    def get_syntactic_diagnostics(self, file_name: str) -> list[Diagnostic]:
        document = self._document(file_name)
        if document is None or document.root is None or not document.root.has_error:
            return []

        diagnostics: list[Diagnostic] = []
        for node in walk(document.root, prune=frozenset({"ERROR"})):
            if node.is_missing:
                if node.type in IDENTIFIER_TYPES:
                    diagnostics.append(self._diagnostic(document, node, "Identifier expected.", 1003))
                else:
                    diagnostics.append(self._diagnostic(document, node, f"'{node.type}' expected.", 1005))
            elif node.type == "ERROR":
                diagnostics.append(self._diagnostic(document, node, "Declaration or statement expected.", 1128))
        return diagnostics

    def get_semantic_diagnostics(self, file_name: str) -> list[Diagnostic]:
        document = self._document(file_name)
        if document is None or document.root is None:
            return []
        index = self._index(document)
        diagnostics: list[Diagnostic] = []

        by_scope: dict[tuple[int, int, str], list[Declaration]] = {}
        for declaration in index.declarations:
            if declaration.kind in _REDECLARABLE_KINDS:
                key = (declaration.scope.start_byte, declaration.scope.end_byte, declaration.name)
                by_scope.setdefault(key, []).append(declaration)

        for (_, _, name), group in by_scope.items():
            if len(group) < 2:
                continue
            kinds = {d.kind for d in group}
            if kinds & _BLOCK_SCOPED_KINDS or "class" in kinds:
                for declaration in group:
                    diagnostics.append(
                        self._diagnostic(
                            document,
                            declaration.name_node,
                            f"Cannot redeclare block-scoped variable '{name}'.",
                            2451,
                        )
                    )
            elif kinds == {"function"}:
                implementations = [d for d in group if d.node.type != "function_signature"]
                if len(implementations) > 1:
                    for declaration in implementations:
                        diagnostics.append(
                            self._diagnostic(document, declaration.name_node, "Duplicate function implementation.", 2393)
                        )

        for node in walk(document.root):
            field = _ASSIGNMENT_TARGETS.get(node.type)
            if field is None:
                continue
            target = node.child_by_field_name(field)
            if target is None or target.type != "identifier":
                continue
            declaration = index.resolve(target)
            if declaration is not None and declaration.kind == "const":
                name = document.node_text(target)
                diagnostics.append(
                    self._diagnostic(document, target, f"Cannot assign to '{name}' because it is a constant.", 2588)
                )

        diagnostics.sort(key=lambda d: (d.start or 0, d.code))
        return diagnostics

    def get_emit_output(self, file_name: str) -> EmitOutput:
        document = self._document(file_name)
        output_name = emitted_file_name(file_name)
        if document is None or output_name is None or self._options.get("noEmit"):
            return EmitOutput(output_files=[], emit_skipped=True)

        logger.debug("Emitting %s as %s", file_name, output_name)
        return EmitOutput(output_files=[OutputFile(name=output_name, text=emit_javascript(document, self._options))])

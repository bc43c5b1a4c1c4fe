import logging
from dataclasses import dataclass, field
from typing import cast

from tree_sitter import Node, Tree
from tree_sitter_language_pack import SupportedLanguage, get_parser

from codex_twoslash.core.languages import detect_language_from_file_name
from codex_twoslash.core.ports.engine import CompilerOptions

logger = logging.getLogger(__name__)

OptionsKey = tuple[tuple[str, str], ...]


def options_key(options: CompilerOptions) -> OptionsKey:
    return tuple(sorted((name, repr(value)) for name, value in options.items()))


@dataclass
class Document:
    file_name: str
    version: int
    text: str
    language: str | None
    tree: Tree | None
    key: OptionsKey
    source: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.source = self.text.encode("utf-8")

    @property
    def root(self) -> Node | None:
        return self.tree.root_node if self.tree is not None else None

    def to_byte(self, position: int) -> int:
        if len(self.source) == len(self.text):
            return position
        return len(self.text[:position].encode("utf-8"))

    def to_char(self, byte_offset: int) -> int:
        if len(self.source) == len(self.text):
            return byte_offset
        return len(self.source[:byte_offset].decode("utf-8", errors="ignore"))

    def node_text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def parse_document(file_name: str, snapshot: str, version: int, key: OptionsKey) -> Document:
    language = detect_language_from_file_name(file_name)
    tree = None
    if language is not None:
        parser = get_parser(cast(SupportedLanguage, language))
        tree = parser.parse(snapshot.encode("utf-8"))
    return Document(file_name=file_name, version=version, text=snapshot, language=language, tree=tree, key=key)


class DocumentRegistry:
    """Parsed documents keyed by file name, reparsed when the version or the options change."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def get(self, file_name: str) -> Document | None:
        return self._documents.get(file_name)

    def update_document(self, file_name: str, options: CompilerOptions, snapshot: str, version: int) -> Document:
        key = options_key(options)
        existing = self._documents.get(file_name)
        if existing is not None and existing.version == version and existing.key == key and existing.text == snapshot:
            return existing

        logger.debug("Parsing %s at version %d", file_name, version)
        document = parse_document(file_name, snapshot, version, key)
        self._documents[file_name] = document
        return document

    def acquire_document(self, file_name: str, options: CompilerOptions, snapshot: str, version: int) -> Document:
        existing = self._documents.get(file_name)
        if existing is not None and existing.version == version and existing.key == options_key(options):
            return existing
        return self.update_document(file_name, options, snapshot, version)

    def invalidate(self, key: OptionsKey) -> None:
        """Forget every document parsed under options other than ``key``."""
        stale = [name for name, document in self._documents.items() if document.key != key]
        for name in stale:
            del self._documents[name]

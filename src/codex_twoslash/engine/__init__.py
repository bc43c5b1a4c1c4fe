from codex_twoslash.engine.documents import Document, DocumentRegistry
from codex_twoslash.engine.emit import emit_javascript
from codex_twoslash.engine.schema import OPTION_DECLARATIONS
from codex_twoslash.engine.service import TreeSitterLanguageService

__all__ = [
    "OPTION_DECLARATIONS",
    "Document",
    "DocumentRegistry",
    "TreeSitterLanguageService",
    "emit_javascript",
]

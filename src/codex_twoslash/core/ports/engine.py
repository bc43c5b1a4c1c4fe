from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Protocol

CompilerOptions = Mapping[str, Any]


class DiagnosticCategory(IntEnum):
    WARNING = 0
    ERROR = 1
    SUGGESTION = 2
    MESSAGE = 3


@dataclass(frozen=True)
class TextSpan:
    start: int
    length: int


@dataclass(frozen=True)
class SymbolDisplayPart:
    text: str
    kind: str = "text"


@dataclass(frozen=True)
class QuickInfo:
    kind: str
    text_span: TextSpan
    display_parts: list[SymbolDisplayPart] = field(default_factory=list)
    documentation: list[SymbolDisplayPart] = field(default_factory=list)


@dataclass(frozen=True)
class DiagnosticMessageChain:
    message_text: str
    next: list["DiagnosticMessageChain"] = field(default_factory=list)


@dataclass(frozen=True)
class Diagnostic:
    file_name: str | None
    start: int | None
    length: int | None
    message_text: str | DiagnosticMessageChain
    category: DiagnosticCategory
    code: int


@dataclass(frozen=True)
class BooleanOption:
    name: str
    description: str = ""


@dataclass(frozen=True)
class NumberOption:
    name: str
    description: str = ""


@dataclass(frozen=True)
class StringOption:
    name: str
    description: str = ""


@dataclass(frozen=True)
class EnumOption:
    name: str
    values: Mapping[str, Any]
    description: str = ""


@dataclass(frozen=True)
class ListOption:
    name: str
    element: "BooleanOption | NumberOption | StringOption | EnumOption"
    description: str = ""


OptionDeclaration = BooleanOption | NumberOption | StringOption | EnumOption | ListOption


@dataclass(frozen=True)
class OutputFile:
    name: str
    text: str


@dataclass(frozen=True)
class EmitOutput:
    output_files: list[OutputFile]
    emit_skipped: bool = False


class LanguageService(Protocol):
    """The source-analysis engine the pipeline talks to.

    Positions are character offsets into the content last handed over through
    ``update_document``.
    """

    @property
    def option_declarations(self) -> Mapping[str, OptionDeclaration]: ...

    @property
    def options(self) -> CompilerOptions: ...

    def with_options(self, options: CompilerOptions) -> "LanguageService": ...

    def update_document(self, file_name: str, options: CompilerOptions, snapshot: str, version: int) -> None: ...

    def get_quick_info_at_position(self, file_name: str, position: int) -> QuickInfo | None: ...

    def get_semantic_diagnostics(self, file_name: str) -> list[Diagnostic]: ...

    def get_syntactic_diagnostics(self, file_name: str) -> list[Diagnostic]: ...

    def get_emit_output(self, file_name: str) -> EmitOutput: ...

    def get_identifier_spans(self, file_name: str) -> Sequence[TextSpan]: ...

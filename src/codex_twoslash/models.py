from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class HighlightPosition(_Record):
    kind: Literal["highlight"] = "highlight"
    position: int
    length: int
    description: str
    line: int


class QueryPosition(_Record):
    kind: Literal["query"] = "query"
    start: int
    offset: int
    line: int
    text: str | None = None
    docs: str | None = None


class StaticQuickInfo(_Record):
    text: str
    docs: str | None = None
    start: int
    length: int
    line: int = 0
    character: int = 0


class ErrorRecord(_Record):
    rendered_message: str = Field(alias="renderedMessage")
    id: str
    category: int
    code: int
    start: int | None = None
    length: int | None = None
    line: int | None = None
    character: int | None = None


class ExampleOptions(_Record):
    """Inline flags which are not compiler flags."""

    errors: list[int] = Field(default_factory=list)
    """Diagnostic codes the sample is expected to raise, written space separated."""
    no_errors: bool = Field(default=False, alias="noErrors")
    """Suppress all error diagnostics."""
    show_emit: bool = Field(default=False, alias="showEmit")
    """Show the emitted output instead of the source."""
    show_emitted_file: str = Field(default="index.js", alias="showEmittedFile")
    """With ``showEmit``, which emitted file to present."""
    no_static_semantic_info: bool = Field(default=False, alias="noStaticSemanticInfo")
    """Skip the quick-info lookups for interesting identifiers."""


class TwoSlashReturn(_Record):
    code: str
    """The output code, could be the source or an emitted file."""
    extension: str
    highlights: list[HighlightPosition] = Field(default_factory=list)
    static_quick_infos: list[StaticQuickInfo] = Field(default_factory=list, alias="staticQuickInfos")
    queries: list[QueryPosition] = Field(default_factory=list)
    errors: list[ErrorRecord] = Field(default_factory=list)
    playground_url: str = Field(alias="playgroundURL")

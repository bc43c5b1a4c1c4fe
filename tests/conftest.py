"""Shared fixtures and helpers for tests."""

import re
from collections.abc import Mapping
from typing import Any

import pytest

from codex_twoslash.config import Settings
from codex_twoslash.core.ports.engine import (
    CompilerOptions,
    Diagnostic,
    EmitOutput,
    OptionDeclaration,
    QuickInfo,
    SymbolDisplayPart,
    TextSpan,
)
from codex_twoslash.engine import OPTION_DECLARATIONS, TreeSitterLanguageService

_WORD_RE = re.compile(r"[A-Za-z_$][\w$]*")


# ---------------------------------------------------------------------------
# Auto-marker: every test here runs without external services
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# FakeLanguageService: records every call, answers from the current snapshot
# ---------------------------------------------------------------------------


class FakeLanguageService:
    """Quick-info reads back ``<file>:<word>`` for the word under the position."""

    def __init__(
        self,
        semantic: Mapping[str, list[Diagnostic]] | None = None,
        syntactic: Mapping[str, list[Diagnostic]] | None = None,
        emit: Mapping[str, EmitOutput] | None = None,
    ) -> None:
        self.documents: dict[str, tuple[str, int]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.semantic = dict(semantic or {})
        self.syntactic = dict(syntactic or {})
        self.emit = dict(emit or {})
        self._options: CompilerOptions = {}

    @property
    def option_declarations(self) -> Mapping[str, OptionDeclaration]:
        return OPTION_DECLARATIONS

    @property
    def options(self) -> CompilerOptions:
        return self._options

    def with_options(self, options: CompilerOptions) -> "FakeLanguageService":
        self._options = options
        self.calls.append(("options", dict(options)))
        return self

    def update_document(self, file_name: str, options: CompilerOptions, snapshot: str, version: int) -> None:
        self.documents[file_name] = (snapshot, version)
        self.calls.append(("update", file_name, version, snapshot))

    def _word_at(self, file_name: str, position: int) -> re.Match[str] | None:
        content, _ = self.documents[file_name]
        for match in _WORD_RE.finditer(content):
            if match.start() <= position < match.end():
                return match
        return None

    def get_quick_info_at_position(self, file_name: str, position: int) -> QuickInfo | None:
        _, version = self.documents[file_name]
        self.calls.append(("quick_info", file_name, position, version))
        match = self._word_at(file_name, position)
        if match is None:
            return None
        return QuickInfo(
            kind="const",
            text_span=TextSpan(match.start(), len(match.group())),
            display_parts=[SymbolDisplayPart(f"{file_name}:{match.group()}")],
        )

    def get_semantic_diagnostics(self, file_name: str) -> list[Diagnostic]:
        return self.semantic.get(file_name, [])

    def get_syntactic_diagnostics(self, file_name: str) -> list[Diagnostic]:
        return self.syntactic.get(file_name, [])

    def get_emit_output(self, file_name: str) -> EmitOutput:
        return self.emit.get(file_name, EmitOutput(output_files=[], emit_skipped=True))

    def get_identifier_spans(self, file_name: str) -> list[TextSpan]:
        content, _ = self.documents[file_name]
        return [TextSpan(m.start(), len(m.group())) for m in _WORD_RE.finditer(content)]


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_service() -> FakeLanguageService:
    return FakeLanguageService()


@pytest.fixture
def make_fake_service() -> type[FakeLanguageService]:
    """Return the fake service class, for tests that seed diagnostics or emit output."""
    return FakeLanguageService


@pytest.fixture
def language_service() -> TreeSitterLanguageService:
    """Return a tree-sitter backed language service."""
    return TreeSitterLanguageService()


@pytest.fixture
def settings() -> Settings:
    return Settings(playground_url="https://play.example/")

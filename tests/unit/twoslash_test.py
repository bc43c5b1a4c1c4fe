"""Tests for the twoslasher pipeline.

Most tests drive the pipeline with FakeLanguageService so every position can be
checked by hand; the last section runs the tree-sitter engine end to end.
"""

import pytest
from lzstring import LZString

from codex_twoslash.config import Settings
from codex_twoslash.core.ports.engine import Diagnostic, DiagnosticCategory, EmitOutput, OutputFile
from codex_twoslash.core.twoslash import twoslasher
from codex_twoslash.engine import TreeSitterLanguageService
from codex_twoslash.errors import (
    InputValidationError,
    InvalidOptionValueError,
    MissingEmitFileError,
    UnexpectedErrorsError,
    UnknownCompilerOptionError,
)
from tests.conftest import FakeLanguageService

TWO_FILES = (
    "// @filename: a.ts\n"
    "export const a = 1\n"
    "// @filename: b.ts\n"
    "import { a } from './a'\n"
    "const b = a\n"
    "//        ^?"
)


def _error(file_name: str | None, start: int | None, code: int, message: str = "Broken.") -> Diagnostic:
    return Diagnostic(
        file_name=file_name,
        start=start,
        length=1 if start is not None else None,
        message_text=message,
        category=DiagnosticCategory.ERROR,
        code=code,
    )


# ---------------------------------------------------------------------------
# Directive stripping and positions
# ---------------------------------------------------------------------------


def test_plain_code_passes_through(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1", "ts", language_service=fake_service, settings=settings)

    assert result.code == "const a = 1"
    assert result.extension == "ts"
    assert result.highlights == []
    assert result.queries == []
    assert result.errors == []
    assert [(i.text, i.start, i.length) for i in result.static_quick_infos] == [
        ("index.ts:const", 0, 5),
        ("index.ts:a", 6, 1),
    ]


def test_extension_is_normalised(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1", "typescript", language_service=fake_service, settings=settings)

    assert result.extension == "ts"
    assert "index.ts" in fake_service.documents


def test_highlight(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher(
        "const hello = 1\n//    ^^^^^ greeting", "ts", language_service=fake_service, settings=settings
    )

    assert result.code == "const hello = 1"
    highlight = result.highlights[0]
    assert (highlight.position, highlight.length, highlight.description, highlight.line) == (6, 5, "greeting", 1)
    assert result.code[highlight.position : highlight.position + highlight.length] == "hello"


def test_query_is_resolved(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1\n//    ^?", "ts", language_service=fake_service, settings=settings)

    assert result.code == "const a = 1"
    assert len(result.queries) == 1
    query = result.queries[0]
    assert query.kind == "query"
    assert query.start == 6
    assert query.offset == 6
    assert query.text == "index.ts:a"


def test_query_on_whitespace_reports_the_surroundings(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1\n//     ^?", "ts", language_service=fake_service, settings=settings)

    assert result.queries[0].text == "Could not get LSP result: a > < ="


def test_query_in_second_file_is_offset_into_the_combined_code(
    fake_service: FakeLanguageService, settings: Settings
) -> None:
    result = twoslasher(TWO_FILES, "ts", language_service=fake_service, settings=settings)

    assert result.code == "export const a = 1\nimport { a } from './a'\nconst b = a"
    query = result.queries[0]
    assert query.start == 53
    assert result.code[query.start] == "a"
    assert query.text == "b.ts:a"


def test_queries_are_resolved_against_directive_free_content(
    fake_service: FakeLanguageService, settings: Settings
) -> None:
    twoslasher(TWO_FILES, "ts", language_service=fake_service, settings=settings)

    calls = [call for call in fake_service.calls if call[0] != "options" and call[1] == "b.ts"]
    assert calls[0] == ("update", "b.ts", 1, "import { a } from './a'\nconst b = a\n//        ^?")
    assert calls[1] == ("update", "b.ts", 2, "import { a } from './a'\nconst b = a")
    assert calls[2] == ("quick_info", "b.ts", 34, 2)


def test_directive_past_the_end_of_the_code_is_dropped(
    fake_service: FakeLanguageService, settings: Settings
) -> None:
    result = twoslasher("a\n//        ^ far", "ts", language_service=fake_service, settings=settings)

    assert result.code == "a"
    assert result.highlights == []


def test_directive_never_spills_into_the_next_file(fake_service: FakeLanguageService, settings: Settings) -> None:
    code = (
        "// @filename: a.ts\n"
        "const a = 1\n"
        "//                ^ far\n"
        "//                ^?\n"
        "// @filename: b.ts\n"
        "const b = 2\n"
        "//    ^ b"
    )

    result = twoslasher(code, "ts", language_service=fake_service, settings=settings)

    assert result.code == "const a = 1\nconst b = 2"
    assert result.queries == []
    assert [(h.description, h.position) for h in result.highlights] == [("b", 18)]
    assert all(0 <= h.position < len(result.code) for h in result.highlights)


def test_combined_code_never_contains_directives(fake_service: FakeLanguageService, settings: Settings) -> None:
    code = "// @strict: false\n// @noErrors\nconst a = 1\n//    ^?\n//    ^ a\n// @filename: b.ts\nconst b = 2"

    result = twoslasher(code, "ts", language_service=fake_service, settings=settings)

    assert result.code == "const a = 1\nconst b = 2"
    assert "//" not in result.code


def test_markdown_escapes_are_undone(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const ¨Dx = 1", "ts", language_service=fake_service, settings=settings)

    assert result.code == "const $x = 1"


def test_sample_starting_with_a_directive_is_rejected(
    fake_service: FakeLanguageService, settings: Settings
) -> None:
    with pytest.raises(InputValidationError):
        twoslasher("//    ^?\nconst a = 1", "ts", language_service=fake_service, settings=settings)


# ---------------------------------------------------------------------------
# Compiler options
# ---------------------------------------------------------------------------


def test_compiler_options_reach_the_service(fake_service: FakeLanguageService, settings: Settings) -> None:
    code = "// @strict: false\n// @target: es2015\nconst a = 1"

    twoslasher(code, "ts", language_service=fake_service, settings=settings)

    assert fake_service.calls[0] == ("options", {"strict": False, "target": 2, "allowJs": True})


def test_unknown_compiler_option(fake_service: FakeLanguageService, settings: Settings) -> None:
    with pytest.raises(UnknownCompilerOptionError, match="bogus"):
        twoslasher("// @bogus: 1\nconst a = 1", "ts", language_service=fake_service, settings=settings)


def test_invalid_enum_value(fake_service: FakeLanguageService, settings: Settings) -> None:
    with pytest.raises(InvalidOptionValueError, match="esnext"):
        twoslasher("// @target: es9000\nconst a = 1", "ts", language_service=fake_service, settings=settings)


def test_playground_url_carries_changed_options_and_the_code(
    fake_service: FakeLanguageService, settings: Settings
) -> None:
    result = twoslasher("// @strict: false\nconst a = 1", "ts", language_service=fake_service, settings=settings)

    prefix, compressed = result.playground_url.split("#code/")
    assert prefix == "https://play.example/?strict=false"
    assert LZString().decompressFromEncodedURIComponent(compressed) == "const a = 1"


def test_playground_url_without_changes(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1", "ts", language_service=fake_service, settings=settings)

    assert result.playground_url.startswith("https://play.example/#code/")


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def test_undeclared_error_fails(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(semantic={"index.ts": [_error("index.ts", 6, 2322)]})

    with pytest.raises(UnexpectedErrorsError, match="// @errors: 2322"):
        twoslasher("const a: string = 1", "ts", language_service=service, settings=settings)


def test_declared_error_is_reported(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    message = "Type 'number' is not assignable to type 'Array<string>'."
    service = make_fake_service(semantic={"index.ts": [_error("index.ts", 18, 2322, message)]})
    code = "// @errors: 2322\nconst a = 1\nconst b: string[] = a"

    result = twoslasher(code, "ts", language_service=service, settings=settings)

    assert len(result.errors) == 1
    error = result.errors[0]
    assert error.code == 2322
    assert error.category == 1
    assert error.id == "err-2322-18-1"
    assert error.rendered_message == "Type 'number' is not assignable to type 'Array&lt;string&gt;'."
    assert (error.start, error.line, error.character) == (18, 1, 6)


def test_error_in_second_file_is_offset(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(syntactic={"b.ts": [_error("b.ts", 0, 1005)]})
    code = "// @errors: 1005\n// @filename: a.ts\nconst a = 1\n// @filename: b.ts\nconst b = 2"

    result = twoslasher(code, "ts", language_service=service, settings=settings)

    error = result.errors[0]
    assert error.start == 12
    assert (error.line, error.character) == (1, 0)


def test_diagnostics_outside_declared_files_are_ignored(
    make_fake_service: type[FakeLanguageService], settings: Settings
) -> None:
    service = make_fake_service(semantic={"index.ts": [_error("lib.d.ts", 10, 2304)]})

    result = twoslasher("const a = 1", "ts", language_service=service, settings=settings)

    assert result.errors == []


def test_no_errors_skips_diagnostics(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(semantic={"index.ts": [_error("index.ts", 6, 2322)]})

    result = twoslasher("// @noErrors\nconst a: string = 1", "ts", language_service=service, settings=settings)

    assert result.errors == []


def test_error_without_position(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(semantic={"index.ts": [_error("index.ts", None, 2318)]})

    result = twoslasher("// @errors: 2318\nconst a = 1", "ts", language_service=service, settings=settings)

    error = result.errors[0]
    assert error.start is None
    assert error.line is None
    assert error.id == "err-2318-None-None"


def test_no_static_semantic_info(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher(
        "// @noStaticSemanticInfo\nconst a = 1", "ts", language_service=fake_service, settings=settings
    )

    assert result.static_quick_infos == []


# ---------------------------------------------------------------------------
# Emit
# ---------------------------------------------------------------------------


def test_show_emit_replaces_the_code(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(
        emit={"index.ts": EmitOutput(output_files=[OutputFile(name="index.js", text="const a = 1;\n")])}
    )

    result = twoslasher(
        "// @showEmit\nconst a: number = 1\n//    ^?", "ts", language_service=service, settings=settings
    )

    assert result.code == "const a = 1;\n"
    assert result.extension == "js"
    assert result.queries == []
    assert result.highlights == []
    assert result.static_quick_infos == []


def test_show_emit_gathers_outputs_from_every_declared_file(
    make_fake_service: type[FakeLanguageService], settings: Settings
) -> None:
    service = make_fake_service(
        emit={
            "a.ts": EmitOutput(output_files=[OutputFile(name="a.js", text="a")]),
            "b.ts": EmitOutput(output_files=[OutputFile(name="b.js", text="b")]),
        }
    )
    code = "// @showEmit\n// @showEmittedFile: b.js\n// @filename: a.ts\nconst a = 1\n// @filename: b.ts\nconst b = 1"

    result = twoslasher(code, "ts", language_service=service, settings=settings)

    assert result.code == "b"
    assert result.extension == "js"


def test_show_emit_missing_file(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(
        emit={"index.ts": EmitOutput(output_files=[OutputFile(name="index.js", text="const a = 1;\n")])}
    )
    code = "// @showEmit\n// @showEmittedFile: index.d.ts\nconst a = 1"

    with pytest.raises(MissingEmitFileError, match="Cannot find the file index.d.ts - in index.js"):
        twoslasher(code, "ts", language_service=service, settings=settings)


def test_show_emit_drops_error_positions(make_fake_service: type[FakeLanguageService], settings: Settings) -> None:
    service = make_fake_service(
        semantic={"index.ts": [_error("index.ts", 6, 2322)]},
        emit={"index.ts": EmitOutput(output_files=[OutputFile(name="index.js", text="const a = 1;\n")])},
    )
    code = "// @showEmit\n// @errors: 2322\nconst a: string = 1"

    result = twoslasher(code, "ts", language_service=service, settings=settings)

    assert [(e.code, e.start) for e in result.errors] == [(2322, None)]


# ---------------------------------------------------------------------------
# Cut
# ---------------------------------------------------------------------------


def test_cut_hides_the_setup_code(fake_service: FakeLanguageService, settings: Settings) -> None:
    code = "const a = 1\n// ---cut---\nconst b = a\n//        ^?"

    result = twoslasher(code, "ts", language_service=fake_service, settings=settings)

    assert result.code == "const b = a"
    assert result.queries[0].start == 10
    assert result.queries[0].text == "index.ts:a"
    assert all(info.start >= 0 for info in result.static_quick_infos)
    assert [(i.text, i.line, i.character) for i in result.static_quick_infos][-1] == ("index.ts:a", 0, 10)


def test_cut_without_trailing_code(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("A\n// ---cut---\nB", "ts", language_service=fake_service, settings=settings)

    assert result.code == "B"


def test_result_serialises_with_wire_names(fake_service: FakeLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1", "ts", language_service=fake_service, settings=settings)

    payload = result.model_dump(by_alias=True)
    assert set(payload) == {"code", "extension", "highlights", "queries", "staticQuickInfos", "errors", "playgroundURL"}


# ---------------------------------------------------------------------------
# Tree-sitter engine end to end
# ---------------------------------------------------------------------------


def test_engine_query(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1\n//    ^?", "ts", language_service=language_service, settings=settings)

    assert result.queries[0].text == "const a: 1"
    assert result.queries[0].docs is None


def test_engine_query_on_an_import(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    result = twoslasher(TWO_FILES, "ts", language_service=language_service, settings=settings)

    assert result.queries[0].text == "(alias) import a"


def test_engine_declared_error(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    result = twoslasher(
        "// @errors: 2588\nconst a = 1\na = 2", "ts", language_service=language_service, settings=settings
    )

    error = result.errors[0]
    assert error.code == 2588
    assert error.rendered_message == "Cannot assign to 'a' because it is a constant."
    assert (error.start, error.length, error.line, error.character) == (12, 1, 1, 0)


def test_engine_undeclared_error(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    with pytest.raises(UnexpectedErrorsError) as exc_info:
        twoslasher("let a = 1\nlet a = 2", "ts", language_service=language_service, settings=settings)

    assert exc_info.value.codes == [2451, 2451]


def test_engine_static_quick_infos(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    result = twoslasher("const a = 1\nconst b = a", "ts", language_service=language_service, settings=settings)

    infos = [(i.start, i.line, i.character) for i in result.static_quick_infos if i.text == "const a: 1"]
    assert infos == [(6, 0, 6), (22, 1, 10)]


def test_engine_show_emit(language_service: TreeSitterLanguageService, settings: Settings) -> None:
    code = "// @showEmit\nconst a: number = 1\ninterface P { x: number }\n"

    result = twoslasher(code, "ts", language_service=language_service, settings=settings)

    assert result.code == "const a = 1\n"
    assert result.extension == "js"

import logging
from collections.abc import Mapping, Sequence

from codex_twoslash.config import DEFAULT_COMPILER_OPTIONS, Settings, get_settings
from codex_twoslash.core.cut import apply_cut
from codex_twoslash.core.directives import filter_highlight_lines, split_lines
from codex_twoslash.core.files import FileRegistry, FileSpan, split_virtual_files
from codex_twoslash.core.languages import extension_of, types_to_extension
from codex_twoslash.core.options import filter_compiler_options, filter_handbook_options
from codex_twoslash.core.playground import build_playground_url
from codex_twoslash.core.ports.engine import (
    Diagnostic,
    LanguageService,
    OutputFile,
    QuickInfo,
)
from codex_twoslash.core.utils import (
    clean_markdown_escaped,
    escape_html,
    flatten_diagnostic_message_text,
    line_and_character,
)
from codex_twoslash.core.validation import validate_code_for_errors, validate_input
from codex_twoslash.errors import MissingEmitFileError
from codex_twoslash.models import (
    ErrorRecord,
    HighlightPosition,
    QueryPosition,
    StaticQuickInfo,
    TwoSlashReturn,
)

logger = logging.getLogger(__name__)


def _display_text(quick_info: QuickInfo | None) -> tuple[str, str | None] | None:
    if quick_info is None or not quick_info.display_parts:
        return None
    text = "".join(part.text for part in quick_info.display_parts)
    if not text:
        return None
    docs = "\n".join(part.text for part in quick_info.documentation) or None
    return text, docs


def _resolve_query(service: LanguageService, file_name: str, content: str, query: QueryPosition) -> QueryPosition:
    position = query.start
    resolved = _display_text(service.get_quick_info_at_position(file_name, position))
    if resolved is None:
        surrounding = (
            f"{content[position - 1 : position] if position > 0 else ''} "
            f">{content[position : position + 1]}< {content[position + 1 : position + 2]}"
        )
        return query.model_copy(update={"text": f"Could not get LSP result: {surrounding}", "docs": None})
    text, docs = resolved
    return query.model_copy(update={"text": text, "docs": docs})


def _collect_static_quick_infos(service: LanguageService, span: FileSpan) -> list[StaticQuickInfo]:
    infos: list[StaticQuickInfo] = []
    for text_span in service.get_identifier_spans(span.name):
        resolved = _display_text(service.get_quick_info_at_position(span.name, text_span.start))
        if resolved is None:
            continue
        text, docs = resolved
        infos.append(
            StaticQuickInfo(text=text, docs=docs, start=text_span.start + span.start, length=text_span.length)
        )
    return infos


def _to_error_record(diagnostic: Diagnostic, span: FileSpan) -> ErrorRecord:
    message = flatten_diagnostic_message_text(diagnostic.message_text, "\n")
    return ErrorRecord(
        rendered_message=escape_html(message),
        id=f"err-{diagnostic.code}-{diagnostic.start}-{diagnostic.length}",
        category=int(diagnostic.category),
        code=diagnostic.code,
        start=diagnostic.start + span.start if diagnostic.start is not None else None,
        length=diagnostic.length,
    )


def _find_emitted_file(
    service: LanguageService,
    requested: str,
    default_file_name: str,
    declared: Sequence[str],
) -> OutputFile:
    sources = [default_file_name] if default_file_name in declared else list(declared)
    outputs = [output for source in sources for output in service.get_emit_output(source).output_files]
    for output in outputs:
        if output.name == requested:
            return output
    raise MissingEmitFileError(requested, [output.name for output in outputs])


def _default_language_service() -> LanguageService:
    from codex_twoslash.engine import TreeSitterLanguageService

    return TreeSitterLanguageService()


def twoslasher(
    code: str,
    extension: str,
    *,
    default_compiler_options: Mapping[str, object] | None = None,
    language_service: LanguageService | None = None,
    settings: Settings | None = None,
) -> TwoSlashReturn:
    """Run the analysis engine over a twoslash annotated sample.

    Returns the code with every directive removed (or the emitted output, when
    asked for) plus highlights, queries, quick-info and diagnostics whose
    positions index into that returned code.

    ``extension`` is one of ts, tsx, typescript, javascript, js, jsx, json or d.ts.
    """
    original_code = code
    settings = settings or get_settings()
    safe_extension = types_to_extension(extension)
    default_file_name = f"index.{safe_extension}"
    logger.debug("Looking at code:\n```%s\n%s\n```", safe_extension, code)

    validate_input(code)
    code = clean_markdown_escaped(code)

    code_lines, handbook_options = filter_handbook_options(split_lines(code))

    service = language_service or _default_language_service()
    code_lines, compiler_options = filter_compiler_options(
        code_lines,
        default_compiler_options if default_compiler_options is not None else DEFAULT_COMPILER_OPTIONS,
        service.option_declarations,
    )
    service = service.with_options(compiler_options)
    code = "\n".join(code_lines)

    registry = FileRegistry()

    def update_file(name: str, content: str) -> None:
        ref = registry.update(name, content)
        service.update_document(name, compiler_options, ref.content, ref.version)

    spans: list[FileSpan] = []
    contents: list[str] = []
    highlights: list[HighlightPosition] = []
    queries: list[QueryPosition] = []
    offset = 0

    for file_name, raw_lines in split_virtual_files(code, default_file_name):
        update_file(file_name, "\n".join(raw_lines))

        extraction = filter_highlight_lines(raw_lines)
        content = "\n".join(extraction.lines)
        update_file(file_name, content)

        span = FileSpan(name=file_name, start=offset, length=len(content))
        spans.append(span)
        contents.append(content)
        offset += len(content) + 1

        highlights.extend(h.model_copy(update={"position": h.position + span.start}) for h in extraction.highlights)
        for query in extraction.queries:
            resolved = _resolve_query(service, file_name, content, query)
            queries.append(resolved.model_copy(update={"start": resolved.start + span.start}))

    code = "\n".join(contents)

    # the last segment registered under a name is what the engine knows that file as
    declared = {span.name: span for span in spans}

    diagnostics: list[Diagnostic] = []
    static_quick_infos: list[StaticQuickInfo] = []
    for name, span in declared.items():
        if not handbook_options.no_errors:
            diagnostics.extend(service.get_semantic_diagnostics(name))
            diagnostics.extend(service.get_syntactic_diagnostics(name))
        if not handbook_options.no_static_semantic_info:
            static_quick_infos.extend(_collect_static_quick_infos(service, span))

    relevant = [d for d in diagnostics if d.file_name in declared]
    if relevant:
        validate_code_for_errors(relevant, handbook_options, safe_extension, original_code)

    errors = [_to_error_record(d, declared[d.file_name]) for d in relevant if d.file_name is not None]

    result_extension = safe_extension
    if handbook_options.show_emit:
        emitted = _find_emitted_file(service, handbook_options.show_emitted_file, default_file_name, list(declared))
        code = emitted.text
        result_extension = extension_of(emitted.name)
        # source positions mean nothing in the emitted file
        highlights, queries, static_quick_infos = [], [], []
        errors = [e.model_copy(update={"start": None}) for e in errors]

    playground_url = build_playground_url(code, compiler_options, base_url=settings.playground_url)

    cut = apply_cut(code, highlights, queries, static_quick_infos, errors)
    code = cut.code

    static_quick_infos = []
    for info in cut.static_quick_infos:
        line, character = line_and_character(code, info.start)
        static_quick_infos.append(info.model_copy(update={"line": line, "character": character}))

    errors = []
    for err in cut.errors:
        if err.start is None:
            errors.append(err)
            continue
        line, character = line_and_character(code, err.start)
        errors.append(err.model_copy(update={"line": line, "character": character}))

    return TwoSlashReturn(
        code=code,
        extension=result_extension,
        highlights=cut.highlights,
        queries=cut.queries,
        static_quick_infos=static_quick_infos,
        errors=errors,
        playground_url=playground_url,
    )

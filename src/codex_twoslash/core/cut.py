import logging
from dataclasses import dataclass

from codex_twoslash.models import ErrorRecord, HighlightPosition, QueryPosition, StaticQuickInfo

logger = logging.getLogger(__name__)

CUT_MARKER = "// ---cut---"


@dataclass
class CutResult:
    code: str
    highlights: list[HighlightPosition]
    queries: list[QueryPosition]
    static_quick_infos: list[StaticQuickInfo]
    errors: list[ErrorRecord]


def find_cut_index(code: str) -> int | None:
    """Offset of the first character after the last cut marker line, or None."""
    marker = code.rfind(CUT_MARKER)
    if marker == -1:
        return None
    index = marker + len(CUT_MARKER)
    if code.startswith("\n", index):
        index += 1
    return index


def apply_cut(
    code: str,
    highlights: list[HighlightPosition],
    queries: list[QueryPosition],
    static_quick_infos: list[StaticQuickInfo],
    errors: list[ErrorRecord],
) -> CutResult:
    """Drop everything up to the cut marker and move every record along with the code.

    Records that land before the start of the visible code are discarded.
    Errors without a position describe the whole sample and are kept.
    """
    cut_index = find_cut_index(code)
    if cut_index is None:
        return CutResult(code, highlights, queries, static_quick_infos, errors)

    logger.debug("Cutting the first %d characters of the code", cut_index)

    shifted_highlights = [
        h.model_copy(update={"position": h.position - cut_index})
        for h in highlights
        if h.position - cut_index >= 0
    ]
    shifted_queries = [
        q.model_copy(update={"start": q.start - cut_index}) for q in queries if q.start - cut_index >= 0
    ]
    shifted_infos = [
        info.model_copy(update={"start": info.start - cut_index})
        for info in static_quick_infos
        if info.start - cut_index >= 0
    ]
    shifted_errors: list[ErrorRecord] = []
    for err in errors:
        if err.start is None:
            shifted_errors.append(err)
        elif err.start - cut_index >= 0:
            shifted_errors.append(err.model_copy(update={"start": err.start - cut_index}))

    return CutResult(
        code=code[cut_index:],
        highlights=shifted_highlights,
        queries=shifted_queries,
        static_quick_infos=shifted_infos,
        errors=shifted_errors,
    )

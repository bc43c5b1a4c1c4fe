import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from codex_twoslash.models import HighlightPosition, QueryPosition

logger = logging.getLogger(__name__)

_HIGHLIGHT_RE = re.compile(r"^\s*//\s*(\^+)( .+)?$")
_QUERY_RE = re.compile(r"^\s*//\s*\^\?\s*$")

LINE_SPLIT_RE = re.compile(r"\r\n?|\n")


@dataclass
class HighlightExtraction:
    lines: list[str]
    highlights: list[HighlightPosition] = field(default_factory=list)
    queries: list[QueryPosition] = field(default_factory=list)


def split_lines(code: str) -> list[str]:
    return LINE_SPLIT_RE.split(code)


def _points_into(line: str | None, column: int) -> bool:
    return line is not None and column < len(line)


def filter_highlight_lines(code_lines: Sequence[str]) -> HighlightExtraction:
    """Drop highlight and query directive lines, recording what they point at.

    Positions are relative to the joined output lines. A directive points at the
    last kept line above it, so ``content_offset`` trails one line behind
    ``next_content_offset``. Directives whose caret sits past the end of that
    line are dropped along with their line.
    """
    result = HighlightExtraction(lines=[])
    content_offset = 0
    next_content_offset = 0
    target: str | None = None

    for source_index, line in enumerate(code_lines):
        if _QUERY_RE.match(line):
            start = line.index("^")
            if _points_into(target, start):
                result.queries.append(
                    QueryPosition(start=content_offset + start, offset=start, line=len(result.lines))
                )
            else:
                logger.debug("Dropping the query on line %d, column %d is outside the line above", source_index, start)
            logger.debug("Removing line %d for having a query", source_index)
            continue

        highlight = _HIGHLIGHT_RE.match(line)
        if highlight:
            start = highlight.start(1)
            if _points_into(target, start):
                description = highlight.group(2).strip() if highlight.group(2) else ""
                result.highlights.append(
                    HighlightPosition(
                        position=content_offset + start,
                        length=line.rindex("^") - start + 1,
                        description=description,
                        line=len(result.lines),
                    )
                )
            else:
                logger.debug(
                    "Dropping the highlight on line %d, column %d is outside the line above", source_index, start
                )
            logger.debug("Removing line %d for having a highlight", source_index)
            continue

        content_offset = next_content_offset
        next_content_offset += len(line) + 1
        target = line
        result.lines.append(line)

    return result

import logging
from dataclasses import dataclass

from codex_twoslash.core.directives import split_lines

logger = logging.getLogger(__name__)

FILENAME_DELIMITER = "// @filename: "


@dataclass
class VirtualFile:
    name: str
    content: str
    version: int


@dataclass(frozen=True)
class FileSpan:
    """Where a virtual file's directive-free content starts in the combined code."""

    name: str
    start: int
    length: int


class FileRegistry:
    def __init__(self) -> None:
        self.files: dict[str, VirtualFile] = {}

    def update(self, name: str, content: str) -> VirtualFile:
        existing = self.files.get(name)
        if existing is None:
            existing = VirtualFile(name=name, content=content, version=1)
            self.files[name] = existing
        else:
            existing.content = content
            existing.version += 1
        logger.debug("Updating file %s (version %d) to:\n%s", name, existing.version, content)
        return existing


def _strip_segment_separator(segment: str) -> str:
    # the newline in front of the next delimiter belongs to the delimiter line
    return segment[:-1] if segment.endswith("\n") else segment


def split_virtual_files(code: str, default_name: str) -> list[tuple[str, list[str]]]:
    """Split the sample into ``(file name, lines)`` pairs in declaration order.

    A sample without a filename directive is a single file called
    ``default_name``. Segments whose filename is empty are skipped.
    """
    segments = code.split(FILENAME_DELIMITER)
    if len(segments) == 1:
        return [(default_name, split_lines(code))]

    files: list[tuple[str, list[str]]] = []
    leading, *named = segments
    if leading:
        files.append((default_name, split_lines(_strip_segment_separator(leading))))

    for index, segment in enumerate(named):
        is_last = index == len(named) - 1
        body = segment if is_last else _strip_segment_separator(segment)
        filename, *content = split_lines(body)
        filename = filename.strip()
        if not filename:
            logger.debug("Skipping a file segment with an empty name")
            continue
        files.append((filename, content))

    return files

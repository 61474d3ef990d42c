"""Split raw assistant text into prose and table segments.

Hidden design decisions:
- Line-oriented single forward pass with one line of lookahead
- Table detection via a header line followed by a separator line
- Which inline markdown is stripped (bold and code spans only)

The segmenter is pure and total: any string yields a list of segments
and nothing is raised. Extracted text is plain text; no markup is kept
for the renderer to interpret.
"""

import re

from .models import ProseSegment, Segment, TableSegment

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_CODE_SPAN = re.compile(r"`([^`]+)`")
_SEPARATOR_CHARS = re.compile(r"[|\s:\-]")


def strip_inline_markdown(text: str) -> str:
    """Remove ``**bold**`` and `` `code` `` markers, keeping the inner text.

    Single pass, not nesting-aware.
    """
    return _CODE_SPAN.sub(r"\1", _BOLD.sub(r"\1", text))


def is_separator_line(line: str) -> bool:
    """Check whether a line divides a table header from its body.

    A separator starts with ``|``, holds only pipes, whitespace, colons and
    hyphens, and contains at least one hyphen. Its column count is not
    compared with the header's.
    """
    trimmed = line.strip()
    if not trimmed.startswith("|"):
        return False
    return not _SEPARATOR_CHARS.sub("", trimmed) and "-" in trimmed


def split_row(line: str) -> list[str]:
    """Split a table line into cleaned cells.

    One leading and one trailing pipe are dropped before splitting.
    """
    work = line.strip()
    if work.startswith("|"):
        work = work[1:]
    if work.endswith("|"):
        work = work[:-1]
    return [strip_inline_markdown(cell.strip()) for cell in work.split("|")]


def _is_blank(line: str) -> bool:
    return not line.strip()


def _is_table_start(lines: list[str], i: int) -> bool:
    return (
        lines[i].strip().startswith("|")
        and i + 1 < len(lines)
        and is_separator_line(lines[i + 1])
    )


def _is_body_row(line: str) -> bool:
    trimmed = line.strip()
    return bool(trimmed) and trimmed.startswith("|") and not is_separator_line(line)


def segment(text: str) -> list[Segment]:
    """Classify text into an ordered list of prose and table segments.

    Args:
        text: Raw message content

    Returns:
        Segments in the order their blocks appear in ``text``
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    segments: list[Segment] = []
    i = 0

    while i < len(lines):
        if _is_table_start(lines, i):
            header = split_row(lines[i])
            i += 2  # header and separator
            rows = []
            while i < len(lines) and _is_body_row(lines[i]):
                rows.append(split_row(lines[i]))
                i += 1
            segments.append(TableSegment(header=header, rows=rows))
            continue

        while i < len(lines) and _is_blank(lines[i]):
            i += 1

        prose: list[str] = []
        while i < len(lines) and not _is_table_start(lines, i):
            if _is_blank(lines[i]):
                break
            prose.append(lines[i])
            i += 1

        if prose:
            segments.append(ProseSegment(text=strip_inline_markdown("\n".join(prose))))

    return segments

"""Terminal rendering of segmented content.

Hides the details of turning segments into Rich renderables. Prose is
wrapped in ``rich.text.Text`` directly, never parsed as Rich markup, so
model output cannot inject styles.
"""

from collections.abc import Iterable

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .models import ProseSegment, Segment, TableSegment
from .segmenter import segment


def render_table(table: TableSegment) -> Table:
    """Build a Rich table, tolerating ragged rows.

    Short rows are padded with empty cells. Rows longer than the header
    get extra columns with blank headings.
    """
    width = max([table.column_count, *(len(row) for row in table.rows)])
    result = Table(show_header=True, header_style="bold cyan", show_lines=False)
    for i in range(width):
        heading = table.header[i] if i < len(table.header) else ""
        result.add_column(Text(heading), overflow="fold")
    for row in table.rows:
        cells = [Text(cell) for cell in row]
        cells.extend(Text("") for _ in range(width - len(row)))
        result.add_row(*cells)
    return result


def render_segments(segments: Iterable[Segment]) -> Group:
    """Render segments in order as a single Rich group."""
    renderables: list[RenderableType] = []
    for seg in segments:
        if isinstance(seg, TableSegment):
            renderables.append(render_table(seg))
        else:
            renderables.append(Text(seg.text, overflow="fold"))
    return Group(*renderables)


def render_content(text: str) -> Group:
    """Segment raw message text and render it."""
    return render_segments(segment(text))


def _flatten(segments: Iterable[Segment]) -> str:
    blocks: list[str] = []
    for seg in segments:
        if isinstance(seg, ProseSegment):
            blocks.append(seg.text)
        else:
            lines = ["\t".join(seg.header)]
            lines.extend("\t".join(row) for row in seg.rows)
            blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def segments_to_plain_text(segments: Iterable[Segment]) -> str:
    """Flatten segments to plain text.

    Table rows become tab-separated lines and segments are separated by a
    blank line. Inline stripping can expose new markers or pipe tables
    in prose, so the text is re-segmented and flattened until it stops
    changing. Every pass removes pipes or shortens the text, which bounds
    the loop. The result holds no pipe tables and flattens to itself.
    """
    text = _flatten(segments)
    while True:
        again = _flatten(segment(text))
        if again == text:
            return text
        text = again

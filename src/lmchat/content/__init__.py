"""Content segmentation and rendering for assistant replies."""

from .models import ProseSegment, Segment, TableSegment
from .render import render_content, render_segments, render_table, segments_to_plain_text
from .segmenter import is_separator_line, segment, split_row, strip_inline_markdown

__all__ = [
    "ProseSegment",
    "Segment",
    "TableSegment",
    "is_separator_line",
    "render_content",
    "render_segments",
    "render_table",
    "segment",
    "segments_to_plain_text",
    "split_row",
    "strip_inline_markdown",
]

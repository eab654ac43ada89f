"""Parse Claude conversations saved as Markdown or plain text with role markers."""

from __future__ import annotations

from ..errors import NoMarkersFound, NoMessagesExtracted
from ..models import ParsedConversation, ParsedMessage
from .common import first_heading, parser_errors, title_from_filename
from .markers import find_markers, is_marker_line

LABEL = "Claude Markdown"


@parser_errors(LABEL)
def parse_claude_markdown(content: str, filename: str | None = None) -> ParsedConversation:
    markers = find_markers(content)
    if not markers:
        raise NoMarkersFound("no message markers found")

    messages: list[ParsedMessage] = []
    for i, marker in enumerate(markers):
        end = markers[i + 1].position if i + 1 < len(markers) else len(content)
        # Overlapping markers give an empty (or inverted) span and are dropped.
        text = content[marker.end:end].strip() if end > marker.end else ""
        if text:
            messages.append(ParsedMessage(role=marker.role, content=text))

    if not messages:
        raise NoMessagesExtracted("no valid messages could be extracted between markers")

    title = first_heading(content, skip=is_marker_line) or title_from_filename(filename)
    return ParsedConversation.from_messages(
        messages,
        title=title,
        source_platform="claude",
        source_format="markdown",
    )

"""Treat an unstructured document as a single message."""

from __future__ import annotations

from ..errors import NoMessagesExtracted
from ..models import ParsedConversation, ParsedMessage
from .common import first_heading, parser_errors, title_from_filename

LABEL = "Markdown document"


@parser_errors(LABEL)
def parse_generic_markdown(content: str, filename: str | None = None) -> ParsedConversation:
    text = content.strip()
    if not text:
        raise NoMessagesExtracted("document is empty")

    # Documentation is treated as assistant-provided content.
    return ParsedConversation.from_messages(
        [ParsedMessage(role="assistant", content=text)],
        title=first_heading(content) or title_from_filename(filename),
        source_platform="generic",
        source_format="markdown",
        default_title="Imported Document",
    )

"""Parse Claude JSON exports (flat ``chat_messages`` list)."""

from __future__ import annotations

import json
from typing import Any

from ..errors import NoMessagesExtracted, ParseError
from ..models import ParsedConversation, ParsedMessage, Role
from .common import parse_iso_datetime, parser_errors

LABEL = "Claude JSON"


def _message_text(entry: dict[str, Any]) -> str:
    """The ``text`` field, or the joined text blocks of ``content`` when empty."""
    text = entry.get("text")
    if isinstance(text, str) and text.strip():
        return text.strip()

    blocks = entry.get("content")
    if not isinstance(blocks, list):
        return ""
    return "\n".join(
        block["text"]
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
    ).strip()


@parser_errors(LABEL)
def parse_claude_json(content: str, filename: str | None = None) -> ParsedConversation:
    data = json.loads(content)
    if not isinstance(data, dict) or not isinstance(data.get("chat_messages"), list):
        raise ParseError("missing chat_messages array")

    messages: list[ParsedMessage] = []
    for entry in data["chat_messages"]:
        if not isinstance(entry, dict):
            continue
        text = _message_text(entry)
        if not text:
            continue

        role: Role = "assistant" if entry.get("sender") == "assistant" else "user"
        messages.append(
            ParsedMessage(
                role=role,
                content=text,
                timestamp=parse_iso_datetime(entry.get("created_at")),
            )
        )

    if not messages:
        raise NoMessagesExtracted("chat_messages contains no text")

    return ParsedConversation.from_messages(
        messages,
        title=data.get("name") if isinstance(data.get("name"), str) else None,
        source_platform="claude",
        source_format="json",
        default_title="Untitled Conversation",
    )

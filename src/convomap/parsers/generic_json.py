"""Parse generic ``{title, messages: [{role, content, timestamp}]}`` JSON."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from ..errors import NoMessagesExtracted, ParseError
from ..models import ParsedConversation, ParsedMessage, Role
from .common import from_epoch_auto, parse_iso_datetime, parser_errors

LABEL = "generic JSON"

_ASSISTANT_ALIASES = {"assistant", "bot", "ai"}


def _map_role(role: str) -> Role:
    normalized = role.strip().lower()
    if normalized in _ASSISTANT_ALIASES:
        return "assistant"
    if normalized == "system":
        return "system"
    return "user"


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return from_epoch_auto(value)
    return None


@parser_errors(LABEL)
def parse_generic_json(content: str, filename: str | None = None) -> ParsedConversation:
    data = json.loads(content)
    if not isinstance(data, dict) or not isinstance(data.get("messages"), list):
        raise ParseError("missing messages array")

    messages: list[ParsedMessage] = []
    for entry in data["messages"]:
        if not isinstance(entry, dict):
            continue
        role, text = entry.get("role"), entry.get("content")
        # Missing or non-text fields are skipped, not fatal.
        if not isinstance(role, str) or not role.strip():
            continue
        if not isinstance(text, str) or not text.strip():
            continue
        messages.append(
            ParsedMessage(
                role=_map_role(role),
                content=text,
                timestamp=_parse_timestamp(entry.get("timestamp")),
            )
        )

    if not messages:
        raise NoMessagesExtracted("no valid messages found in JSON")

    return ParsedConversation.from_messages(
        messages,
        title=data.get("title") if isinstance(data.get("title"), str) else None,
        source_platform="generic",
        source_format="json",
    )

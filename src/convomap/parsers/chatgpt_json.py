"""Parse ChatGPT export mapping trees into flat message lists."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import NoMessagesExtracted, ParseError
from ..models import ParsedConversation, ParsedMessage, Role
from .common import from_epoch_seconds, parser_errors

logger = logging.getLogger(__name__)

LABEL = "ChatGPT JSON"

_KNOWN_ROLES: frozenset[Role] = frozenset({"user", "assistant", "system"})


def _extract_text(parts: list[Any]) -> str:
    """Extract text from message content parts, filtering non-strings."""
    return "\n".join(part for part in parts if isinstance(part, str)).strip()


def _find_root(mapping: dict[str, Any]) -> str:
    """The node with children but no message, else the first key."""
    for node_id, node in mapping.items():
        if isinstance(node, dict) and node.get("children") and not node.get("message"):
            return node_id
    return next(iter(mapping))


def _walk(mapping: dict[str, Any], root_id: str) -> list[str]:
    """Depth-first node order from root_id, each reachable node once."""
    order: list[str] = []
    visited: set[str] = set()
    stack = [root_id]

    while stack:
        node_id = stack.pop()
        if node_id in visited:
            logger.warning("Circular reference detected at node %s", node_id)
            continue
        node = mapping.get(node_id)
        if not isinstance(node, dict):
            logger.debug("Skipping unresolved node %s", node_id)
            continue
        visited.add(node_id)
        order.append(node_id)
        children = node.get("children") or []
        stack.extend(reversed([c for c in children if isinstance(c, str)]))

    return order


def _to_message(msg_data: dict[str, Any]) -> ParsedMessage | None:
    content_data = msg_data.get("content")
    parts = content_data.get("parts") if isinstance(content_data, dict) else None
    if not isinstance(parts, list):
        return None
    text = _extract_text(parts)
    if not text:
        return None

    author = msg_data.get("author")
    role = author.get("role") if isinstance(author, dict) else None
    mapped: Role = role if role in _KNOWN_ROLES else "user"

    timestamp = None
    if msg_data.get("create_time"):
        timestamp = from_epoch_seconds(msg_data["create_time"])

    return ParsedMessage(role=mapped, content=text, timestamp=timestamp)


@parser_errors(LABEL)
def parse_chatgpt_conversation(conv: dict[str, Any]) -> ParsedConversation:
    """Parse a single ChatGPT conversation dict (one element of conversations.json)."""
    mapping = conv.get("mapping")
    if not isinstance(mapping, dict):
        raise ParseError("missing mapping field")
    if not mapping:
        raise NoMessagesExtracted("mapping is empty")

    messages: list[ParsedMessage] = []
    for node_id in _walk(mapping, _find_root(mapping)):
        msg_data = mapping[node_id].get("message")
        if not msg_data:
            continue
        message = _to_message(msg_data)
        if message is not None:
            messages.append(message)

    if not messages:
        raise NoMessagesExtracted("no message in the mapping has text content")

    return ParsedConversation.from_messages(
        messages,
        title=conv.get("title"),
        source_platform="chatgpt",
        source_format="json",
        default_title="Untitled Conversation",
    )


@parser_errors(LABEL)
def parse_chatgpt_json(content: str, filename: str | None = None) -> ParsedConversation:
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ParseError("expected a conversation object")
    return parse_chatgpt_conversation(data)

"""FastMCP server exposing import and topic labeling tools."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone

from mcp.server.fastmcp import FastMCP

from .config import SQLITE_PATH
from .errors import ParseError
from .parsers import parse_export
from .storage import ConversationStore

# Logging to stderr only — stdout is the MCP JSON-RPC transport
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

mcp = FastMCP(
    "convomap",
    instructions=(
        "Import chat exports from ChatGPT, Claude and other assistants and label "
        "their messages with short topics. "
        "Use import_conversation to add an export, list_conversations to browse, "
        "get_conversation to read one, generate_topics to label its messages "
        "and list_topics to see the topics it covers."
    ),
)

# Singleton store — reused across tool calls
_store: ConversationStore | None = None


def _get_store() -> ConversationStore:
    global _store
    if _store is None:
        _store = ConversationStore(SQLITE_PATH)
    return _store


def _format_ts(ts: float | None) -> str:
    if ts is None:
        return "Unknown date"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


@mcp.tool()
def import_conversation(content: str, filename: str) -> str:
    """Parse a chat export and store it as a conversation.

    Args:
        content: Raw file content (JSON, HTML, Markdown or plain text)
        filename: Original file name; its extension guides format detection
    """
    try:
        conversation = parse_export(content, filename)
    except ParseError as exc:
        return str(exc)

    conv_id = _get_store().save_conversation(conversation, original_filename=filename)
    return (
        f"Imported **{conversation.title}** "
        f"({len(conversation.messages)} messages, "
        f"{conversation.source_platform}/{conversation.source_format}).\n"
        f"ID: `{conv_id}`"
    )


@mcp.tool()
def list_conversations(limit: int = 20, offset: int = 0) -> str:
    """Browse imported conversations.

    Args:
        limit: Maximum results (default 20)
        offset: Skip this many results (for pagination)
    """
    conversations = _get_store().list_conversations(limit=limit, offset=offset)
    if not conversations:
        return "No conversations found."

    lines = []
    for i, c in enumerate(conversations, offset + 1):
        lines.append(f"{i}. **{c['title']}** ({_format_ts(c['first_message_at'])})")
        lines.append(
            f"   ID: `{c['id']}` | {c['message_count']} msgs | "
            f"{c['source_platform']}/{c['source_format']}"
        )

    if len(conversations) == limit:
        lines.append(f"\nMore available — use offset={offset + limit} to see the next page.")
    return "\n".join(lines)


@mcp.tool()
def get_conversation(conversation_id: str) -> str:
    """Retrieve a conversation transcript with topic labels.

    Args:
        conversation_id: The conversation id (from list_conversations)
    """
    conv = _get_store().get_conversation(conversation_id)
    if not conv:
        return f"Conversation not found: {conversation_id}"

    lines = [f"# {conv['title']}", f"Messages: {conv['message_count']}", "", "---", ""]
    for msg in conv["messages"]:
        topic = f" — _{msg['topic']}_" if msg["topic"] else ""
        lines.append(f"**{msg['role']}** (#{msg['id']}){topic}:")
        lines.append(msg["content"])
        lines.append("")
    return "\n".join(lines)


@mcp.tool()
async def generate_topics(conversation_id: str, message_ids: list[int] | None = None) -> str:
    """Label a conversation's unlabeled messages with 3-5 word topics.

    Args:
        conversation_id: The conversation id
        message_ids: Optional subset of message ids to label
    """
    from .llm import OpenAITopicClient
    from .topics import generate_topics as run_topics

    store = _get_store()
    if not store.conversation_exists(conversation_id):
        return f"Conversation not found: {conversation_id}"
    if not os.environ.get("OPENAI_API_KEY"):
        return "OpenAI API key not configured (set OPENAI_API_KEY)."

    # The run always ends with exactly one complete or error event.
    async for event in run_topics(conversation_id, store, OpenAITopicClient(), message_ids):
        last = event

    if last.type == "error":
        return last.error
    return f"Generated {last.topics_generated} topics."


@mcp.tool()
def list_topics(conversation_id: str) -> str:
    """List the topics of a conversation, most frequent first.

    Args:
        conversation_id: The conversation id
    """
    counts = _get_store().topic_counts(conversation_id)
    if not counts:
        return "No topics generated yet."
    return "\n".join(f"- {row['topic']} ({row['count']})" for row in counts)

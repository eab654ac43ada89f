"""Pick the extraction strategy for an uploaded export."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Callable

from ..config import SUPPORTED_EXTENSIONS
from ..errors import UnrecognizedJsonSchema, UnsupportedFormat
from ..models import ParsedConversation
from .chatgpt_html import parse_chatgpt_html
from .chatgpt_json import parse_chatgpt_json
from .claude_json import parse_claude_json
from .claude_markdown import parse_claude_markdown
from .generic_json import parse_generic_json
from .generic_markdown import parse_generic_markdown
from .markers import find_markers

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    CHATGPT_TREE = "chatgpt-json"
    CHATGPT_HTML = "chatgpt-html"
    CLAUDE_FLAT = "claude-json"
    CLAUDE_MARKDOWN = "claude-markdown"
    GENERIC_JSON = "generic-json"
    GENERIC_DOCUMENT = "generic-markdown"


_PARSERS: dict[Strategy, Callable[[str, str | None], ParsedConversation]] = {
    Strategy.CHATGPT_TREE: parse_chatgpt_json,
    Strategy.CHATGPT_HTML: parse_chatgpt_html,
    Strategy.CLAUDE_FLAT: parse_claude_json,
    Strategy.CLAUDE_MARKDOWN: parse_claude_markdown,
    Strategy.GENERIC_JSON: parse_generic_json,
    Strategy.GENERIC_DOCUMENT: parse_generic_markdown,
}


def _detect_json_schema(data: object) -> Strategy:
    if isinstance(data, dict):
        if isinstance(data.get("mapping"), dict):
            return Strategy.CHATGPT_TREE
        if isinstance(data.get("chat_messages"), list):
            return Strategy.CLAUDE_FLAT
        if isinstance(data.get("messages"), list):
            return Strategy.GENERIC_JSON
    raise UnrecognizedJsonSchema("JSON file does not match any known format")


def detect_format(content: str, filename: str) -> Strategy:
    """Choose one strategy from the content shape, then the file extension."""
    if content.strip()[:1] in ("{", "["):
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, RecursionError):
            logger.debug("%s looks like JSON but does not decode, checking extension", filename)
        else:
            return _detect_json_schema(data)

    lower = filename.lower()
    if lower.endswith((".html", ".htm")):
        return Strategy.CHATGPT_HTML
    if lower.endswith((".md", ".markdown", ".txt")):
        if find_markers(content):
            return Strategy.CLAUDE_MARKDOWN
        return Strategy.GENERIC_DOCUMENT

    raise UnsupportedFormat(
        "Unsupported file format. Please upload a ChatGPT or Claude export file "
        f"({', '.join(SUPPORTED_EXTENSIONS)})"
    )


def run_strategy(strategy: Strategy, content: str, filename: str | None = None) -> ParsedConversation:
    return _PARSERS[strategy](content, filename)


def parse_export(content: str, filename: str) -> ParsedConversation:
    """Detect the format of an export and parse it into a conversation."""
    strategy = detect_format(content, filename)
    logger.info("Parsing %s with the %s strategy", filename, strategy.value)
    return run_strategy(strategy, content, filename)

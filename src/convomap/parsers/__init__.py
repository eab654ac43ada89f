"""Format detection and per-format extraction of chat exports."""

from .chatgpt_html import parse_chatgpt_html
from .chatgpt_json import parse_chatgpt_conversation, parse_chatgpt_json
from .claude_json import parse_claude_json
from .claude_markdown import parse_claude_markdown
from .detect import Strategy, detect_format, parse_export, run_strategy
from .generic_json import parse_generic_json
from .generic_markdown import parse_generic_markdown
from .markers import Marker, find_markers

__all__ = [
    "Marker",
    "Strategy",
    "detect_format",
    "find_markers",
    "parse_chatgpt_conversation",
    "parse_chatgpt_html",
    "parse_chatgpt_json",
    "parse_claude_json",
    "parse_claude_markdown",
    "parse_export",
    "parse_generic_json",
    "parse_generic_markdown",
    "run_strategy",
]

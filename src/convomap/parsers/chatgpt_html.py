"""Parse ChatGPT HTML exports."""

from __future__ import annotations

import logging

from ..errors import HtmlParsingUnsupported, NoMessagesFound
from ..models import ParsedConversation, ParsedMessage, Role
from .common import from_epoch_seconds, parser_errors

logger = logging.getLogger(__name__)

LABEL = "ChatGPT HTML"

# Tried in order; the first selector with any match wins.
MESSAGE_SELECTORS = (
    ".conversation-turn",
    ".message",
    "[data-role]",
    ".user-message, .assistant-message",
    'div[class*="message"]',
)

_ROLES: tuple[Role, ...] = ("assistant", "system", "user")


def _load_soup(content: str):
    try:
        from bs4 import BeautifulSoup
    except ImportError as exc:
        raise HtmlParsingUnsupported(
            "HTML parsing requires beautifulsoup4 (pip install beautifulsoup4)"
        ) from exc
    return BeautifulSoup(content, "html.parser")


def _role_for(element) -> Role:
    data_role = (element.get("data-role") or "").strip().lower()
    if data_role in _ROLES:
        return data_role
    classes = " ".join(element.get("class") or []).lower()
    for role in _ROLES:
        if role in classes:
            return role
    return "user"


def _title(soup) -> str | None:
    for tag in ("title", "h1"):
        element = soup.find(tag)
        if element is not None and element.get_text().strip():
            return element.get_text().strip()
    return None


@parser_errors(LABEL)
def parse_chatgpt_html(content: str, filename: str | None = None) -> ParsedConversation:
    soup = _load_soup(content)

    elements = []
    for selector in MESSAGE_SELECTORS:
        elements = soup.select(selector)
        if elements:
            logger.debug("Matched %d message elements with %r", len(elements), selector)
            break

    if not elements:
        raise NoMessagesFound(
            "no messages found in HTML; the file may not be a valid ChatGPT export"
        )

    messages: list[ParsedMessage] = []
    for element in elements:
        text = element.get_text().strip()
        if not text:
            continue

        timestamp = None
        raw_ts = (element.get("data-timestamp") or "").strip()
        if raw_ts.lstrip("-").isdigit():
            timestamp = from_epoch_seconds(int(raw_ts))

        messages.append(ParsedMessage(role=_role_for(element), content=text, timestamp=timestamp))

    if not messages:
        raise NoMessagesFound("no valid messages could be extracted from HTML")

    return ParsedConversation.from_messages(
        messages,
        title=_title(soup),
        source_platform="chatgpt",
        source_format="html",
    )

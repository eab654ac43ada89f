"""Exception types for parsing and topic labeling."""

from __future__ import annotations


class ParseError(Exception):
    """An export could not be turned into a conversation.

    ``strategy`` is the human-readable parser label (e.g. "ChatGPT JSON") and is
    filled in by the parser that raised, so messages read
    "Failed to parse ChatGPT JSON: <reason>".
    """

    def __init__(self, reason: str, strategy: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.strategy = strategy

    def __str__(self) -> str:
        if self.strategy:
            return f"Failed to parse {self.strategy}: {self.reason}"
        return self.reason


class UnsupportedFormat(ParseError):
    pass


class UnrecognizedJsonSchema(ParseError):
    pass


class NoMessagesFound(ParseError):
    pass


class NoMessagesExtracted(ParseError):
    pass


class NoMarkersFound(ParseError):
    pass


class HtmlParsingUnsupported(ParseError):
    pass


class LabelingError(Exception):
    """A single topic label request failed."""


class RateLimitedError(LabelingError):
    """The labeling model asked us to slow down."""

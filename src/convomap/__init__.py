"""convomap — normalize LLM chat exports and label their topics."""

__version__ = "0.1.0"

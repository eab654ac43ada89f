from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from convomap.models import (
    ParsedConversation,
    ParsedMessage,
    ProgressUpdate,
    RunComplete,
    progress_event_adapter,
    to_json_line,
    to_sse,
)

T0 = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def test_message_content_is_trimmed_and_required():
    assert ParsedMessage(role="user", content="  hi \n").content == "hi"

    with pytest.raises(ValidationError):
        ParsedMessage(role="user", content="   ")
    with pytest.raises(ValidationError):
        ParsedMessage(role="robot", content="hi")


def test_from_messages_derives_bounds():
    messages = [
        ParsedMessage(role="user", content="b", timestamp=T0 + timedelta(minutes=5)),
        ParsedMessage(role="assistant", content="no time"),
        ParsedMessage(role="user", content="a", timestamp=T0),
    ]

    conversation = ParsedConversation.from_messages(
        messages, title="  ", source_platform="generic", source_format="json"
    )

    assert conversation.title == "Imported Conversation"
    assert conversation.first_message_at == T0
    assert conversation.last_message_at == T0 + timedelta(minutes=5)


def test_bounds_invariant_is_enforced():
    timed = [ParsedMessage(role="user", content="x", timestamp=T0)]
    untimed = [ParsedMessage(role="user", content="x")]
    common = {"title": "t", "source_platform": "claude", "source_format": "json"}

    with pytest.raises(ValidationError):
        ParsedConversation(messages=timed, first_message_at=T0, **common)
    with pytest.raises(ValidationError):
        ParsedConversation(messages=untimed, first_message_at=T0, last_message_at=T0, **common)
    with pytest.raises(ValidationError):
        ParsedConversation(
            messages=timed,
            first_message_at=T0,
            last_message_at=T0 - timedelta(seconds=1),
            **common,
        )
    with pytest.raises(ValidationError):
        ParsedConversation(messages=[], **common)


def test_conversation_is_immutable():
    conversation = ParsedConversation.from_messages(
        [ParsedMessage(role="user", content="x")],
        title="t",
        source_platform="generic",
        source_format="markdown",
    )

    with pytest.raises(ValidationError):
        conversation.title = "changed"


def test_event_serialization():
    event = ProgressUpdate(current=10, total=23)

    assert to_json_line(event) == '{"type":"progress","current":10,"total":23}\n'
    assert to_sse(RunComplete(topics_generated=3)) == 'data: {"type":"complete","topics_generated":3}\n\n'
    assert progress_event_adapter.validate_json(to_json_line(event)) == event

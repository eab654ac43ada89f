from __future__ import annotations

import json

import pytest


@pytest.fixture
def chatgpt_export() -> str:
    return json.dumps(
        {
            "title": "Python questions",
            "mapping": {
                "root": {"id": "root", "message": None, "children": ["a"]},
                "a": {
                    "id": "a",
                    "message": {
                        "author": {"role": "user"},
                        "content": {"parts": ["  What is a generator?  "]},
                        "create_time": 1700000000,
                    },
                    "children": ["b"],
                },
                "b": {
                    "id": "b",
                    "message": {
                        "author": {"role": "assistant"},
                        "content": {"parts": ["A function that yields values."]},
                        "create_time": 1700000060,
                    },
                    "children": [],
                },
            },
        }
    )


@pytest.fixture
def chatgpt_html() -> str:
    return """<html>
<head><title>My Chat</title></head>
<body>
  <h1>Ignored heading</h1>
  <div class="message" data-role="user" data-timestamp="1700000000">What is <b>Python</b>?</div>
  <div class="message assistant-message">A programming language.</div>
</body>
</html>"""


@pytest.fixture
def claude_export() -> str:
    return json.dumps(
        {
            "uuid": "c-1",
            "name": "Trip planning",
            "chat_messages": [
                {"uuid": "1", "text": "Where should I go?", "sender": "human",
                 "created_at": "2024-01-01T10:00:00Z"},
                {"uuid": "2", "text": "Try Lisbon.", "sender": "assistant",
                 "created_at": "2024-01-01T10:00:05.123456Z"},
                {"uuid": "3", "text": "   ", "sender": "human"},
            ],
        }
    )


@pytest.fixture
def generic_export() -> str:
    return json.dumps(
        {
            "title": "Support chat",
            "messages": [
                {"role": "User", "content": "My order is late.", "timestamp": 1700000000},
                {"role": "Bot", "content": "Sorry to hear that!", "timestamp": 1700000030000},
            ],
        }
    )

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from convomap.parsers import parse_export
from convomap.storage import ConversationStore


@pytest.fixture
def store(tmp_path):
    s = ConversationStore(tmp_path / "data" / "test.db")
    yield s
    s.close()


def test_save_and_get_conversation(store, chatgpt_export):
    conversation = parse_export(chatgpt_export, "export.json")

    conv_id = store.save_conversation(conversation, original_filename="export.json")
    saved = store.get_conversation(conv_id)

    assert store.conversation_exists(conv_id)
    assert saved["title"] == "Python questions"
    assert saved["source_platform"] == "chatgpt"
    assert saved["message_count"] == 2
    assert saved["first_message_at"] == 1700000000
    assert [m["content"] for m in saved["messages"]] == [
        "What is a generator?",
        "A function that yields values.",
    ]
    assert store.get_conversation("missing") is None


def test_unlabeled_units_follow_message_order(store, claude_export):
    conv_id = store.save_conversation(parse_export(claude_export, "c.json"))

    units = store.fetch_unlabeled_units(conv_id)
    assert [u.content for u in units] == ["Where should I go?", "Try Lisbon."]

    store.write_label(units[0].id, "Travel destination advice", datetime.now(timezone.utc))

    remaining = store.fetch_unlabeled_units(conv_id)
    assert [u.id for u in remaining] == [units[1].id]
    assert store.fetch_unlabeled_units(conv_id, ids=[units[0].id]) == []
    assert store.fetch_unlabeled_units(conv_id, limit=0) == []


def test_topic_counts_sorted_by_frequency(store):
    content = "\n".join(f"User: question {i}" for i in range(4))
    conv_id = store.save_conversation(parse_export(content, "q.txt"))
    units = store.fetch_unlabeled_units(conv_id)
    now = datetime.now(timezone.utc)
    for unit, topic in zip(units, ["Rust", "Python", "Python", "Python"]):
        store.write_label(unit.id, topic, now)

    assert store.topic_counts(conv_id) == [
        {"topic": "Python", "count": 3},
        {"topic": "Rust", "count": 1},
    ]


def test_delete_conversation_removes_messages(store, generic_export):
    conv_id = store.save_conversation(parse_export(generic_export, "g.json"))

    assert store.delete_conversation(conv_id)
    assert store.get_conversation(conv_id) is None
    assert store.fetch_unlabeled_units(conv_id) == []
    assert store.get_stats()["total_messages"] == 0


def test_stats(store, chatgpt_export, claude_export):
    store.save_conversation(parse_export(chatgpt_export, "a.json"))
    store.save_conversation(parse_export(claude_export, "b.json"))

    stats = store.get_stats()

    assert stats["total_conversations"] == 2
    assert stats["total_messages"] == 4
    assert stats["labeled_messages"] == 0
    assert stats["date_range_start"] == "2023-11-14"
    assert stats["date_range_end"] == "2024-01-01"

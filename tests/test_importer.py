from __future__ import annotations

import json
import zipfile

import click
import pytest

from convomap.importer import import_file
from convomap.storage import ConversationStore


@pytest.fixture
def store(tmp_path):
    s = ConversationStore(tmp_path / "test.db")
    yield s
    s.close()


def test_import_single_file(tmp_path, store, claude_export):
    path = tmp_path / "claude.json"
    path.write_text(claude_export, encoding="utf-8")

    summary = import_file(str(path), store=store)

    assert summary["imported"] == 1
    assert summary["messages"] == 2
    saved = store.get_conversation(summary["conversation_ids"][0])
    assert saved["original_filename"] == "claude.json"
    assert saved["source_platform"] == "claude"


def test_import_reports_parse_errors(tmp_path, store):
    path = tmp_path / "weird.json"
    path.write_text('{"foo": "bar"}', encoding="utf-8")

    with pytest.raises(click.ClickException, match="does not match any known format"):
        import_file(str(path), store=store)


def test_import_chatgpt_archive_skips_broken_conversations(tmp_path, store, chatgpt_export):
    archive = tmp_path / "export.zip"
    data = [json.loads(chatgpt_export), {"title": "broken"}, {"title": "empty", "mapping": {}}]
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("conversations.json", json.dumps(data))

    summary = import_file(str(archive), store=store)

    assert summary["imported"] == 1
    assert store.get_stats()["total_conversations"] == 1


def test_import_archive_without_conversations(tmp_path, store):
    archive = tmp_path / "export.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("user.json", "{}")

    with pytest.raises(click.ClickException, match="No conversations.json"):
        import_file(str(archive), store=store)


def test_import_missing_file(store):
    with pytest.raises(click.ClickException, match="File not found"):
        import_file("/nonexistent/chat.md", store=store)


def test_import_rejects_non_utf8_files(tmp_path, store):
    path = tmp_path / "chat.md"
    path.write_bytes(b"Human: caf\xe9\nAssistant: ok")

    with pytest.raises(click.ClickException, match="chat.md is not valid UTF-8 text"):
        import_file(str(path), store=store)

    assert store.list_conversations() == []

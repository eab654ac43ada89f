from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import convomap.cli as cli_module
import convomap.llm
from convomap.cli import cli
from convomap.parsers import parse_export
from convomap.storage import ConversationStore


class StubTopicClient:
    async def request_label(self, prompt, max_tokens, temperature):
        return "Stub Topic"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "conversations.db"
    monkeypatch.setattr(cli_module, "SQLITE_PATH", path)
    return path


def test_detect_command(tmp_path):
    path = tmp_path / "chat.txt"
    path.write_text("Human: hi\nAssistant: hello", encoding="utf-8")

    result = CliRunner().invoke(cli, ["detect", str(path)])

    assert result.exit_code == 0
    assert result.output.strip() == "claude-markdown"


def test_detect_command_unsupported(tmp_path):
    path = tmp_path / "slides.pdf"
    path.write_text("%PDF-1.4", encoding="utf-8")

    result = CliRunner().invoke(cli, ["detect", str(path)])

    assert result.exit_code == 1
    assert "Unsupported file format" in result.output


def test_topics_streams_json_lines(db_path, monkeypatch, generic_export):
    store = ConversationStore(db_path)
    conv_id = store.save_conversation(parse_export(generic_export, "g.json"))
    store.close()
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(convomap.llm, "OpenAITopicClient", StubTopicClient)

    result = CliRunner().invoke(cli, ["topics", conv_id])

    assert result.exit_code == 0, result.output
    events = [json.loads(line) for line in result.output.splitlines()]
    assert events == [
        {"type": "progress", "current": 2, "total": 2},
        {"type": "complete", "topics_generated": 2},
    ]
    store = ConversationStore(db_path)
    assert store.topic_counts(conv_id) == [{"topic": "Stub Topic", "count": 2}]
    store.close()


def test_topics_requires_api_key(db_path, monkeypatch):
    ConversationStore(db_path).close()
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    result = CliRunner().invoke(cli, ["topics", "some-id"])

    assert result.exit_code == 1
    assert "OpenAI API key not configured" in result.output


def test_topics_unknown_conversation(db_path, monkeypatch):
    ConversationStore(db_path).close()
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setattr(convomap.llm, "OpenAITopicClient", StubTopicClient)

    result = CliRunner().invoke(cli, ["topics", "missing"])

    assert result.exit_code == 1
    assert "Conversation not found" in result.output


def test_non_utf8_export_is_a_readable_error(tmp_path, db_path):
    path = tmp_path / "latin1.txt"
    path.write_bytes(b"Human: caf\xe9\nAssistant: ok")
    runner = CliRunner()

    for command in (["detect", str(path)], ["import", str(path)]):
        result = runner.invoke(cli, command)

        assert result.exit_code == 1
        assert not isinstance(result.exception, UnicodeDecodeError)
        assert "latin1.txt is not valid UTF-8 text" in result.output


def test_delete_command(db_path, generic_export):
    store = ConversationStore(db_path)
    conv_id = store.save_conversation(parse_export(generic_export, "g.json"))
    store.close()
    runner = CliRunner()

    result = runner.invoke(cli, ["delete", conv_id, "--yes"])

    assert result.exit_code == 0, result.output
    assert f"Deleted {conv_id}" in result.output
    store = ConversationStore(db_path)
    assert not store.conversation_exists(conv_id)
    store.close()

    missing = runner.invoke(cli, ["delete", conv_id, "--yes"])
    assert missing.exit_code == 1
    assert "Conversation not found" in missing.output

"""CLI interface for convomap."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from contextlib import aclosing
from datetime import datetime, timezone
from pathlib import Path

import click

from . import __version__
from .config import DATA_DIR, SQLITE_PATH


def _format_ts(ts: float | None) -> str:
    if ts is None:
        return "Unknown date"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _require_data():
    if not SQLITE_PATH.exists():
        raise click.ClickException(
            "No data found. Import a conversation first:\n"
            "  convomap import ~/Downloads/conversation.json"
        )


@click.group()
@click.version_option(version=__version__, prog_name="convomap")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def cli(verbose: bool):
    """convomap — Normalize LLM chat exports and label their topics.

    Import ChatGPT, Claude or generic chat exports into one local database,
    then generate short topic labels for every message.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@cli.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def import_cmd(path: str):
    """Import a chat export (.json, .html, .md, .txt) or a ChatGPT export ZIP.

    Example:
        convomap import ~/Downloads/claude-conversation.json
    """
    from .importer import import_file

    import_file(path)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def detect(path: str):
    """Show which parser would handle PATH, without importing it."""
    from .errors import ParseError
    from .importer import read_export
    from .parsers import detect_format

    file_path = Path(path)
    content = read_export(file_path)
    try:
        strategy = detect_format(content, file_path.name)
    except ParseError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(strategy.value)


@cli.command("list")
@click.option("--limit", default=20, show_default=True)
@click.option("--offset", default=0, show_default=True)
def list_cmd(limit: int, offset: int):
    """List imported conversations, newest import first."""
    _require_data()
    from .storage import ConversationStore

    store = ConversationStore(SQLITE_PATH)
    conversations = store.list_conversations(limit=limit, offset=offset)
    store.close()

    if not conversations:
        click.echo("No conversations found.")
        return

    for c in conversations:
        click.echo(f"{c['id']}  {c['title']}")
        click.echo(
            f"    {c['source_platform']}/{c['source_format']} | "
            f"{c['message_count']} msgs | {_format_ts(c['first_message_at'])}"
        )


@cli.command()
@click.argument("conversation_id")
def show(conversation_id: str):
    """Print a conversation transcript with its topic labels."""
    _require_data()
    from .storage import ConversationStore

    store = ConversationStore(SQLITE_PATH)
    conv = store.get_conversation(conversation_id)
    store.close()

    if not conv:
        raise click.ClickException(f"Conversation not found: {conversation_id}")

    click.echo(click.style(conv["title"], bold=True))
    click.echo(f"Source: {conv['source_platform']}/{conv['source_format']} ({conv['original_filename']})")
    click.echo()
    for msg in conv["messages"]:
        topic = f"  [{msg['topic']}]" if msg["topic"] else ""
        click.echo(click.style(f"#{msg['id']} {msg['role']}{topic}", fg="cyan"))
        click.echo(msg["content"])
        click.echo()


async def _stream_topics(conversation_id: str, message_ids: list[int] | None, sse: bool) -> bool:
    """Print each progress event as it arrives; True if the run failed."""
    from .llm import OpenAITopicClient
    from .models import to_json_line, to_sse
    from .storage import ConversationStore
    from .topics import generate_topics

    store = ConversationStore(SQLITE_PATH)
    if not store.conversation_exists(conversation_id):
        store.close()
        raise click.ClickException(f"Conversation not found: {conversation_id}")

    render = to_sse if sse else to_json_line
    failed = False
    try:
        events = generate_topics(conversation_id, store, OpenAITopicClient(), message_ids)
        async with aclosing(events):
            async for event in events:
                click.echo(render(event), nl=False)
                failed = event.type == "error"
    finally:
        store.close()
    return failed


@cli.command()
@click.argument("conversation_id")
@click.option(
    "--message-id",
    "message_ids",
    type=int,
    multiple=True,
    help="Only (re)label these message ids (repeatable)",
)
@click.option("--sse", is_flag=True, help="Write server-sent-event frames instead of JSON lines")
def topics(conversation_id: str, message_ids: tuple[int, ...], sse: bool):
    """Generate topic labels for a conversation's unlabeled messages.

    Progress is streamed to stdout, one JSON event per line.
    """
    _require_data()
    if not os.environ.get("OPENAI_API_KEY"):
        raise click.ClickException("OpenAI API key not configured (set OPENAI_API_KEY).")

    failed = asyncio.run(_stream_topics(conversation_id, list(message_ids) or None, sse))
    if failed:
        sys.exit(1)


@cli.command("topic-counts")
@click.argument("conversation_id")
def topic_counts(conversation_id: str):
    """Show the topics of a conversation, most frequent first."""
    _require_data()
    from .storage import ConversationStore

    store = ConversationStore(SQLITE_PATH)
    counts = store.topic_counts(conversation_id)
    store.close()

    if not counts:
        click.echo("No topics generated yet.")
        return
    for row in counts:
        click.echo(f"{row['count']:>5}  {row['topic']}")


@cli.command()
def stats():
    """Show statistics about your imported conversations."""
    if not SQLITE_PATH.exists():
        click.echo("No data found. Import a conversation first:")
        click.echo("  convomap import ~/Downloads/conversation.json")
        return

    from .storage import ConversationStore

    store = ConversationStore(SQLITE_PATH)
    s = store.get_stats()
    store.close()

    click.echo()
    click.echo(click.style("Import Statistics", bold=True))
    click.echo(f"  Conversations:  {s['total_conversations']:,}")
    click.echo(f"  Messages:       {s['total_messages']:,}")
    click.echo(f"  Labeled:        {s['labeled_messages']:,}")
    if s["date_range_start"]:
        click.echo(f"  Date range:     {s['date_range_start']} → {s['date_range_end']}")
    if s["platforms"]:
        click.echo("  Platforms:")
        for p in s["platforms"]:
            click.echo(f"    {p['platform']}: {p['count']:,}")
    click.echo(f"  Location:       {DATA_DIR}")
    click.echo()


@cli.command()
def serve():
    """Start the MCP server (stdio transport)."""
    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
@click.argument("conversation_id")
@click.confirmation_option(prompt="This will delete the conversation and its topics. Are you sure?")
def delete(conversation_id: str):
    """Delete one imported conversation."""
    _require_data()
    from .storage import ConversationStore

    store = ConversationStore(SQLITE_PATH)
    deleted = store.delete_conversation(conversation_id)
    store.close()

    if not deleted:
        raise click.ClickException(f"Conversation not found: {conversation_id}")
    click.echo(f"Deleted {conversation_id}")


@cli.command()
@click.confirmation_option(prompt="This will delete all imported data. Are you sure?")
def reset():
    """Delete all imported data and start fresh."""
    if DATA_DIR.exists():
        shutil.rmtree(DATA_DIR)
        click.echo(f"Deleted {DATA_DIR}")
    else:
        click.echo("No data to delete.")

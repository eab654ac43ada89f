"""Import pipeline: export file → format detection → parsing → storage."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path

import click

from .config import SQLITE_PATH
from .errors import ParseError
from .models import ParsedConversation
from .parsers import parse_chatgpt_conversation, parse_export
from .storage import ConversationStore

logger = logging.getLogger(__name__)


def read_export(path: Path) -> str:
    """Read an export as UTF-8 text (a leading BOM is dropped)."""
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise click.ClickException(f"{path.name} is not valid UTF-8 text") from exc


def parse_chatgpt_archive(zip_path: Path) -> list[ParsedConversation]:
    """Parse every conversation in a ChatGPT data export ZIP.

    Conversations that fail to parse are logged and skipped.
    """
    with zipfile.ZipFile(str(zip_path), "r") as zf:
        if "conversations.json" not in zf.namelist():
            raise click.ClickException(
                "No conversations.json found in ZIP. "
                "Make sure this is a ChatGPT data export "
                "(Settings → Data Controls → Export Data)."
            )

        with zf.open("conversations.json") as f:
            data = json.load(f)

    if not isinstance(data, list):
        raise click.ClickException("conversations.json is not a JSON array.")

    click.echo(f"Found {len(data)} conversations in export.")

    conversations: list[ParsedConversation] = []
    for conv_dict in data:
        try:
            conversations.append(parse_chatgpt_conversation(conv_dict))
        except ParseError as exc:
            title = conv_dict.get("title", "unknown") if isinstance(conv_dict, dict) else "unknown"
            logger.warning("Skipping conversation '%s': %s", title, exc)

    return conversations


def import_file(file_path: str, store: ConversationStore | None = None) -> dict:
    """Import one export file (or a ChatGPT export ZIP).

    Returns a summary dict with import statistics.
    """
    path = Path(file_path)
    if not path.exists():
        raise click.ClickException(f"File not found: {file_path}")

    if path.suffix.lower() == ".zip":
        if not zipfile.is_zipfile(str(path)):
            raise click.ClickException(f"Not a valid ZIP file: {file_path}")
        conversations = parse_chatgpt_archive(path)
    else:
        content = read_export(path)
        try:
            conversations = [parse_export(content, path.name)]
        except ParseError as exc:
            raise click.ClickException(str(exc)) from exc

    if not conversations:
        click.echo("No conversations to import.")
        return {"imported": 0, "messages": 0, "conversation_ids": []}

    owns_store = store is None
    if store is None:
        store = ConversationStore(SQLITE_PATH)

    conversation_ids: list[str] = []
    total_messages = 0
    try:
        with click.progressbar(
            conversations,
            label="Importing conversations",
            show_pos=True,
        ) as progress:
            for conv in progress:
                conversation_ids.append(store.save_conversation(conv, original_filename=path.name))
                total_messages += len(conv.messages)
    finally:
        if owns_store:
            store.close()

    click.echo()
    click.echo(click.style("Import complete!", fg="green", bold=True))
    click.echo(f"  Imported: {len(conversation_ids)} conversations ({total_messages} messages)")
    if len(conversations) == 1:
        conv = conversations[0]
        click.echo(f"  Title:    {conv.title} [{conv.source_platform}/{conv.source_format}]")
        click.echo(f"  ID:       {conversation_ids[0]}")

    return {
        "imported": len(conversation_ids),
        "messages": total_messages,
        "conversation_ids": conversation_ids,
    }

"""SQLite storage for imported conversations and their topic labels."""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .config import TOPIC_MAX_UNITS_PER_RUN
from .models import LabelingUnit, ParsedConversation


def _to_epoch(value: datetime | None) -> float | None:
    return value.timestamp() if value is not None else None


class ConversationStore:
    """SQLite-backed storage for conversations and messages."""

    def __init__(self, db_path: Path):
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self._migrate()

    def _migrate(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS conversations (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                source_platform TEXT NOT NULL,
                source_format TEXT NOT NULL,
                original_filename TEXT,
                message_count INTEGER NOT NULL,
                first_message_at REAL,
                last_message_at REAL,
                imported_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                timestamp REAL,
                message_index INTEGER NOT NULL,
                topic TEXT,
                topic_generated_at TEXT,
                FOREIGN KEY (conversation_id) REFERENCES conversations(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_messages_conv
                ON messages(conversation_id, message_index);
        """)
        self.conn.commit()

    def save_conversation(self, conv: ParsedConversation, original_filename: str = "unknown") -> str:
        """Insert a parsed conversation and its messages, returning the new id."""
        conversation_id = str(uuid.uuid4())

        with self.conn:
            self.conn.execute(
                """INSERT INTO conversations (id, title, source_platform, source_format,
                   original_filename, message_count, first_message_at, last_message_at, imported_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (conversation_id, conv.title, conv.source_platform, conv.source_format,
                 original_filename, len(conv.messages), _to_epoch(conv.first_message_at),
                 _to_epoch(conv.last_message_at), datetime.now(timezone.utc).isoformat()),
            )
            self.conn.executemany(
                """INSERT INTO messages (conversation_id, role, content, timestamp, message_index)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    (conversation_id, msg.role, msg.content, _to_epoch(msg.timestamp), idx)
                    for idx, msg in enumerate(conv.messages)
                ],
            )

        return conversation_id

    def conversation_exists(self, conversation_id: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM conversations WHERE id = ?", (conversation_id,)
        ).fetchone()
        return row is not None

    def get_conversation(self, conversation_id: str) -> dict | None:
        """Get a conversation with all its messages."""
        row = self.conn.execute(
            "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
        ).fetchone()
        if not row:
            return None

        messages = self.conn.execute(
            """SELECT id, role, content, timestamp, topic FROM messages
               WHERE conversation_id = ? ORDER BY message_index""",
            (conversation_id,),
        ).fetchall()

        return {**dict(row), "messages": [dict(m) for m in messages]}

    def list_conversations(self, limit: int = 20, offset: int = 0) -> list[dict]:
        rows = self.conn.execute(
            """SELECT id, title, source_platform, source_format, message_count,
                      first_message_at, imported_at
               FROM conversations
               ORDER BY imported_at DESC
               LIMIT ? OFFSET ?""",
            (limit, offset),
        ).fetchall()
        return [dict(r) for r in rows]

    def fetch_unlabeled_units(
        self,
        conversation_id: str,
        ids: list[int] | None = None,
        limit: int = TOPIC_MAX_UNITS_PER_RUN,
    ) -> list[LabelingUnit]:
        """Messages without a topic, in conversation order."""
        query = "SELECT id, content FROM messages WHERE conversation_id = ? AND topic IS NULL"
        params: list = [conversation_id]
        if ids:
            query += f" AND id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)
        query += " ORDER BY message_index LIMIT ?"
        params.append(limit)

        rows = self.conn.execute(query, params).fetchall()
        return [LabelingUnit(id=r["id"], content=r["content"]) for r in rows]

    def write_label(self, unit_id: int, label: str, labeled_at: datetime):
        self.conn.execute(
            "UPDATE messages SET topic = ?, topic_generated_at = ? WHERE id = ?",
            (label, labeled_at.isoformat(), unit_id),
        )
        self.conn.commit()

    def topic_counts(self, conversation_id: str) -> list[dict]:
        """Distinct topics of a conversation with how many messages carry each."""
        rows = self.conn.execute(
            """SELECT topic, COUNT(*) AS count FROM messages
               WHERE conversation_id = ? AND topic IS NOT NULL
               GROUP BY topic ORDER BY count DESC, topic""",
            (conversation_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    def delete_conversation(self, conversation_id: str) -> bool:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
        return cursor.rowcount > 0

    def get_stats(self) -> dict:
        """Get overall database statistics."""
        conv_count = self.conn.execute("SELECT COUNT(*) FROM conversations").fetchone()[0]
        msg_count = self.conn.execute("SELECT COUNT(*) FROM messages").fetchone()[0]
        labeled = self.conn.execute(
            "SELECT COUNT(*) FROM messages WHERE topic IS NOT NULL"
        ).fetchone()[0]

        date_range = self.conn.execute(
            """SELECT MIN(first_message_at), MAX(last_message_at) FROM conversations
               WHERE first_message_at IS NOT NULL"""
        ).fetchone()

        platforms = self.conn.execute(
            """SELECT source_platform, COUNT(*) AS cnt FROM conversations
               GROUP BY source_platform ORDER BY cnt DESC"""
        ).fetchall()

        return {
            "total_conversations": conv_count,
            "total_messages": msg_count,
            "labeled_messages": labeled,
            "date_range_start": _format_ts(date_range[0]),
            "date_range_end": _format_ts(date_range[1]),
            "platforms": [{"platform": r[0], "count": r[1]} for r in platforms],
        }

    def close(self):
        self.conn.close()


def _format_ts(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")

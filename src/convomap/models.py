"""Data models for parsed conversations and topic labeling runs."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

Role = Literal["user", "assistant", "system"]
SourcePlatform = Literal["chatgpt", "claude", "generic"]
SourceFormat = Literal["json", "html", "markdown"]


class ParsedMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime | None = None

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message content must not be empty")
        return value


class ParsedConversation(BaseModel):
    """Canonical output of every extraction strategy."""

    model_config = ConfigDict(frozen=True)

    title: str
    messages: list[ParsedMessage] = Field(min_length=1)
    first_message_at: datetime | None = None
    last_message_at: datetime | None = None
    source_platform: SourcePlatform
    source_format: SourceFormat

    @model_validator(mode="after")
    def _check_bounds(self) -> ParsedConversation:
        has_timestamps = any(m.timestamp is not None for m in self.messages)
        bounds = (self.first_message_at, self.last_message_at)
        if has_timestamps and None in bounds:
            raise ValueError("timestamped messages require both time bounds")
        if not has_timestamps and bounds != (None, None):
            raise ValueError("time bounds require at least one timestamped message")
        if has_timestamps and self.first_message_at > self.last_message_at:
            raise ValueError("first_message_at is after last_message_at")
        return self

    @classmethod
    def from_messages(
        cls,
        messages: list[ParsedMessage],
        *,
        title: str | None,
        source_platform: SourcePlatform,
        source_format: SourceFormat,
        default_title: str = "Imported Conversation",
    ) -> ParsedConversation:
        """Build a conversation, deriving the time bounds from the messages."""
        timestamps = [m.timestamp for m in messages if m.timestamp is not None]
        return cls(
            title=(title or "").strip() or default_title,
            messages=messages,
            first_message_at=min(timestamps) if timestamps else None,
            last_message_at=max(timestamps) if timestamps else None,
            source_platform=source_platform,
            source_format=source_format,
        )


class LabelingUnit(BaseModel):
    id: int
    content: str


class ProgressUpdate(BaseModel):
    type: Literal["progress"] = "progress"
    current: int
    total: int


class RunComplete(BaseModel):
    type: Literal["complete"] = "complete"
    topics_generated: int


class RunFailed(BaseModel):
    type: Literal["error"] = "error"
    error: str


ProgressEvent = Annotated[
    Union[ProgressUpdate, RunComplete, RunFailed], Field(discriminator="type")
]

progress_event_adapter = TypeAdapter(ProgressEvent)


def to_json_line(event: ProgressUpdate | RunComplete | RunFailed) -> str:
    """Serialize an event as one line of newline-delimited JSON."""
    return event.model_dump_json() + "\n"


def to_sse(event: ProgressUpdate | RunComplete | RunFailed) -> str:
    """Serialize an event as a server-sent-events ``data:`` frame."""
    return f"data: {event.model_dump_json()}\n\n"

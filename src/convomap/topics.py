"""Topic labeling pipeline: batched LLM requests with retry and progress events.

A run takes up to ``TOPIC_MAX_UNITS_PER_RUN`` unlabeled messages, labels them
``TOPIC_BATCH_SIZE`` at a time (all requests in a batch run concurrently and
the next batch starts only after every one of them settles) and yields a
``ProgressUpdate`` after each batch. The run ends with exactly one
``RunComplete`` or ``RunFailed``.

A message whose label requests keep failing gets ``SENTINEL_TOPIC``; that never
fails the run. Labels are written to the store as soon as each message
settles, so an interrupted run keeps the labels it already produced.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Protocol

from .config import (
    SENTINEL_TOPIC,
    TOPIC_BATCH_SIZE,
    TOPIC_MAX_ATTEMPTS,
    TOPIC_MAX_CONTENT_CHARS,
    TOPIC_MAX_TOKENS,
    TOPIC_MAX_UNITS_PER_RUN,
    TOPIC_TEMPERATURE,
)
from .errors import RateLimitedError
from .llm import TopicClient
from .models import LabelingUnit, ProgressUpdate, RunComplete, RunFailed

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Event = ProgressUpdate | RunComplete | RunFailed


class LabelStore(Protocol):
    def fetch_unlabeled_units(
        self, conversation_id: str, ids: list[int] | None = None, limit: int = TOPIC_MAX_UNITS_PER_RUN
    ) -> list[LabelingUnit]: ...

    def write_label(self, unit_id: int, label: str, labeled_at: datetime) -> None: ...


def build_topic_prompt(content: str) -> str:
    return (
        "Summarize this message in 3-5 words as a topic label. "
        "Be specific and descriptive.\n\n"
        f'Message: "{content[:TOPIC_MAX_CONTENT_CHARS]}"\n\n'
        "Topic:"
    )


async def generate_topic(
    client: TopicClient,
    content: str,
    *,
    max_attempts: int = TOPIC_MAX_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """Label one message, falling back to SENTINEL_TOPIC after max_attempts.

    Rate limits back off for 1s, 2s, 4s, ... between attempts; other failures
    retry straight away.
    """
    prompt = build_topic_prompt(content)

    for attempt in range(max_attempts):
        try:
            topic = await client.request_label(prompt, TOPIC_MAX_TOKENS, TOPIC_TEMPERATURE)
        except RateLimitedError:
            logger.warning("Rate limited generating topic (attempt %d/%d)", attempt + 1, max_attempts)
            if attempt < max_attempts - 1:
                await sleep(2**attempt)
            continue
        except Exception:
            logger.warning(
                "Error generating topic (attempt %d/%d)", attempt + 1, max_attempts, exc_info=True
            )
            continue

        topic = topic.strip()
        if topic:
            return topic
        logger.warning("Empty topic returned (attempt %d/%d)", attempt + 1, max_attempts)

    logger.warning("Giving up on topic after %d attempts", max_attempts)
    return SENTINEL_TOPIC


async def label_units(
    units: list[LabelingUnit],
    client: TopicClient,
    store: LabelStore,
    *,
    batch_size: int = TOPIC_BATCH_SIZE,
    max_attempts: int = TOPIC_MAX_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
) -> AsyncIterator[Event]:
    """Label ``units`` batch by batch, yielding progress and one terminal event.

    Closing the generator early stops it before the next batch starts.
    """
    total = len(units)
    processed = 0

    async def label_one(unit: LabelingUnit) -> str:
        topic = await generate_topic(client, unit.content, max_attempts=max_attempts, sleep=sleep)
        # Synchronous local write on the loop thread; sqlite3 connections are bound to
        # the thread that opened them.
        store.write_label(unit.id, topic, datetime.now(timezone.utc))
        return topic

    try:
        for start in range(0, total, batch_size):
            batch = units[start : start + batch_size]
            results = await asyncio.gather(*(label_one(u) for u in batch), return_exceptions=True)
            failures = [r for r in results if isinstance(r, BaseException)]
            if failures:
                raise failures[0]

            processed += len(batch)
            logger.debug("Labeled %d/%d messages", processed, total)
            yield ProgressUpdate(current=processed, total=total)
    except Exception as exc:
        logger.exception("Topic labeling failed after %d/%d messages", processed, total)
        yield RunFailed(error=f"Failed to generate topics: {exc}")
        return

    yield RunComplete(topics_generated=processed)


async def generate_topics(
    conversation_id: str,
    store: LabelStore,
    client: TopicClient,
    message_ids: list[int] | None = None,
    *,
    limit: int = TOPIC_MAX_UNITS_PER_RUN,
    batch_size: int = TOPIC_BATCH_SIZE,
    max_attempts: int = TOPIC_MAX_ATTEMPTS,
    sleep: Sleep = asyncio.sleep,
) -> AsyncIterator[Event]:
    """Label the conversation's unlabeled messages (optionally only ``message_ids``)."""
    try:
        units = store.fetch_unlabeled_units(conversation_id, ids=message_ids, limit=limit)
    except Exception as exc:
        logger.exception("Failed to fetch messages for conversation %s", conversation_id)
        yield RunFailed(error=f"Failed to fetch messages: {exc}")
        return

    if not units:
        logger.info("No messages need topic generation in %s", conversation_id)
        yield RunComplete(topics_generated=0)
        return

    events = label_units(
        units, client, store, batch_size=batch_size, max_attempts=max_attempts, sleep=sleep
    )
    async with aclosing(events):
        async for event in events:
            yield event

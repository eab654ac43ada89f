"""OpenAI chat client used to generate topic labels."""

from __future__ import annotations

import logging
from typing import Protocol

import openai
from openai import AsyncOpenAI

from .config import TOPIC_MODEL
from .errors import LabelingError, RateLimitedError

logger = logging.getLogger(__name__)


class TopicClient(Protocol):
    async def request_label(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Return the model's reply; raise RateLimitedError or LabelingError on failure."""
        ...


class OpenAITopicClient:
    """Chat-completions adapter that maps OpenAI errors onto our own."""

    def __init__(self, model: str = TOPIC_MODEL, client: AsyncOpenAI | None = None):
        self.model = model
        self.client = client or AsyncOpenAI()

    async def request_label(self, prompt: str, max_tokens: int, temperature: float) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError(str(exc)) from exc
        except openai.APIError as exc:
            raise LabelingError(str(exc)) from exc

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

"""Ask the chat model for movie titles that fit a mood."""

from __future__ import annotations

import logging
from typing import Any

import openai
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from cinevibe.core.config import Settings, get_settings
from cinevibe.services.http import is_retryable
from cinevibe.services.retry import RetryPolicy


logger = logging.getLogger(__name__)

TITLE_COUNT = 15
TEMPERATURE = 0.8
MAX_TOKENS = 600

_SYSTEM_PROMPT = (
    "You are a Gen Z movie curator. Return EXACTLY {count} movie titles "
    "(one per line, no numbering). Include a mix of recent (2020+), modern classics "
    "(2010-2019), older favorites (pre-2010), and some international/indie. "
    "Titles must be exact and searchable."
)


class CuratorError(Exception):
    """Raised when the chat model cannot produce a usable answer."""


def is_retryable_llm(exc: BaseException) -> bool:
    """Retry timeouts, connection drops, 5xx and 429 from the OpenAI SDK."""

    if isinstance(exc, openai.APIConnectionError):
        return True
    if isinstance(exc, openai.APIStatusError):
        return exc.status_code >= 500 or exc.status_code == 429
    return is_retryable(exc)


class MoodCurator:
    """Wrap ``ChatOpenAI`` with the shared backoff policy.

    The SDK's own retries are disabled so that every attempt goes through
    ``RetryPolicy`` and the same transient-failure classification as TMDb.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        llm: BaseChatModel | None = None,
        policy: RetryPolicy | None = None,
        title_count: int = TITLE_COUNT,
    ) -> None:
        self.settings = settings or get_settings()
        self.title_count = title_count
        self.policy = policy or RetryPolicy(
            classifier=is_retryable_llm,
            attempts=self.settings.http_retry_attempts,
            base_delay=self.settings.http_retry_base_delay,
        )
        self._llm = llm

    def build_llm(self) -> BaseChatModel:
        if self._llm is None:
            if not self.settings.openai_api_key:
                raise CuratorError("OPENAI_API_KEY is not configured")
            self._llm = ChatOpenAI(
                model=self.settings.openai_model,
                api_key=self.settings.openai_api_key,
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
                timeout=self.settings.openai_timeout,
                max_retries=0,
            )
        return self._llm

    def build_messages(self, mood: str) -> list[BaseMessage]:
        return [
            SystemMessage(content=_SYSTEM_PROMPT.format(count=self.title_count)),
            HumanMessage(content=f'Find {self.title_count} movies that match this vibe: "{mood}"'),
        ]

    async def suggest(self, mood: str) -> str:
        """Return the model's raw text answer for ``mood``."""

        llm = self.build_llm()
        messages = self.build_messages(mood)
        try:
            message = await self.policy.call(lambda: llm.ainvoke(messages))
        except openai.OpenAIError as exc:
            logger.warning("Chat completion failed: %s", exc.__class__.__name__)
            raise CuratorError("chat completion failed") from exc
        return _extract_text(message)


def _extract_text(message: Any) -> str:
    content = getattr(message, "content", "")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                parts.append(str(chunk.get("text", "")))
            elif isinstance(chunk, str):
                parts.append(chunk)
        return "".join(parts)
    return str(content)

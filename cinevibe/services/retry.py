"""Exponential backoff policy shared by outbound TMDb and LLM calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry transient failures with ``base_delay * 2**n`` plus random jitter.

    ``classifier`` decides whether an exception is worth another attempt; any
    other exception is re-raised from the first attempt.
    """

    classifier: Callable[[BaseException], bool]
    attempts: int = 4
    base_delay: float = 0.3
    jitter: float = 0.1

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max(1, self.attempts)),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2) + wait_random(0, self.jitter),
            retry=retry_if_exception(self.classifier),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        async for attempt in self.retrying():
            with attempt:
                return await func()
        raise RuntimeError("retry loop exited without an attempt")  # pragma: no cover

import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest

from cinevibe.core.config import Settings
from cinevibe.services.llm import CuratorError, MoodCurator, is_retryable_llm
from cinevibe.services.retry import RetryPolicy


REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class ScriptedChatModel:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(content=outcome)


def make_curator(llm=None, *, api_key="sk-test") -> MoodCurator:
    settings = Settings(_env_file=None, OPENAI_API_KEY=api_key)
    policy = RetryPolicy(classifier=is_retryable_llm, attempts=4, base_delay=0, jitter=0)
    return MoodCurator(settings=settings, llm=llm, policy=policy)


def test_prompt_asks_for_fifteen_titles():
    messages = make_curator(ScriptedChatModel("x")).build_messages("cozy rainy day")

    assert "EXACTLY 15 movie titles" in messages[0].content
    assert '"cozy rainy day"' in messages[1].content


def test_transient_failures_are_retried():
    llm = ScriptedChatModel(
        openai.APIConnectionError(request=REQUEST),
        openai.APIStatusError("busy", response=httpx.Response(503, request=REQUEST), body=None),
        "Heat\nRonin",
    )

    assert asyncio.run(make_curator(llm).suggest("tense")) == "Heat\nRonin"
    assert len(llm.calls) == 3


def test_client_errors_fail_immediately():
    llm = ScriptedChatModel(
        openai.APIStatusError("bad key", response=httpx.Response(401, request=REQUEST), body=None)
    )

    with pytest.raises(CuratorError):
        asyncio.run(make_curator(llm).suggest("tense"))
    assert len(llm.calls) == 1


def test_exhausted_retries_raise_curator_error():
    llm = ScriptedChatModel(openai.APITimeoutError(request=REQUEST))

    with pytest.raises(CuratorError):
        asyncio.run(make_curator(llm).suggest("tense"))
    assert len(llm.calls) == 4


def test_missing_api_key():
    with pytest.raises(CuratorError):
        asyncio.run(make_curator(api_key="").suggest("tense"))


def test_list_content_is_flattened():
    llm = ScriptedChatModel([{"type": "text", "text": "Amélie\n"}, {"type": "text", "text": "Oldboy"}])

    assert asyncio.run(make_curator(llm).suggest("quirky")) == "Amélie\nOldboy"

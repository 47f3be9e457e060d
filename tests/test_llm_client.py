import asyncio
from types import SimpleNamespace

import pytest

from chapter_forge.config import LLMConfig
from chapter_forge.errors import LLMCapabilityError
from chapter_forge.llm import LLMClient, require_structured
from chapter_forge.parsing import Err, Ok
from chapter_forge.schemas import JudgeResponse
from tests.conftest import TextOnlyLLM


class FakeCompletions:
    def __init__(self, contents, tokens=25):
        self.contents = list(contents)
        self.tokens = tokens
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.contents.pop(0))
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(total_tokens=self.tokens),
        )


def make_client(contents, tokens=25):
    completions = FakeCompletions(contents, tokens)
    openai_stub = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMClient(LLMConfig(model="test-model", temperature=0.5), client=openai_stub), completions


def test_complete_counts_tokens():
    client, completions = make_client(["first", "second"])

    assert asyncio.run(client.complete("sys", "user")) == "first"
    assert asyncio.run(client.complete("sys", "user", temperature=1.2, agent_name="Judge")) == "second"

    assert client.total_tokens == 50
    assert [log.agent_name for log in client.logs] == ["llm", "Judge"]
    assert completions.requests[0]["model"] == "test-model"
    assert completions.requests[0]["temperature"] == 0.5
    assert completions.requests[1]["temperature"] == 1.2


def test_complete_structured_returns_tagged_result():
    client, _ = make_client(['{"winner": "B", "reasoning": "ok"}', "garbage"])

    ok = asyncio.run(client.complete_structured("sys", "user", JudgeResponse))
    err = asyncio.run(client.complete_structured("sys", "user", JudgeResponse))

    assert isinstance(ok, Ok) and ok.value.winner == "B"
    assert isinstance(err, Err)
    assert client.total_tokens == 50


def test_transport_errors_propagate():
    class Broken:
        async def create(self, **kwargs):
            raise ConnectionError("endpoint down")

    client = LLMClient(LLMConfig(), client=SimpleNamespace(chat=SimpleNamespace(completions=Broken())))
    with pytest.raises(ConnectionError):
        asyncio.run(client.complete("sys", "user"))
    assert client.total_tokens == 0


def test_require_structured():
    client, _ = make_client([])
    require_structured(client)
    with pytest.raises(LLMCapabilityError):
        require_structured(TextOnlyLLM())

"""Base agent: prompt rendering and per-call token deltas on a shared client."""

from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

from ..llm.client import LLMClient, require_structured
from ..parsing import ParseResult
from ..prompts import render

M = TypeVar("M", bound=BaseModel)


class BaseAgent:
    """Base class for agents that talk to an ``LLMClient``.

    Token usage is reported as the difference between two reads of the
    client's counter taken around the agent's own call.
    """

    template: str = ""

    def __init__(self, name: str, llm: LLMClient):
        self.name = name
        self.llm = llm

    def tokens_now(self) -> int:
        return self.llm.total_tokens

    async def call_text(
        self,
        context: Mapping[str, Any],
        temperature: Optional[float] = None,
    ) -> tuple[str, int]:
        """Render ``self.template`` and return (response text, tokens used)."""
        prompt = render(self.template, context)
        before = self.tokens_now()
        text = await self.llm.complete(
            prompt.system, prompt.user, temperature=temperature, agent_name=self.name
        )
        return text, self.tokens_now() - before

    async def call_structured(
        self,
        context: Mapping[str, Any],
        schema: Type[M],
        temperature: Optional[float] = None,
    ) -> tuple["ParseResult[M]", int]:
        """Render ``self.template`` and return (parse result, tokens used)."""
        require_structured(self.llm)
        prompt = render(self.template, context)
        before = self.tokens_now()
        result = await self.llm.complete_structured(
            prompt.system, prompt.user, schema, temperature=temperature, agent_name=self.name
        )
        return result, self.tokens_now() - before

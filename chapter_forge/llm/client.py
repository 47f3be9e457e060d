"""Async client for OpenAI-compatible chat endpoints with token accounting."""

import time
from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from loguru import logger
from openai import APIError, AsyncOpenAI
from pydantic import BaseModel

from ..config import LLMConfig
from ..errors import LLMCapabilityError
from ..parsing import ParseResult, parse_structured

M = TypeVar("M", bound=BaseModel)

# Failures of the call itself rather than of the model's answer
HARD_ERRORS = (APIError, LLMCapabilityError)


@dataclass
class AgentLog:
    agent_name: str = ""
    action: str = ""
    prompt_preview: str = ""
    response_preview: str = ""
    tokens_used: int = 0
    elapsed_seconds: float = 0.0


class LLMClient:
    """Thin wrapper around ``openai.AsyncOpenAI``.

    ``total_tokens`` only ever grows. Components never reset or increment it;
    they read it before and after their own calls and report the delta, so
    one client can be shared by concurrent calls.
    """

    def __init__(self, config: LLMConfig, client=None):
        self.config = config
        self._client = client
        self.total_tokens = 0
        self.logs: list[AgentLog] = []

    def _get_client(self):
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.resolved_api_key(),
                base_url=self.config.base_url,
            )
        return self._client

    async def complete(
        self,
        system: str,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        agent_name: str = "llm",
    ) -> str:
        start = time.time()
        response = await self._get_client().chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.config.max_tokens,
        )
        result = response.choices[0].message.content or ""
        used = response.usage.total_tokens if response.usage else 0
        self.total_tokens += used
        self._log(agent_name, "complete", prompt, result, used, time.time() - start)
        return result

    async def complete_structured(
        self,
        system: str,
        prompt: str,
        schema: Type[M],
        temperature: Optional[float] = None,
        agent_name: str = "llm",
    ) -> "ParseResult[M]":
        """Ask for a JSON object and validate it against ``schema``.

        Parse failures come back as ``Err``; transport errors propagate.
        """
        raw = await self.complete(
            system + "\n\nRespond with valid JSON only.",
            prompt,
            temperature=temperature,
            agent_name=agent_name,
        )
        return parse_structured(raw, schema)

    def _log(
        self, agent_name: str, action: str, prompt: str, response: str, tokens: int, elapsed: float
    ) -> None:
        entry = AgentLog(
            agent_name=agent_name,
            action=action,
            prompt_preview=prompt[:200],
            response_preview=response[:200] if response else "",
            tokens_used=tokens,
            elapsed_seconds=round(elapsed, 2),
        )
        self.logs.append(entry)
        logger.debug(f"{agent_name}.{action}: {tokens} tokens in {entry.elapsed_seconds}s")


def require_structured(client) -> None:
    """Fail fast when ``client`` cannot produce structured (JSON-validated) output."""
    if not callable(getattr(client, "complete_structured", None)):
        raise LLMCapabilityError(
            f"{type(client).__name__} does not support structured completions"
        )

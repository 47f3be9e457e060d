"""Retake agent.

Unlike the corrector, which fixes surface violations, the retaker rewrites
at the level of voice, characterisation and rhythm.
"""

from .base import BaseAgent
from ..llm.client import LLMClient
from ..models import RetakeResult
from ..prompts import DEFAULT_VOICE


class RetakeAgent(BaseAgent):
    template = "retake"

    def __init__(self, llm: LLMClient, voice: str = DEFAULT_VOICE, temperature: float = 0.6):
        super().__init__("Retaker", llm)
        self.voice = voice
        self.temperature = temperature

    async def retake(self, text: str, feedback: str) -> RetakeResult:
        retaken, tokens = await self.call_text(
            {"text": text, "feedback": feedback, "voice": self.voice},
            temperature=self.temperature,
        )
        return RetakeResult(retaken_text=retaken, tokens_used=tokens)

"""Writer agent: one tournament contestant."""

from .base import BaseAgent
from ..config import WriterPersona
from ..llm.client import LLMClient
from ..models import GenerationResult


class WriterAgent(BaseAgent):
    template = "writer"

    def __init__(self, llm: LLMClient, persona: WriterPersona):
        super().__init__(f"Writer[{persona.id}]", llm)
        self.persona = persona

    @property
    def generator_id(self) -> str:
        return self.persona.id

    async def generate(self, prompt: str) -> str:
        result = await self.generate_with_metadata(prompt)
        return result.text

    async def generate_with_metadata(self, prompt: str) -> GenerationResult:
        text, tokens = await self.call_text(
            {"prompt": prompt, "focus": self.persona.focus or "balanced prose"},
            temperature=self.persona.temperature,
        )
        return GenerationResult(generator_id=self.persona.id, text=text, tokens_used=tokens)

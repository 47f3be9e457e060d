"""Corrector agent: rewrites text to clear compliance violations."""

from typing import Optional, Sequence

from .base import BaseAgent
from ..llm.client import LLMClient
from ..models import ChapterContext, CorrectionOutput, Violation
from ..prompts import DEFAULT_VOICE


def format_violations(violations: Sequence[Violation]) -> str:
    return "\n".join(
        f'{i}. [{v.kind}] "{v.context}" - {v.rule} (severity: {v.severity.value})'
        for i, v in enumerate(violations, 1)
    )


class CorrectorAgent(BaseAgent):
    template = "corrector"

    def __init__(self, llm: LLMClient, voice: str = DEFAULT_VOICE, temperature: float = 0.4):
        super().__init__("Corrector", llm)
        self.voice = voice
        self.temperature = temperature

    async def correct(
        self,
        text: str,
        violations: Sequence[Violation],
        chapter_context: Optional[ChapterContext] = None,
    ) -> CorrectionOutput:
        chapter_note = ""
        if chapter_context is not None and chapter_context.previous_chapter_texts:
            chapter_note = (
                f"\nThis is chapter {chapter_context.chapter_index + 1}; "
                "do not reuse scenes or phrasing from earlier chapters."
            )
        corrected, tokens = await self.call_text(
            {
                "text": text,
                "violations": format_violations(violations) or "(none reported)",
                "voice": self.voice,
                "chapter_note": chapter_note,
            },
            temperature=self.temperature,
        )
        return CorrectionOutput(corrected_text=corrected, tokens_used=tokens)

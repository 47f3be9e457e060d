"""Chapter state extractor: reads a finished chapter and reports what changed."""

from loguru import logger

from .base import BaseAgent
from ..continuity import format_state_for_prompt
from ..llm.client import LLMClient
from ..models import (
    ChapterStateExtraction,
    CharacterState,
    CrossChapterState,
    MotifOccurrence,
    fallback_extraction,
)
from ..parsing import Err
from ..schemas import ChapterStateResponse
from ..utils.text import truncate_text


def to_extraction(data: ChapterStateResponse) -> ChapterStateExtraction:
    return ChapterStateExtraction(
        character_states=tuple(
            CharacterState(
                character_name=cs.character_name,
                emotional_state=cs.emotional_state,
                knowledge_gained=tuple(cs.knowledge_gained),
                relationship_changes=tuple(cs.relationship_changes),
                physical_state=cs.physical_state or None,
            )
            for cs in data.character_states
        ),
        motif_occurrences=tuple(
            MotifOccurrence(motif=mo.motif, count=mo.count) for mo in data.motif_occurrences
        ),
        next_variation_hint=data.next_variation_hint,
        chapter_summary=data.chapter_summary,
        dominant_tone=data.dominant_tone,
        peak_intensity=max(1, min(5, data.peak_intensity)),
    )


class ChapterStateExtractor(BaseAgent):
    template = "chapter_state_extractor"

    def __init__(self, llm: LLMClient, max_chapter_chars: int = 6000):
        super().__init__("ChapterStateExtractor", llm)
        self.max_chapter_chars = max_chapter_chars

    async def extract(
        self,
        chapter_text: str,
        chapter_index: int,
        previous_state: CrossChapterState = CrossChapterState(),
    ) -> ChapterStateExtraction:
        result, _ = await self.call_structured(
            {
                "previous_state": format_state_for_prompt(previous_state) or "(first chapter)",
                "chapter_number": chapter_index + 1,
                "chapter_text": truncate_text(chapter_text, self.max_chapter_chars),
            },
            ChapterStateResponse,
            temperature=1.0,
        )
        if isinstance(result, Err):
            logger.warning(f"Chapter {chapter_index + 1}: state extraction unusable, using empty extraction")
            return fallback_extraction()
        return to_extraction(result.value)

"""Reader evaluator: scores a text from one reader persona's point of view."""

import math
from typing import Any, Mapping, Optional

from loguru import logger

from .base import BaseAgent
from ..config import ReaderPersonaConfig
from ..llm.client import LLMClient
from ..models import CategoryScores, PersonaFeedback, ReaderEvaluation
from ..models.reader import CATEGORIES
from ..parsing import Err
from ..schemas import ReaderEvaluationResponse


def clamp_score(value: Any) -> float:
    """Clamp to [0, 1]; missing, non-numeric or NaN values become 0.5."""
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return 0.5
    return max(0.0, min(1.0, float(value)))


def normalize_scores(raw: Optional[Mapping[str, Any]]) -> CategoryScores:
    raw = raw or {}
    return CategoryScores(**{name: clamp_score(raw.get(name)) for name in CATEGORIES})


def default_category_scores() -> CategoryScores:
    return CategoryScores()


class ReaderEvaluator(BaseAgent):
    template = "reader_evaluator"

    def __init__(self, llm: LLMClient, persona: ReaderPersonaConfig, temperature: float = 0.3):
        super().__init__(f"Reader[{persona.id}]", llm)
        self.persona = persona
        self.temperature = temperature

    async def evaluate(self, text: str) -> ReaderEvaluation:
        result, _ = await self.call_structured(
            {
                "persona_name": self.persona.name,
                "persona_description": self.persona.description,
                "persona_preferences": "\n".join(f"- {p}" for p in self.persona.preferences) or "- (none)",
                "text": text,
            },
            ReaderEvaluationResponse,
            temperature=self.temperature,
        )

        if isinstance(result, Err):
            logger.warning(f"{self.name}: unusable evaluation, scoring neutral: {result.message}")
            scores = default_category_scores()
            feedback = PersonaFeedback(weaknesses=f"Evaluation could not be parsed: {result.raw[:100]}")
        else:
            data = result.value
            scores = normalize_scores(data.category_scores)
            if isinstance(data.feedback, str):
                feedback = PersonaFeedback(weaknesses=data.feedback)
            else:
                feedback = PersonaFeedback(
                    strengths=data.feedback.strengths,
                    weaknesses=data.feedback.weaknesses,
                    suggestion=data.feedback.suggestion,
                )

        return ReaderEvaluation(
            persona_id=self.persona.id,
            persona_name=self.persona.name,
            category_scores=scores,
            weighted_score=scores.weighted(self.persona.weights),
            feedback=feedback,
        )

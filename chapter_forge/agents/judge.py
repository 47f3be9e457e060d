"""Judge agent: head-to-head comparison of two texts."""

from loguru import logger

from .base import BaseAgent
from ..llm.client import LLMClient
from ..models import JudgeResult, ScoreBreakdown, fallback_judge_result
from ..parsing import Err
from ..schemas import JudgeResponse


def to_judge_result(data: JudgeResponse) -> JudgeResult:
    """Convert a validated judge response into a ``JudgeResult``."""
    praised = data.praised_excerpts or {}
    weaknesses = None
    if data.weaknesses:
        weaknesses = {side: tuple(items) for side, items in data.weaknesses.items()}
    return JudgeResult(
        winner=data.winner,
        reasoning=data.reasoning or "No reasoning provided",
        scores={
            "A": ScoreBreakdown.from_raw(data.scores.get("A")),
            "B": ScoreBreakdown.from_raw(data.scores.get("B")),
        },
        praised_excerpts={
            "A": tuple(praised.get("A", ())),
            "B": tuple(praised.get("B", ())),
        },
        weaknesses=weaknesses,
        axis_comments=tuple(data.axis_comments) if data.axis_comments else None,
        section_analysis=tuple(data.section_analysis) if data.section_analysis else None,
    )


class JudgeAgent(BaseAgent):
    template = "judge"

    def __init__(self, llm: LLMClient, temperature: float = 1.0):
        super().__init__("Judge", llm)
        self.temperature = temperature

    async def evaluate(self, text_a: str, text_b: str) -> JudgeResult:
        """Compare two texts. Never raises on malformed output: falls back to A."""
        result, _ = await self.call_structured(
            {"text_a": text_a, "text_b": text_b},
            JudgeResponse,
            temperature=self.temperature,
        )
        if isinstance(result, Err):
            logger.warning(f"Judge output unusable, using fallback verdict: {result.message}")
            return fallback_judge_result()
        return to_judge_result(result.value)

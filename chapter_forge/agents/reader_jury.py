"""Reader jury: several persona evaluations folded into one verdict."""

import asyncio
from typing import Sequence

from loguru import logger

from ..models import ReaderEvaluation, ReaderJuryResult
from ..protocols import PersonaEvaluator

PASSING_THRESHOLD = 0.80


def aggregate_score(evaluations: Sequence[ReaderEvaluation]) -> float:
    """Unweighted mean of each persona's weighted score (0 for an empty jury)."""
    if not evaluations:
        return 0.0
    return sum(e.weighted_score for e in evaluations) / len(evaluations)


def build_summary(evaluations: Sequence[ReaderEvaluation], passed: bool) -> str:
    lines = [f"Reader jury verdict: {'PASS' if passed else 'FAIL'}", "", "Per persona:"]
    for e in evaluations:
        lines.append(f"- {e.persona_name}: {e.weighted_score * 100:.1f}")
    return "\n".join(lines)


class ReaderJury:
    def __init__(self, evaluators: Sequence[PersonaEvaluator], passing_threshold: float = PASSING_THRESHOLD):
        self.evaluators = list(evaluators)
        self.passing_threshold = passing_threshold

    async def evaluate(self, text: str) -> ReaderJuryResult:
        """Run every persona concurrently. One failing persona fails the jury."""
        evaluations = tuple(await asyncio.gather(*(ev.evaluate(text) for ev in self.evaluators)))
        score = aggregate_score(evaluations)
        passed = score >= self.passing_threshold
        logger.info(f"Reader jury: {score:.3f} ({'pass' if passed else 'fail'})")
        return ReaderJuryResult(
            evaluations=evaluations,
            aggregated_score=score,
            passed=passed,
            summary=build_summary(evaluations, passed),
        )

"""Judge verdict models."""

from dataclasses import dataclass, field, fields
from typing import Any, Literal, Mapping, Optional

SCORE_FLOOR = 0.05
SCORE_CEILING = 0.95

# Older judge prompts used different names for two of the axes
_LEGACY_AXES = {
    "originality": "originality_fidelity",
    "structure": "narrative_quality",
}


def _clamp(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.5
    return min(SCORE_CEILING, max(SCORE_FLOOR, float(value)))


@dataclass(frozen=True)
class ScoreBreakdown:
    style: float = 0.5
    compliance: float = 0.5
    voice_accuracy: float = 0.5
    originality: float = 0.5
    structure: float = 0.5
    amplitude: float = 0.5
    agency: float = 0.5
    stakes: float = 0.5
    overall: float = 0.5

    @classmethod
    def from_raw(cls, raw: Optional[Mapping[str, Any]]) -> "ScoreBreakdown":
        """Build a breakdown from judge output, clamping every axis to [0.05, 0.95]."""
        raw = raw or {}
        values = {}
        for f in fields(cls):
            value = raw.get(f.name)
            if value is None and f.name in _LEGACY_AXES:
                value = raw.get(_LEGACY_AXES[f.name])
            values[f.name] = _clamp(value)
        return cls(**values)


@dataclass(frozen=True)
class JudgeResult:
    winner: Literal["A", "B"]
    reasoning: str
    scores: Mapping[str, ScoreBreakdown]
    praised_excerpts: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: {"A": (), "B": ()}
    )
    weaknesses: Optional[Mapping[str, tuple[dict, ...]]] = None
    axis_comments: Optional[tuple[dict, ...]] = None
    section_analysis: Optional[tuple[dict, ...]] = None

    def score_for(self, side: str) -> ScoreBreakdown:
        return self.scores.get(side, ScoreBreakdown())


def fallback_judge_result() -> JudgeResult:
    """Neutral verdict used whenever the judge's output cannot be parsed."""
    return JudgeResult(
        winner="A",
        reasoning="Fallback: structured output parsing failed",
        scores={"A": ScoreBreakdown(), "B": ScoreBreakdown()},
    )

"""Reader persona evaluations and jury verdicts."""

from dataclasses import dataclass, fields

CATEGORIES = ("style", "plot", "character", "worldbuilding", "readability")


@dataclass(frozen=True)
class CategoryScores:
    style: float = 0.5
    plot: float = 0.5
    character: float = 0.5
    worldbuilding: float = 0.5
    readability: float = 0.5

    def weighted(self, weights) -> float:
        """Sum of score x weight over the five categories."""
        return sum(getattr(self, f.name) * getattr(weights, f.name) for f in fields(self))


@dataclass(frozen=True)
class PersonaFeedback:
    strengths: str = ""
    weaknesses: str = ""
    suggestion: str = ""


@dataclass(frozen=True)
class ReaderEvaluation:
    persona_id: str
    persona_name: str
    category_scores: CategoryScores
    weighted_score: float
    feedback: PersonaFeedback = PersonaFeedback()


@dataclass(frozen=True)
class ReaderJuryResult:
    evaluations: tuple[ReaderEvaluation, ...]
    aggregated_score: float
    passed: bool
    summary: str = ""

    def feedback_digest(self) -> str:
        """Per-persona strengths/weaknesses/suggestions as one block of text."""
        return "\n".join(
            f"{e.persona_name}:\n"
            f"  [strengths] {e.feedback.strengths}\n"
            f"  [weaknesses] {e.feedback.weaknesses}\n"
            f"  [suggestion] {e.feedback.suggestion}"
            for e in self.evaluations
        )

"""Synthesis inputs, improvement plans and results."""

from dataclasses import dataclass
from typing import Literal, Optional

from .chapter_state import ChapterContext
from .tournament import GenerationResult, MatchResult


@dataclass(frozen=True)
class LoserExcerpt:
    generator_id: str
    excerpts: tuple[str, ...]
    reasoning: str


@dataclass(frozen=True)
class ImprovementAction:
    section: str
    type: str
    description: str
    source: str
    priority: Literal["high", "medium", "low"] = "medium"


@dataclass(frozen=True)
class ExpressionSource:
    writer_id: str
    expressions: tuple[str, ...]
    context: str = ""


@dataclass(frozen=True)
class ImprovementPlan:
    champion_assessment: str
    preserve_elements: tuple[str, ...] = ()
    actions: tuple[ImprovementAction, ...] = ()
    expression_sources: tuple[ExpressionSource, ...] = ()
    structural_changes: Optional[tuple[str, ...]] = None


def fallback_plan() -> ImprovementPlan:
    """Plan with no actions, used when the analyzer's output cannot be parsed."""
    return ImprovementPlan(champion_assessment="Fallback: structured output parsing failed")


@dataclass(frozen=True)
class SynthesisInput:
    champion_text: str
    champion_id: str
    all_generations: tuple[GenerationResult, ...]
    rounds: tuple[MatchResult, ...]
    chapter_context: Optional[ChapterContext] = None


@dataclass(frozen=True)
class SynthesisResult:
    synthesized_text: str
    tokens_used: int = 0
    applied: bool = False


@dataclass(frozen=True)
class SynthesisV2Result:
    synthesized_text: str
    plan: Optional[ImprovementPlan]
    total_tokens_used: int = 0
    applied: bool = False
